import pytest

from bytefield.config import DEFAULT_STEP_LIMIT, ArtConfig


def test_defaults():
    config = ArtConfig()
    assert config.kind == "bytebeat"
    assert config.program_length == 20
    assert config.mutation_chance == pytest.approx(0.15)
    assert config.input_text == "Hello, world!"
    assert config.step_limit == DEFAULT_STEP_LIMIT


@pytest.mark.parametrize("kwargs", [
    {'kind': 'fractal'},
    {'mutation_chance': 1.5},
    {'program_length': -1},
    {'width': 0},
    {'pixel_size': 0},
    {'generations': -1},
    {'max_retries': -1},
    {'step_limit': -1},
])
def test_invalid_values_are_rejected(kwargs):
    with pytest.raises(ValueError):
        ArtConfig(**kwargs)


def test_from_file_with_overrides(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("kind: brainfuck\nprogram_length: 12\nseed: 4\n")
    config = ArtConfig.from_file(str(path), seed=9, program=None)
    assert config.kind == "brainfuck"
    assert config.program_length == 12
    assert config.seed == 9
    assert config.program is None


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("colour: green\n")
    with pytest.raises(ValueError):
        ArtConfig.from_file(str(path))


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "run.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ValueError):
        ArtConfig.from_file(str(path))


def test_to_dict_round_trip():
    config = ArtConfig(kind="brainfuck", seed=3)
    assert ArtConfig.from_dict(config.to_dict()) == config
