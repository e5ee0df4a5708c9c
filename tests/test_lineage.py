import json

from bytefield.lineage import Lineage, LineageEntry


def test_add_save_and_reload(tmp_path):
    path = tmp_path / "lineage.json"
    lineage = Lineage(str(path))
    assert lineage.entries == []
    lineage.add("t 2 %", "bytebeat", 0, 0.25)
    lineage.add("t 3 %", "bytebeat", 1, 0.5, parent="t 2 %", metadata={'mutation_chance': 0.1})
    lineage.save()

    reloaded = Lineage(str(path))
    assert [e.code for e in reloaded.entries] == ["t 2 %", "t 3 %"]
    assert reloaded.entries[1].parent == "t 2 %"
    assert reloaded.entries[1].metadata == {'mutation_chance': 0.1}
    assert reloaded.has("t 3 %")
    assert not reloaded.has("t")


def test_save_keeps_backup(tmp_path):
    path = tmp_path / "lineage.json"
    lineage = Lineage(str(path))
    lineage.add("+", "brainfuck", 0, 0.0)
    lineage.save()
    lineage.add("-", "brainfuck", 1, 0.0)
    lineage.save()

    backup = json.loads((tmp_path / "lineage.backup.json").read_text())
    assert backup['metadata']['total_entries'] == 1
    current = json.loads(path.read_text())
    assert current['metadata']['total_entries'] == 2


def test_corrupt_file_starts_empty(tmp_path, capsys):
    path = tmp_path / "lineage.json"
    path.write_text("{not json")
    lineage = Lineage(str(path))
    assert lineage.entries == []
    assert "Error loading lineage" in capsys.readouterr().out


def test_in_memory_lineage_does_not_write(tmp_path):
    lineage = Lineage()
    lineage.add("+", "brainfuck", 0, 0.0)
    lineage.save()
    assert list(tmp_path.iterdir()) == []


def test_best_and_stats(capsys):
    lineage = Lineage()
    assert lineage.stats() == {'total': 0}
    lineage.add("a", "bytebeat", 0, 0.1)
    lineage.add("bbb", "bytebeat", 1, 0.9)
    lineage.add("cc", "brainfuck", 2, 0.5)
    assert [e.code for e in lineage.best(2)] == ["bbb", "cc"]

    stats = lineage.stats()
    assert stats['total'] == 3
    assert stats['kinds'] == ["brainfuck", "bytebeat"]
    assert stats['interest_stats']['max'] == 0.9
    assert stats['code_length_stats']['min'] == 1

    lineage.print_summary()
    assert "Total entries: 3" in capsys.readouterr().out


def test_entry_dict_round_trip():
    entry = LineageEntry(code="+", kind="brainfuck", generation=3, interest=0.2)
    assert LineageEntry.from_dict(entry.to_dict()) == entry
