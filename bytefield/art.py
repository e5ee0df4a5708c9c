#!/usr/bin/env python3
"""
Art pieces driven by the two program kinds.

An art piece is one of a fixed set of variants (BrainfuckArt, BytebeatArt).
The functions here dispatch on the variant explicitly; anything else is a
TypeError. Each piece can be reset, advanced by one frame, rendered into an
RGB image (numpy uint8 array of shape (height, width, 3)) and mutated into a
new piece.
"""

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

import numpy as np

from bytefield import brainfuck, bytebeat
from bytefield.brainfuck import Instruction
from bytefield.core import evo
from bytefield.core.bf_runner import cycle_input
from bytefield.core.eval_utils import EvalConfig, render_beat
from bytefield.core.fitness import image_interest, interest_score

PIXEL_SIZE = 32
MAX_SPEED = 2_000_000
DEFAULT_INPUT_TEXT = "Hello, world!"

# Outline color of the pointer cell, by the instruction about to run
INSTRUCTION_COLORS = {
    Instruction.INC: (0, 255, 0),
    Instruction.DEC: (255, 0, 0),
    Instruction.MOVE_LEFT: (255, 128, 128),
    Instruction.MOVE_RIGHT: (128, 255, 128),
    Instruction.LOOP_START: (0, 128, 255),
    Instruction.LOOP_END: (255, 128, 0),
    Instruction.READ: (255, 255, 0),
    Instruction.WRITE: (0, 255, 255),
}


@dataclass
class Inputs:
    mouse_x: int = 0
    mouse_y: int = 0
    key_x: int = 0
    key_y: int = 0


@dataclass
class BrainfuckArt:
    program: brainfuck.Program
    input_text: str = DEFAULT_INPUT_TEXT
    pixel_size: int = PIXEL_SIZE
    state: brainfuck.TapeState = field(default_factory=brainfuck.TapeState.new)
    input: Iterator[int] = field(init=False, repr=False)

    def __post_init__(self):
        self.input = cycle_input(self.input_text)


@dataclass
class BytebeatArt:
    program: bytebeat.Program
    width: int = 128
    height: int = 128
    frame: int = 0
    image_data: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.image_data = np.zeros((self.height, self.width), dtype=np.uint8)


Art = Union[BrainfuckArt, BytebeatArt]


def new_from(program, **kwargs) -> Art:
    """Wrap an already built program in the matching art variant."""
    if isinstance(program, brainfuck.Program):
        return BrainfuckArt(program, **kwargs)
    if isinstance(program, bytebeat.Program):
        return BytebeatArt(program, **kwargs)
    raise TypeError(f"Not an art program: {type(program).__name__}")


def new_random(kind: str, length: int, rng=None, include_io: bool = False, **kwargs) -> Art:
    if kind == "brainfuck":
        return BrainfuckArt(evo.random_bf(length, rng, include_io=include_io), **kwargs)
    if kind == "bytebeat":
        return BytebeatArt(evo.random_beat(length, rng), **kwargs)
    raise ValueError(f"Unknown art kind: {kind!r}")


def reset(art: Art) -> None:
    """Return the piece to its first frame."""
    if isinstance(art, BrainfuckArt):
        art.state = brainfuck.TapeState.new(art.state.memory_behavior)
        art.input = cycle_input(art.input_text)
    elif isinstance(art, BytebeatArt):
        art.frame = 0
    else:
        raise TypeError(f"Not an art piece: {type(art).__name__}")


def update(art: Art, speed: int, inputs: Optional[Inputs] = None, cfg: EvalConfig = EvalConfig()) -> None:
    """Advance one frame.
    Brainfuck runs up to `speed` steps (stopping at halt); bytebeat renders the
    current frame then moves the frame counter forward by `speed`.
    """
    inputs = inputs or Inputs()
    if isinstance(art, BrainfuckArt):
        steps = min(max(speed, 0), MAX_SPEED)
        for _ in range(steps):
            if art.state.halted(art.program):
                break
            art.state.step(art.program, art.input)
    elif isinstance(art, BytebeatArt):
        art.image_data = render_beat(
            art.program, art.width, art.height, art.frame,
            (inputs.mouse_x, inputs.mouse_y, inputs.key_x, inputs.key_y), cfg,
        )
        art.frame += speed
    else:
        raise TypeError(f"Not an art piece: {type(art).__name__}")


def render(art: Art, image: np.ndarray) -> None:
    """Draw the piece into `image` in place."""
    if isinstance(art, BrainfuckArt):
        instr = art.state.current_instruction(art.program) or Instruction.INC
        _render_bf(image, art.state, instr, art.pixel_size)
    elif isinstance(art, BytebeatArt):
        _render_bytebeat(image, art.image_data)
    else:
        raise TypeError(f"Not an art piece: {type(art).__name__}")


def mutate(art: Art, p: float, rng=None) -> Art:
    """A new piece whose program is a point mutation of this one."""
    if isinstance(art, BrainfuckArt):
        return BrainfuckArt(evo.mutate_bf(art.program, p, rng),
                            input_text=art.input_text, pixel_size=art.pixel_size)
    if isinstance(art, BytebeatArt):
        return BytebeatArt(evo.mutate_beat(art.program, p, rng),
                           width=art.width, height=art.height)
    raise TypeError(f"Not an art piece: {type(art).__name__}")


def score(art: Art) -> float:
    """Interest of the piece's current output, normalized to [0, 1]."""
    if isinstance(art, BrainfuckArt):
        return interest_score(art.state.output) / 100.0
    if isinstance(art, BytebeatArt):
        return image_interest(art.image_data)
    raise TypeError(f"Not an art piece: {type(art).__name__}")


def _render_bf(image: np.ndarray, state: brainfuck.TapeState, instr: Instruction, pixel_size: int) -> None:
    height, width = image.shape[:2]
    ys, xs = np.mgrid[0:height, 0:width]
    mega_x = xs // pixel_size
    mega_y = ys // pixel_size
    mega_width = width // pixel_size
    cell = mega_y * mega_width + mega_x

    memory = np.array(state.memory, dtype=np.int64) % 256
    values = np.zeros(cell.shape, dtype=np.int64)
    inside = cell < len(memory)
    values[inside] = memory[cell[inside]]

    image[..., 0] = (values * 63) % 256
    image[..., 1] = (values * 65) % 256
    image[..., 2] = (values * 67) % 256

    sub_x = xs - mega_x * pixel_size
    sub_y = ys - mega_y * pixel_size
    edge = (sub_x == 0) | (sub_y == 0) | (sub_x == pixel_size - 1) | (sub_y == pixel_size - 1)
    outline = edge & (cell == state.memory_pointer)
    image[outline] = INSTRUCTION_COLORS[instr]


def _render_bytebeat(image: np.ndarray, values: np.ndarray) -> None:
    height, width = image.shape[:2]
    src_height, src_width = values.shape
    # nearest-neighbour scale of the internal buffer to the image
    rows = np.arange(height) * src_height // height
    cols = np.arange(width) * src_width // width
    image[..., 0] = 0
    image[..., 1] = values[np.ix_(rows, cols)]
    image[..., 2] = 0
