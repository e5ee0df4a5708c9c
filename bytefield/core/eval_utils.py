from __future__ import annotations
from dataclasses import dataclass
from functools import partial
from multiprocessing import Pool, cpu_count
from typing import List, Tuple

import numpy as np

from bytefield.bytebeat import Program, as_byte, eval_beat

# Data-parallel bytebeat rendering: every row gets its own scratch stack and
# the compiled program is shared read-only between workers.


@dataclass
class EvalConfig:
    parallel: bool = True
    processes: int = max(1, cpu_count() - 1)


def _render_row(program: Program, width: int, t: int, inputs: Tuple[int, int, int, int],
                screen_y: int) -> List[int]:
    """Evaluate one row of pixels. Top-level so it can be pickled for a Pool."""
    mouse_x, mouse_y, key_x, key_y = inputs
    stack: list = []
    return [
        as_byte(eval_beat(stack, program, t, mouse_x, mouse_y, screen_x, screen_y, key_x, key_y))
        for screen_x in range(width)
    ]


def render_beat(
    program: Program,
    width: int,
    height: int,
    t: int,
    inputs: Tuple[int, int, int, int] = (0, 0, 0, 0),
    cfg: EvalConfig = EvalConfig(),
) -> np.ndarray:
    """Evaluate `program` at every (screen_x, screen_y) of a width x height grid.
    `inputs` is (mouse_x, mouse_y, key_x, key_y). Returns a uint8 array of shape (height, width).
    """
    row_fn = partial(_render_row, program, width, t, tuple(inputs))
    rows = range(height)
    if cfg.parallel and height > 1 and cfg.processes > 1:
        with Pool(processes=cfg.processes) as pool:
            data = pool.map(row_fn, rows)
    else:
        data = [row_fn(y) for y in rows]
    return np.array(data, dtype=np.uint8).reshape(height, width)
