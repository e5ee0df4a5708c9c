from typing import Sequence

import numpy as np

# Interest heuristics used by the driver to skip dull mutants


def interest_score(output: Sequence[int]) -> int:
    """Score a tape program's output bytes.
    Unprintable-only output scores 0, a single repeated byte len/4,
    very short output its length, anything else 100.
    """
    values = list(output)
    # characters 0 thru 31 are unprintable
    if all(0 <= v <= 31 for v in values):
        return 0
    if all(v == values[0] for v in values):
        return len(values) // 4
    if len(values) <= 5:
        return len(values)
    return 100


def image_interest(pixels: np.ndarray) -> float:
    """Normalized pixel variance in [0, 1]; flat images score 0."""
    if pixels.size == 0:
        return 0.0
    variance = float(np.var(pixels.astype(np.float64)))
    # the largest possible variance of values in [0, 255] is 127.5 ** 2
    return min(1.0, variance / (127.5 ** 2))
