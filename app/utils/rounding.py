"""Rounding helpers shared by scoring and billing arithmetic."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from negative infinity.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``);
    scores, minutes and cents must round ``x.5`` up instead.
    """
    return int(math.floor(value + 0.5))
