"""Rounding helpers for percentages and averages."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up.

    Python's built-in round() uses banker's rounding (round(2.5) == 2), which
    would shift displayed rates and averages at exact halves.
    """
    return math.floor(value + 0.5)


def percentage(part: int, whole: int) -> float:
    """Return part/whole as a percentage, 0.0 when whole is zero."""
    if whole <= 0:
        return 0.0
    return part / whole * 100
