"""Small numeric helpers shared by the analytics."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity.

    Matches the rounding the dashboards were built against (2.5 -> 3,
    -2.5 -> -2), unlike Python's banker's rounding.
    """
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))
