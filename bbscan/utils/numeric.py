from __future__ import annotations

import math


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    # Score rounding; .5 always goes up, including for negatives.
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    return math.floor(value * 10.0 + 0.5) / 10.0


def angle_diff_deg(a: float, b: float) -> float:
    """Signed difference a - b wrapped into [-180, 180)."""
    return (a - b + 180.0) % 360.0 - 180.0
