"""Small numeric helpers shared by the analytics modules.

Every zero-denominator case in the scoring code goes through ``safe_divide`` so
the neutral fallbacks stay consistent across dimensions.
"""
from __future__ import annotations

import math
from typing import Sequence

NEUTRAL = 0.5


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def normalize(value: float, minimum: float, maximum: float) -> float:
    """Linearly rescale ``value`` from [minimum, maximum] to [0, 1], clamping outside the range."""
    if maximum <= minimum:
        return NEUTRAL
    clamped = max(minimum, min(maximum, value))
    return (clamped - minimum) / (maximum - minimum)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def clamp01(value: float) -> float:
    return clamp(value, 0.0, 1.0)


def mean(values: Sequence[float], default: float = 0.0) -> float:
    return safe_divide(sum(values), len(values), default)


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; 0 for an empty sequence."""
    if not values:
        return 0.0
    avg = mean(values)
    return math.sqrt(sum((value - avg) ** 2 for value in values) / len(values))


def weighted_average(existing: float, new_value: float, weight: float) -> float:
    return existing * (1 - weight) + new_value * weight


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3, -2.5 -> -2) instead of the builtin banker's rounding."""
    return int(math.floor(value + 0.5))
