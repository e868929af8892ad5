"""Numeric helpers that never produce NaN or Infinity"""

import math
import statistics
from typing import Sequence


def safe_divide(numerator: float, denominator: float) -> float:
    """Return numerator / denominator, or 0.0 when the denominator is zero"""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence"""
    if not values:
        return 0.0
    return statistics.fmean(values)


def sample_stdev(values: Sequence[float]) -> float:
    """Sample standard deviation (n - 1); 0.0 for fewer than two values"""
    if len(values) < 2:
        return 0.0
    return statistics.stdev(values)


def median(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(statistics.median(values))


def is_finite_number(value) -> bool:
    """True for int/float values that are neither NaN nor infinite (bools rejected)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
