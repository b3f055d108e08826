"""Numeric helpers shared by feature extraction and scoring"""

import math
from typing import Sequence


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (Python's round() is banker's rounding)"""
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, 0.0 when the denominator is zero"""
    return numerator / denominator if denominator else 0.0


def mean(values: Sequence[float]) -> float:
    return math.fsum(values) / len(values) if values else 0.0


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation; 0.0 for fewer than two values"""
    if len(values) < 2:
        return 0.0
    avg = mean(values)
    variance = math.fsum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if math.isnan(value):
        return low
    return max(low, min(high, value))
