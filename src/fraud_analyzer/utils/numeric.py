"""Numeric helpers shared by the scoring models."""
from __future__ import annotations

import math

# Denominators smaller than this in absolute value are treated as zero.
EPSILON = 1e-10


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide, returning ``default`` when the denominator is effectively zero."""
    if abs(denominator) < EPSILON:
        return default
    return numerator / denominator


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return min(upper, max(lower, value))


def is_finite(value: float) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False
