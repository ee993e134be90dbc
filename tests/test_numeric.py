from __future__ import annotations

import math

from fraud_analyzer.utils.numeric import EPSILON, clamp, is_finite, safe_divide


def test_safe_divide_returns_default_below_tolerance():
    assert safe_divide(5.0, 0.0) == 0.0
    assert safe_divide(5.0, 9e-11) == 0.0
    assert safe_divide(5.0, -9e-11) == 0.0
    assert safe_divide(5.0, 0.0, 1.0) == 1.0
    assert safe_divide(5.0, -9e-11, default=1.0) == 1.0


def test_safe_divide_is_plain_division_from_tolerance_up():
    assert safe_divide(5.0, EPSILON) == 5.0 / EPSILON
    assert safe_divide(5.0, -EPSILON) == 5.0 / -EPSILON
    assert safe_divide(3.0, 4.0, default=1.0) == 0.75
    assert safe_divide(-3.0, 2.0) == -1.5


def test_clamp_bounds():
    assert clamp(1.7) == 1.0
    assert clamp(-0.2) == 0.0
    assert clamp(0.42) == 0.42
    assert clamp(7.0, 0.0, 10.0) == 7.0


def test_is_finite():
    assert is_finite(0.0)
    assert is_finite(-12)
    assert not is_finite(math.nan)
    assert not is_finite(math.inf)
    assert not is_finite(None)
    assert not is_finite("abc")
