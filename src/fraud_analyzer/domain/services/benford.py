"""Benford's Law digit-distribution tests.

The first-digit model compares leading digits against the Benford
distribution using a chi-square statistic, the mean absolute deviation (MAD)
and a per-digit z-test. MAD bands follow Nigrini's first-digit guidance.
The second-digit model is reported separately and never feeds the composite.

Only finite values with magnitude of at least one (ten for second digits)
are counted; everything else is excluded from every statistic.
"""
from __future__ import annotations

import logging
import math
from typing import Iterable, List, Optional

import numpy as np

from fraud_analyzer.domain.models.financials import FinancialSnapshot
from fraud_analyzer.domain.models.results import BenfordResult
from fraud_analyzer.utils.numeric import clamp, is_finite

logger = logging.getLogger(__name__)

EXPECTED_FIRST_DIGIT = np.array([0.301, 0.176, 0.125, 0.097, 0.079, 0.067, 0.058, 0.051, 0.046])
EXPECTED_SECOND_DIGIT = np.array(
    [0.1197, 0.1139, 0.1088, 0.1043, 0.1003, 0.0967, 0.0934, 0.0904, 0.0876, 0.0850]
)

MAD_CLOSE_CONFORMITY = 0.006
MAD_ACCEPTABLE = 0.012
MAD_MARGINALLY_ACCEPTABLE = 0.015
MAD_RISK_CEILING = 0.02
Z_CRITICAL = 2.576  # two-tailed, alpha ~ 0.01
SECOND_DIGIT_MAD_THRESHOLD = 0.012

INSUFFICIENT_DATA = "Insufficient Data"


def is_valid_value(value: float) -> bool:
    return is_finite(value) and abs(float(value)) >= 1.0


def extract_first_digit(value: float) -> int:
    """Leading significant digit of ``value``; 0 when the value is excluded."""
    if not is_valid_value(value):
        return 0
    v = abs(float(value))
    while v >= 10.0:
        v /= 10.0
    while v < 1.0:
        v *= 10.0
    digit = int(v)
    return digit if 1 <= digit <= 9 else 0


def extract_second_digit(value: float) -> Optional[int]:
    if not is_finite(value) or abs(float(value)) < 10.0:
        return None
    v = abs(float(value))
    while v >= 100.0:
        v /= 10.0
    while v < 10.0:
        v *= 10.0
    return int(v) % 10


def extract_benford_values(snapshots: Iterable[FinancialSnapshot]) -> List[float]:
    """Line items fed to the digit test: five headline figures per period."""
    values: List[float] = []
    for s in snapshots:
        values.extend(
            [
                s.income_statement.revenue,
                s.income_statement.net_income,
                s.balance_sheet.total_assets,
                s.balance_sheet.total_liabilities,
                s.cash_flow.operating_cash_flow,
            ]
        )
    return values


def _proportions(counts: np.ndarray) -> np.ndarray:
    total = int(counts.sum())
    if total == 0:
        return np.zeros(len(counts))
    return counts / total


class BenfordModel:
    """First-digit conformity test."""

    def calculate(self, values: Iterable[float]) -> BenfordResult:
        counts = self.count_digits(values)
        n = int(counts.sum())
        expected = EXPECTED_FIRST_DIGIT
        actual = _proportions(counts)

        chi_square = 0.0
        mad = 0.0
        z_scores = [0.0] * 9
        suspicious: List[int] = []
        if n > 0:
            chi_square = self.calculate_chi_square(expected, actual, n)
            mad = self.calculate_mad(expected, actual)
            z_scores = self.calculate_z_scores(expected, actual, n)
            suspicious = [idx + 1 for idx, z in enumerate(z_scores) if z > Z_CRITICAL]

        conformity = self.get_conformity_level(mad) if n > 0 else INSUFFICIENT_DATA
        logger.debug("Benford first digit n=%d MAD=%.4f (%s)", n, mad, conformity)
        return BenfordResult(
            digit_position="first",
            expected_distribution=expected.tolist(),
            actual_distribution=actual.tolist(),
            counts=[int(c) for c in counts],
            sample_size=n,
            chi_square=chi_square,
            mad=mad,
            deviation_percent=mad * 100.0,
            conformity=conformity,
            is_suspicious=self.is_suspicious(mad),
            risk_score=self.mad_to_risk(mad),
            suspicious_digits=suspicious,
            z_scores=z_scores,
            anomalies=[f"Digit {d} significantly deviates from expected" for d in suspicious],
        )

    @staticmethod
    def expected_distribution() -> List[float]:
        return EXPECTED_FIRST_DIGIT.tolist()

    @staticmethod
    def count_digits(values: Iterable[float]) -> np.ndarray:
        digits = [extract_first_digit(v) for v in values]
        digits = [d for d in digits if d > 0]
        return np.bincount(np.array(digits, dtype=int), minlength=10)[1:10]

    def calculate_actual_distribution(self, values: Iterable[float]) -> List[float]:
        return _proportions(self.count_digits(values)).tolist()

    @staticmethod
    def calculate_chi_square(expected: np.ndarray, actual: np.ndarray, n: int) -> float:
        expected_counts = np.asarray(expected) * n
        actual_counts = np.asarray(actual) * n
        mask = expected_counts > 0
        return float(np.sum((actual_counts[mask] - expected_counts[mask]) ** 2 / expected_counts[mask]))

    @staticmethod
    def calculate_mad(expected: np.ndarray, actual: np.ndarray) -> float:
        return float(np.mean(np.abs(np.asarray(actual) - np.asarray(expected))))

    @staticmethod
    def calculate_z_scores(expected: np.ndarray, actual: np.ndarray, n: int) -> List[float]:
        """|z| per digit using the binomial standard error under the expected share."""
        scores: List[float] = []
        for p, p_hat in zip(np.asarray(expected), np.asarray(actual)):
            se = math.sqrt(p * (1.0 - p) / n)
            scores.append(float(abs(p_hat - p) / se) if se > 0 else 0.0)
        return scores

    @staticmethod
    def is_suspicious(mad: float) -> bool:
        return mad > MAD_MARGINALLY_ACCEPTABLE

    @staticmethod
    def get_conformity_level(mad: float) -> str:
        if mad <= MAD_CLOSE_CONFORMITY:
            return "Close Conformity"
        if mad <= MAD_ACCEPTABLE:
            return "Acceptable Conformity"
        if mad <= MAD_MARGINALLY_ACCEPTABLE:
            return "Marginally Acceptable"
        return "Nonconformity"

    @staticmethod
    def mad_to_risk(mad: float) -> float:
        return clamp(mad / MAD_RISK_CEILING, 0.0, 1.0)


class BenfordSecondDigitModel:
    """Second-digit distribution test with a fixed MAD threshold."""

    def calculate(self, values: Iterable[float]) -> BenfordResult:
        digits = [d for d in (extract_second_digit(v) for v in values) if d is not None]
        counts = np.bincount(np.array(digits, dtype=int), minlength=10)[:10]
        n = int(counts.sum())
        expected = EXPECTED_SECOND_DIGIT
        actual = _proportions(counts)
        mad = float(np.mean(np.abs(actual - expected))) if n > 0 else 0.0
        if n == 0:
            conformity = INSUFFICIENT_DATA
        elif mad > SECOND_DIGIT_MAD_THRESHOLD:
            conformity = "Suspicious"
        else:
            conformity = "Conforming"
        return BenfordResult(
            digit_position="second",
            expected_distribution=expected.tolist(),
            actual_distribution=actual.tolist(),
            counts=[int(c) for c in counts],
            sample_size=n,
            chi_square=BenfordModel.calculate_chi_square(expected, actual, n) if n > 0 else 0.0,
            mad=mad,
            deviation_percent=mad * 100.0,
            conformity=conformity,
            is_suspicious=mad > SECOND_DIGIT_MAD_THRESHOLD,
            risk_score=clamp(mad / MAD_RISK_CEILING, 0.0, 1.0),
        )

    @staticmethod
    def expected_distribution() -> List[float]:
        return EXPECTED_SECOND_DIGIT.tolist()
