"""Altman Z-Score bankruptcy models.

``AltmanModel`` is the original public-company form::

    Z = 1.2*X1 + 1.4*X2 + 3.3*X3 + 0.6*X4 + 1.0*X5

``AltmanZDoublePrimeModel`` is the non-manufacturing Z'' form, which drops the
sales term and always uses book equity::

    Z'' = 6.56*X1 + 3.26*X2 + 6.72*X3 + 1.05*X4

Both map the score to a bankruptcy probability through a fixed band table.
"""
from __future__ import annotations

import logging
from typing import List, Tuple

from fraud_analyzer.domain.models.financials import FinancialSnapshot
from fraud_analyzer.domain.models.results import AltmanResult
from fraud_analyzer.utils.numeric import clamp, safe_divide

logger = logging.getLogger(__name__)

# (lower bound exclusive, probability), checked top-down.
PROBABILITY_BANDS: List[Tuple[float, float]] = [
    (3.0, 0.01),
    (2.7, 0.05),
    (2.4, 0.10),
    (2.0, 0.20),
    (1.8, 0.35),
    (1.5, 0.50),
    (1.2, 0.65),
    (1.0, 0.75),
    (0.5, 0.85),
]
FLOOR_PROBABILITY = 0.95


def score_to_probability(z_score: float) -> float:
    for bound, probability in PROBABILITY_BANDS:
        if z_score > bound:
            return probability
    return FLOOR_PROBABILITY


def _zone(z_score: float, safe: float, distress: float) -> str:
    if z_score > safe:
        return "Safe"
    if z_score > distress:
        return "Gray"
    return "Distress"


class AltmanModel:
    """Public-company Z-Score; X4 uses market value when one is supplied."""

    VARIANT = "Z"
    SAFE_THRESHOLD = 2.99
    DISTRESS_THRESHOLD = 1.81
    COEF_X1 = 1.2
    COEF_X2 = 1.4
    COEF_X3 = 3.3
    COEF_X4 = 0.6
    COEF_X5 = 1.0

    def calculate(self, data: FinancialSnapshot, market_cap: float = 0.0) -> AltmanResult:
        x1 = self.calculate_x1(data)
        x2 = self.calculate_x2(data)
        x3 = self.calculate_x3(data)
        x4 = self.calculate_x4(data, market_cap)
        x5 = self.calculate_x5(data)
        z_score = (
            self.COEF_X1 * x1
            + self.COEF_X2 * x2
            + self.COEF_X3 * x3
            + self.COEF_X4 * x4
            + self.COEF_X5 * x5
        )
        probability = score_to_probability(z_score)
        zone = self.get_zone(z_score)
        logger.debug("Altman Z-Score %.3f (%s)", z_score, zone)
        return AltmanResult(
            variant=self.VARIANT,
            z_score=z_score,
            x1=x1,
            x2=x2,
            x3=x3,
            x4=x4,
            x5=x5,
            zone=zone,
            bankruptcy_probability=probability,
            risk_score=clamp(probability, 0.0, 1.0),
        )

    @staticmethod
    def calculate_x1(data: FinancialSnapshot) -> float:
        bs = data.balance_sheet
        return safe_divide(bs.working_capital(), bs.total_assets)

    @staticmethod
    def calculate_x2(data: FinancialSnapshot) -> float:
        return safe_divide(data.balance_sheet.retained_earnings, data.balance_sheet.total_assets)

    @staticmethod
    def calculate_x3(data: FinancialSnapshot) -> float:
        # Operating income stands in for EBIT.
        return safe_divide(data.income_statement.operating_income, data.balance_sheet.total_assets)

    @staticmethod
    def calculate_x4(data: FinancialSnapshot, market_cap: float = 0.0) -> float:
        equity = market_cap if market_cap > 0 else data.balance_sheet.total_equity
        return safe_divide(equity, data.balance_sheet.total_liabilities)

    @staticmethod
    def calculate_x5(data: FinancialSnapshot) -> float:
        return safe_divide(data.income_statement.revenue, data.balance_sheet.total_assets)

    @classmethod
    def get_zone(cls, z_score: float) -> str:
        return _zone(z_score, cls.SAFE_THRESHOLD, cls.DISTRESS_THRESHOLD)


class AltmanZDoublePrimeModel:
    """Z'' for non-manufacturing firms; no sales term, book equity only."""

    VARIANT = "Z''"
    SAFE_THRESHOLD = 2.60
    DISTRESS_THRESHOLD = 1.10

    def calculate(self, data: FinancialSnapshot) -> AltmanResult:
        x1 = AltmanModel.calculate_x1(data)
        x2 = AltmanModel.calculate_x2(data)
        x3 = AltmanModel.calculate_x3(data)
        x4 = AltmanModel.calculate_x4(data)
        z_score = 6.56 * x1 + 3.26 * x2 + 6.72 * x3 + 1.05 * x4
        probability = score_to_probability(z_score)
        return AltmanResult(
            variant=self.VARIANT,
            z_score=z_score,
            x1=x1,
            x2=x2,
            x3=x3,
            x4=x4,
            x5=0.0,
            zone=_zone(z_score, self.SAFE_THRESHOLD, self.DISTRESS_THRESHOLD),
            bankruptcy_probability=probability,
            risk_score=clamp(probability, 0.0, 1.0),
        )
