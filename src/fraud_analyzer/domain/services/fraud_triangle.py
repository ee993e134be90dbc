"""Fraud-triangle heuristic: pressure, opportunity and rationalization.

Each category counts triggered indicators and normalises by the number of
indicators it defines. Snapshots arrive newest first, so ``snapshots[i - 1]``
is the period that follows ``snapshots[i]``.

Reference: Cressey, D.R. (1953) "Other People's Money".
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from fraud_analyzer.domain.models.financials import FinancialSnapshot
from fraud_analyzer.domain.models.results import FraudTriangleResult, RiskLevel
from fraud_analyzer.utils.numeric import clamp

logger = logging.getLogger(__name__)

PRESSURE_WEIGHT = 0.35
OPPORTUNITY_WEIGHT = 0.35
RATIONALIZATION_WEIGHT = 0.30

HIGH_RISK_THRESHOLD = 0.7
MODERATE_RISK_THRESHOLD = 0.4
LOW_RISK_THRESHOLD = 0.2

PRESSURE_INDICATORS = 5
OPPORTUNITY_INDICATORS = 3
RATIONALIZATION_INDICATORS = 2

HIGH_LEVERAGE_RATIO = 0.6
NEAR_MISS_MARGIN = 0.02
BOUNDARY_MARGIN = 0.01
INTANGIBLE_CONCENTRATION = 0.3
BALANCE_SPIKE = 0.5
ESTIMATE_CHANGE = 0.3
INCOME_OVER_CASH = 1.5


def _pairs(snapshots: Sequence[FinancialSnapshot]) -> List[Tuple[FinancialSnapshot, FinancialSnapshot]]:
    """(newer, older) pairs for consecutive periods."""
    return [(snapshots[i - 1], snapshots[i]) for i in range(1, len(snapshots))]


def _normalize(count: int, max_indicators: int) -> float:
    if max_indicators <= 0:
        return 0.0
    return clamp(count / max_indicators, 0.0, 1.0)


class FraudTriangleModel:
    """Scan a newest-first snapshot sequence for fraud-triangle indicators."""

    def calculate(self, snapshots: Sequence[FinancialSnapshot]) -> FraudTriangleResult:
        pressure = self.detect_pressure_indicators(snapshots)
        opportunity = self.detect_opportunity_indicators(snapshots)
        rationalization = self.detect_rationalization_indicators(snapshots)

        pressure_score = _normalize(len(pressure), PRESSURE_INDICATORS)
        opportunity_score = _normalize(len(opportunity), OPPORTUNITY_INDICATORS)
        rationalization_score = _normalize(len(rationalization), RATIONALIZATION_INDICATORS)
        overall = (
            PRESSURE_WEIGHT * pressure_score
            + OPPORTUNITY_WEIGHT * opportunity_score
            + RATIONALIZATION_WEIGHT * rationalization_score
        )
        level = self.determine_risk_level(overall)
        logger.debug(
            "Fraud triangle P=%.2f O=%.2f R=%.2f overall=%.3f (%s)",
            pressure_score,
            opportunity_score,
            rationalization_score,
            overall,
            level.value,
        )
        return FraudTriangleResult(
            pressure_score=pressure_score,
            opportunity_score=opportunity_score,
            rationalization_score=rationalization_score,
            overall_risk=overall,
            risk_level=level,
            pressure_indicators=pressure,
            opportunity_indicators=opportunity,
            rationalization_indicators=rationalization,
        )

    @staticmethod
    def determine_risk_level(overall_score: float) -> RiskLevel:
        if overall_score >= HIGH_RISK_THRESHOLD:
            return RiskLevel.HIGH
        if overall_score >= MODERATE_RISK_THRESHOLD:
            return RiskLevel.MODERATE
        if overall_score >= LOW_RISK_THRESHOLD:
            return RiskLevel.ELEVATED
        return RiskLevel.LOW

    # -----------------
    # Pressure
    # -----------------
    def detect_pressure_indicators(self, snapshots: Sequence[FinancialSnapshot]) -> List[str]:
        indicators: List[str] = []
        if not snapshots:
            return indicators
        if self.check_declining_revenue(snapshots):
            indicators.append("Declining revenue trend")
        if self.check_declining_margins(snapshots):
            indicators.append("Declining profit margins")
        if self.check_high_leverage(snapshots[0]):
            indicators.append("High leverage ratio")
        if self.check_negative_cash_flow(snapshots[0]):
            indicators.append("Negative operating cash flow")
        if self.check_earnings_miss_pattern(snapshots):
            indicators.append("Pattern of barely meeting earnings targets")
        return indicators

    @staticmethod
    def _declines_in_majority(snapshots: Sequence[FinancialSnapshot], metric) -> bool:
        if len(snapshots) < 2:
            return False
        declines = sum(1 for newer, older in _pairs(snapshots) if metric(newer) < metric(older))
        return declines >= len(snapshots) // 2

    def check_declining_revenue(self, snapshots: Sequence[FinancialSnapshot]) -> bool:
        return self._declines_in_majority(snapshots, lambda s: s.income_statement.revenue)

    def check_declining_margins(self, snapshots: Sequence[FinancialSnapshot]) -> bool:
        return self._declines_in_majority(snapshots, lambda s: s.income_statement.gross_margin())

    @staticmethod
    def check_high_leverage(data: FinancialSnapshot) -> bool:
        return data.balance_sheet.debt_ratio() > HIGH_LEVERAGE_RATIO

    @staticmethod
    def check_negative_cash_flow(data: FinancialSnapshot) -> bool:
        return data.cash_flow.operating_cash_flow < 0

    @staticmethod
    def check_earnings_miss_pattern(snapshots: Sequence[FinancialSnapshot]) -> bool:
        """Net margin repeatedly just above zero, given at least three periods."""
        if len(snapshots) < 3:
            return False
        near_misses = sum(
            1 for s in snapshots if 0 < s.income_statement.net_margin() < NEAR_MISS_MARGIN
        )
        return near_misses >= 2

    # -----------------
    # Opportunity
    # -----------------
    def detect_opportunity_indicators(self, snapshots: Sequence[FinancialSnapshot]) -> List[str]:
        indicators: List[str] = []
        if self.check_complex_structure(snapshots):
            indicators.append("Complex organizational structure (high intangibles)")
        if self.check_unusual_transactions(snapshots):
            indicators.append("Unusual changes in receivables or inventory")
        if self.check_estimate_changes(snapshots):
            indicators.append("Significant changes in accounting estimates")
        return indicators

    @staticmethod
    def check_complex_structure(snapshots: Sequence[FinancialSnapshot]) -> bool:
        if not snapshots:
            return False
        bs = snapshots[0].balance_sheet
        if bs.total_assets <= 0:
            return False
        return (bs.goodwill + bs.intangible_assets) / bs.total_assets > INTANGIBLE_CONCENTRATION

    @staticmethod
    def check_unusual_transactions(snapshots: Sequence[FinancialSnapshot]) -> bool:
        for newer, older in _pairs(snapshots):
            ar_change = 0.0
            inv_change = 0.0
            old_ar = older.balance_sheet.accounts_receivable
            old_inv = older.balance_sheet.inventory
            if old_ar > 0:
                ar_change = (newer.balance_sheet.accounts_receivable - old_ar) / old_ar
            if old_inv > 0:
                inv_change = (newer.balance_sheet.inventory - old_inv) / old_inv
            if ar_change > BALANCE_SPIKE or inv_change > BALANCE_SPIKE:
                return True
        return False

    @staticmethod
    def check_estimate_changes(snapshots: Sequence[FinancialSnapshot]) -> bool:
        """Volatile depreciation rate (depreciation / PP&E) between periods."""

        def depreciation_rate(snapshot: FinancialSnapshot) -> float:
            ppe = snapshot.balance_sheet.ppe
            return snapshot.income_statement.depreciation / ppe if ppe > 0 else 0.0

        for newer, older in _pairs(snapshots):
            prior_rate = depreciation_rate(older)
            if prior_rate > 0 and abs(depreciation_rate(newer) - prior_rate) / prior_rate > ESTIMATE_CHANGE:
                return True
        return False

    # -----------------
    # Rationalization
    # -----------------
    def detect_rationalization_indicators(self, snapshots: Sequence[FinancialSnapshot]) -> List[str]:
        indicators: List[str] = []
        if self.check_aggressive_accounting(snapshots):
            indicators.append("Aggressive accounting (income >> cash flow)")
        if self.check_boundary_cases(snapshots):
            indicators.append("Earnings consistently at boundary levels")
        return indicators

    @staticmethod
    def check_aggressive_accounting(snapshots: Sequence[FinancialSnapshot]) -> bool:
        for s in snapshots:
            net_income = s.income_statement.net_income
            cfo = s.cash_flow.operating_cash_flow
            if net_income > 0 and cfo > 0 and net_income > cfo * INCOME_OVER_CASH:
                return True
        return False

    @staticmethod
    def check_boundary_cases(snapshots: Sequence[FinancialSnapshot]) -> bool:
        boundary = sum(1 for s in snapshots if 0 < s.income_statement.net_margin() < BOUNDARY_MARGIN)
        return boundary >= 2
