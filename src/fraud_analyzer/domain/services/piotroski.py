"""Piotroski F-Score: nine binary signals of financial strength."""
from __future__ import annotations

import logging

from fraud_analyzer.domain.models.financials import FinancialSnapshot
from fraud_analyzer.domain.models.results import PiotroskiResult
from fraud_analyzer.utils.numeric import clamp, safe_divide

logger = logging.getLogger(__name__)

STRONG_THRESHOLD = 7
WEAK_THRESHOLD = 3
MAX_SCORE = 9


def _roa(data: FinancialSnapshot) -> float:
    return safe_divide(data.income_statement.net_income, data.balance_sheet.total_assets)


def _leverage(data: FinancialSnapshot) -> float:
    return safe_divide(data.balance_sheet.long_term_debt, data.balance_sheet.total_assets)


def _current_ratio(data: FinancialSnapshot) -> float:
    return safe_divide(data.balance_sheet.current_assets, data.balance_sheet.current_liabilities)


def _gross_margin(data: FinancialSnapshot) -> float:
    return safe_divide(data.income_statement.gross_profit, data.income_statement.revenue)


def _asset_turnover(data: FinancialSnapshot) -> float:
    return safe_divide(data.income_statement.revenue, data.balance_sheet.total_assets)


class PiotroskiModel:
    """Score profitability, leverage/liquidity and efficiency year over year."""

    def calculate(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> PiotroskiResult:
        # Profitability
        roa_positive = current.income_statement.net_income > 0
        cfo_positive = current.cash_flow.operating_cash_flow > 0
        roa_increasing = _roa(current) > _roa(prior)
        cfo_greater_than_ni = current.cash_flow.operating_cash_flow > current.income_statement.net_income

        # Leverage, liquidity, source of funds
        leverage_decreasing = _leverage(current) < _leverage(prior)
        current_ratio_increasing = _current_ratio(current) > _current_ratio(prior)
        no_dilution = current.balance_sheet.shares_outstanding <= prior.balance_sheet.shares_outstanding

        # Operating efficiency
        gross_margin_increasing = _gross_margin(current) > _gross_margin(prior)
        asset_turnover_increasing = _asset_turnover(current) > _asset_turnover(prior)

        f_score = sum(
            int(signal)
            for signal in (
                roa_positive,
                cfo_positive,
                roa_increasing,
                cfo_greater_than_ni,
                leverage_decreasing,
                current_ratio_increasing,
                no_dilution,
                gross_margin_increasing,
                asset_turnover_increasing,
            )
        )
        logger.debug("Piotroski F-Score %d", f_score)
        return PiotroskiResult(
            f_score=f_score,
            roa_positive=roa_positive,
            cfo_positive=cfo_positive,
            roa_increasing=roa_increasing,
            cfo_greater_than_ni=cfo_greater_than_ni,
            leverage_decreasing=leverage_decreasing,
            current_ratio_increasing=current_ratio_increasing,
            no_dilution=no_dilution,
            gross_margin_increasing=gross_margin_increasing,
            asset_turnover_increasing=asset_turnover_increasing,
            interpretation=self.get_interpretation(f_score),
            risk_score=self.score_to_risk(f_score),
        )

    @staticmethod
    def get_interpretation(f_score: int) -> str:
        if f_score >= STRONG_THRESHOLD:
            return "Strong"
        if f_score > WEAK_THRESHOLD:
            return "Moderate"
        return "Weak"

    @staticmethod
    def score_to_risk(f_score: int) -> float:
        # Lower score, higher risk.
        return clamp(1.0 - f_score / MAX_SCORE, 0.0, 1.0)
