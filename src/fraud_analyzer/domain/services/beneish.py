"""Beneish M-Score earnings-manipulation model.

The score is a fixed linear combination of eight period-over-period indices::

    M = -4.84 + 0.920*DSRI + 0.528*GMI + 0.404*AQI + 0.892*SGI
        + 0.115*DEPI - 0.172*SGAI + 4.679*TATA - 0.327*LVGI

A score above -2.22 marks a likely manipulator. Undefined index ratios fall
back to 1.0 so they contribute a neutral factor; the accruals term falls back
to 0.0.

Reference: Beneish, M.D. (1999) "The Detection of Earnings Manipulation".
"""
from __future__ import annotations

import logging
import math
from typing import List

from fraud_analyzer.domain.models.financials import FinancialSnapshot
from fraud_analyzer.domain.models.results import BeneishResult
from fraud_analyzer.utils.numeric import clamp, safe_divide

logger = logging.getLogger(__name__)

THRESHOLD = -2.22

INTERCEPT = -4.84
COEF_DSRI = 0.920
COEF_GMI = 0.528
COEF_AQI = 0.404
COEF_SGI = 0.892
COEF_DEPI = 0.115
COEF_SGAI = -0.172
COEF_TATA = 4.679
COEF_LVGI = -0.327

# (component, benchmark, message) checked independently of the M-Score.
FLAG_RULES = [
    ("dsri", 1.465, "High Days Sales in Receivables - potential revenue manipulation"),
    ("gmi", 1.193, "Declining gross margins - pressure to manipulate"),
    ("aqi", 1.254, "Increasing non-current assets - potential capitalization abuse"),
    ("sgi", 1.607, "Rapid sales growth - higher manipulation risk"),
    ("tata", 0.018, "High accruals relative to assets - earnings quality concern"),
    ("lvgi", 1.111, "Increasing leverage - financial pressure"),
]


def _ratio(numerator: float, denominator: float) -> float:
    return safe_divide(numerator, denominator, 1.0)


class BeneishModel:
    """Compute the M-Score from the current and prior period."""

    def calculate(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> BeneishResult:
        dsri = self.calculate_dsri(current, prior)
        gmi = self.calculate_gmi(current, prior)
        aqi = self.calculate_aqi(current, prior)
        sgi = self.calculate_sgi(current, prior)
        depi = self.calculate_depi(current, prior)
        sgai = self.calculate_sgai(current, prior)
        lvgi = self.calculate_lvgi(current, prior)
        tata = self.calculate_tata(current)

        m_score = (
            INTERCEPT
            + COEF_DSRI * dsri
            + COEF_GMI * gmi
            + COEF_AQI * aqi
            + COEF_SGI * sgi
            + COEF_DEPI * depi
            + COEF_SGAI * sgai
            + COEF_TATA * tata
            + COEF_LVGI * lvgi
        )
        probability = self.score_to_probability(m_score)
        result = BeneishResult(
            m_score=m_score,
            dsri=dsri,
            gmi=gmi,
            aqi=aqi,
            sgi=sgi,
            depi=depi,
            sgai=sgai,
            lvgi=lvgi,
            tata=tata,
            probability=probability,
            risk_score=clamp(probability, 0.0, 1.0),
            likely_manipulator=self.is_likely_manipulator(m_score),
            zone=self.get_zone(m_score),
        )
        result.flags = self.generate_flags(result)
        logger.debug("Beneish M-Score %.3f (%s)", m_score, result.zone)
        return result

    # -----------------
    # Components
    # -----------------
    def calculate_dsri(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        current_ratio = _ratio(current.balance_sheet.accounts_receivable, current.income_statement.revenue)
        prior_ratio = _ratio(prior.balance_sheet.accounts_receivable, prior.income_statement.revenue)
        return _ratio(current_ratio, prior_ratio)

    def calculate_gmi(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        # Prior margin over current margin: a shrinking margin pushes the index above 1.
        return _ratio(prior.income_statement.gross_margin(), current.income_statement.gross_margin())

    def calculate_aqi(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        def asset_quality(snapshot: FinancialSnapshot) -> float:
            bs = snapshot.balance_sheet
            return 1.0 - safe_divide(bs.current_assets + bs.ppe, bs.total_assets, 0.0)

        return _ratio(asset_quality(current), asset_quality(prior))

    def calculate_sgi(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        return _ratio(current.income_statement.revenue, prior.income_statement.revenue)

    def calculate_depi(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        def depreciation_rate(snapshot: FinancialSnapshot) -> float:
            dep = snapshot.income_statement.depreciation
            return _ratio(dep, dep + snapshot.balance_sheet.ppe)

        return _ratio(depreciation_rate(prior), depreciation_rate(current))

    def calculate_sgai(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        current_ratio = _ratio(current.income_statement.sga_expense, current.income_statement.revenue)
        prior_ratio = _ratio(prior.income_statement.sga_expense, prior.income_statement.revenue)
        return _ratio(current_ratio, prior_ratio)

    def calculate_lvgi(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> float:
        current_lev = _ratio(current.balance_sheet.total_liabilities, current.balance_sheet.total_assets)
        prior_lev = _ratio(prior.balance_sheet.total_liabilities, prior.balance_sheet.total_assets)
        return _ratio(current_lev, prior_lev)

    def calculate_tata(self, current: FinancialSnapshot) -> float:
        accruals = current.income_statement.net_income - current.cash_flow.operating_cash_flow
        return safe_divide(accruals, current.balance_sheet.total_assets, 0.0)

    # -----------------
    # Interpretation
    # -----------------
    @staticmethod
    def is_likely_manipulator(m_score: float) -> bool:
        return m_score > THRESHOLD

    @staticmethod
    def get_zone(m_score: float) -> str:
        if m_score > -1.78:
            return "High Risk"
        if m_score > THRESHOLD:
            return "Elevated Risk"
        if m_score > -2.50:
            return "Moderate Risk"
        return "Low Risk"

    @staticmethod
    def score_to_probability(m_score: float) -> float:
        """Logistic transform centred on the manipulation threshold."""
        exponent = -(m_score - THRESHOLD)
        if exponent > 700:  # math.exp overflows past ~709
            return 0.0
        return 1.0 / (1.0 + math.exp(exponent))

    @staticmethod
    def generate_flags(result: BeneishResult) -> List[str]:
        flags: List[str] = []
        for attr, benchmark, message in FLAG_RULES:
            if getattr(result, attr) > benchmark:
                flags.append(message)
        return flags
