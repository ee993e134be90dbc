"""Composite fraud-risk aggregator.

Runs the five scoring models over a company's snapshots (newest first),
derives red flags and trends, and blends the model risk scores into one
weighted composite in [0, 1].
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from fraud_analyzer.domain.models.financials import CompanyInfo, FinancialSnapshot, valid_snapshots
from fraud_analyzer.domain.models.results import (
    AltmanResult,
    AnalysisResult,
    AnalysisStatus,
    BeneishResult,
    BenfordResult,
    FraudTriangleResult,
    PiotroskiResult,
    RedFlag,
    RiskLevel,
    TrendAnalysis,
    TrendDirection,
)
from fraud_analyzer.domain.models.weights import RiskWeights
from fraud_analyzer.domain.services import benford as benford_module
from fraud_analyzer.domain.services.altman import AltmanModel
from fraud_analyzer.domain.services.beneish import BeneishModel
from fraud_analyzer.domain.services.benford import BenfordModel
from fraud_analyzer.domain.services.fraud_triangle import FraudTriangleModel
from fraud_analyzer.domain.services.piotroski import PiotroskiModel
from fraud_analyzer.utils.numeric import clamp

logger = logging.getLogger(__name__)

MIN_PERIODS = 2
RED_FLAG_SATURATION = 5
TREND_UP = 1.05
TREND_DOWN = 0.95

ALTMAN_DISTRESS = 1.81
PIOTROSKI_WEAK = 3
FRAUD_TRIANGLE_HIGH = 0.6

RECOMMENDATIONS = {
    RiskLevel.CRITICAL: "CRITICAL RISK: Multiple fraud indicators detected. "
    "Recommend immediate detailed investigation.",
    RiskLevel.HIGH: "HIGH RISK: Significant fraud indicators present. "
    "Exercise extreme caution and conduct thorough due diligence.",
    RiskLevel.ELEVATED: "ELEVATED RISK: Some concerning indicators detected. "
    "Recommend additional scrutiny of financial statements.",
    RiskLevel.MODERATE: "MODERATE RISK: Minor concerns noted. "
    "Standard due diligence procedures recommended.",
    RiskLevel.LOW: "LOW RISK: No significant fraud indicators detected. "
    "Financial statements appear consistent with expected patterns.",
}

INSUFFICIENT_DATA_MESSAGE = "Insufficient financial data for analysis (need at least 2 periods)"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


class FraudAnalyzer:
    """Blend the model outputs into one verdict.

    The analyzer holds nothing but its (frozen) weights, so a single
    instance may serve concurrent ``analyze`` calls.
    """

    def __init__(self, weights: Optional[RiskWeights] = None) -> None:
        self.weights = weights if weights is not None else RiskWeights()
        self.beneish_model = BeneishModel()
        self.altman_model = AltmanModel()
        self.piotroski_model = PiotroskiModel()
        self.fraud_triangle_model = FraudTriangleModel()
        self.benford_model = BenfordModel()

    def analyze(
        self,
        snapshots: Sequence[FinancialSnapshot],
        company: Optional[CompanyInfo] = None,
        *,
        market_cap: float = 0.0,
    ) -> AnalysisResult:
        company = company or CompanyInfo()
        for snapshot in snapshots:
            if snapshot is not None and not snapshot.is_valid:
                logger.warning(
                    "Skipping invalid snapshot (FY%s): %s", snapshot.fiscal_year or "?", snapshot.error_message
                )
        usable = valid_snapshots(snapshots)

        result = AnalysisResult(
            company=company,
            filings_analyzed=len(usable),
            analysis_timestamp=_utc_timestamp(),
        )
        if len(usable) < MIN_PERIODS:
            logger.warning("Insufficient data: %d valid period(s)", len(usable))
            result.status = AnalysisStatus.INSUFFICIENT_DATA
            result.error = INSUFFICIENT_DATA_MESSAGE
            result.risk_summary = INSUFFICIENT_DATA_MESSAGE
            return result

        current, prior = usable[0], usable[1]
        result.beneish = self.calculate_beneish(current, prior)
        result.altman = self.calculate_altman(current, market_cap)
        result.piotroski = self.calculate_piotroski(current, prior)
        result.fraud_triangle = self.calculate_fraud_triangle(usable)
        result.benford = self.calculate_benford(usable)

        result.red_flags = self.detect_red_flags(result)
        result.trends = self.analyze_trends(usable)
        result.composite_risk_score = self.calculate_composite_score(result)
        result.overall_risk_level = self.determine_risk_level(result.composite_risk_score)
        result.risk_summary = f"Analysis complete with {len(result.red_flags)} red flags detected."
        result.recommendation = self.generate_recommendation(result.overall_risk_level)
        logger.debug(
            "Composite %.3f (%s) for %s",
            result.composite_risk_score,
            result.overall_risk_level.value,
            company.name or company.cik,
        )
        return result

    # -----------------
    # Model entry points
    # -----------------
    def calculate_beneish(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> BeneishResult:
        return self.beneish_model.calculate(current, prior)

    def calculate_altman(self, current: FinancialSnapshot, market_cap: float = 0.0) -> AltmanResult:
        return self.altman_model.calculate(current, market_cap)

    def calculate_piotroski(self, current: FinancialSnapshot, prior: FinancialSnapshot) -> PiotroskiResult:
        return self.piotroski_model.calculate(current, prior)

    def calculate_fraud_triangle(self, snapshots: Sequence[FinancialSnapshot]) -> FraudTriangleResult:
        return self.fraud_triangle_model.calculate(snapshots)

    def calculate_benford(self, snapshots: Sequence[FinancialSnapshot]) -> BenfordResult:
        return self.benford_model.calculate(self.extract_benford_values(snapshots))

    @staticmethod
    def extract_benford_values(snapshots: Sequence[FinancialSnapshot]) -> List[float]:
        return benford_module.extract_benford_values(snapshots)

    # -----------------
    # Aggregation
    # -----------------
    @staticmethod
    def detect_red_flags(result: AnalysisResult) -> List[RedFlag]:
        flags: List[RedFlag] = []
        if result.beneish and result.beneish.likely_manipulator:
            flags.append(
                RedFlag(
                    type="EARNINGS_MANIPULATION",
                    title="Beneish M-Score Above Threshold",
                    description="M-Score indicates potential earnings manipulation",
                    severity=RiskLevel.HIGH,
                    source="Beneish Model",
                    confidence=0.9,
                )
            )
        if result.altman and result.altman.z_score < ALTMAN_DISTRESS:
            flags.append(
                RedFlag(
                    type="BANKRUPTCY_RISK",
                    title="Altman Z-Score in Distress Zone",
                    description="High probability of bankruptcy within 2 years",
                    severity=RiskLevel.HIGH,
                    source="Altman Model",
                    confidence=0.85,
                )
            )
        if result.piotroski and result.piotroski.f_score <= PIOTROSKI_WEAK:
            flags.append(
                RedFlag(
                    type="WEAK_FUNDAMENTALS",
                    title="Low Piotroski F-Score",
                    description="Financial fundamentals indicate weakness",
                    severity=RiskLevel.ELEVATED,
                    source="Piotroski Model",
                    confidence=0.7,
                )
            )
        if result.fraud_triangle and result.fraud_triangle.overall_risk > FRAUD_TRIANGLE_HIGH:
            flags.append(
                RedFlag(
                    type="FRAUD_TRIANGLE",
                    title="High Fraud Triangle Risk",
                    description="Multiple fraud risk factors detected",
                    severity=RiskLevel.HIGH,
                    source="Fraud Triangle Model",
                    confidence=0.8,
                )
            )
        if result.benford and result.benford.is_suspicious:
            flags.append(
                RedFlag(
                    type="BENFORD_ANOMALY",
                    title="Benford's Law Deviation",
                    description="Unusual digit distribution in financial figures",
                    severity=RiskLevel.ELEVATED,
                    source="Benford Model",
                    confidence=0.65,
                )
            )
        return flags

    @staticmethod
    def _direction(newest: float, oldest: float) -> TrendDirection:
        if newest > oldest * TREND_UP:
            return TrendDirection.IMPROVING
        if newest < oldest * TREND_DOWN:
            return TrendDirection.DECLINING
        return TrendDirection.STABLE

    def analyze_trends(self, snapshots: Sequence[FinancialSnapshot]) -> TrendAnalysis:
        """Compare the newest and oldest period for revenue and net income."""
        trends = TrendAnalysis(evaluated_metrics=("revenue", "net_income"))
        if len(snapshots) < MIN_PERIODS:
            return trends
        newest, oldest = snapshots[0], snapshots[-1]
        trends.revenue_trend = self._direction(newest.income_statement.revenue, oldest.income_statement.revenue)
        trends.income_trend = self._direction(
            newest.income_statement.net_income, oldest.income_statement.net_income
        )
        labels = {
            TrendDirection.IMPROVING: "growing",
            TrendDirection.DECLINING: "declining",
            TrendDirection.STABLE: "stable",
        }
        trends.observations = [
            f"Revenue is {labels[trends.revenue_trend]} across {len(snapshots)} periods",
            f"Net income is {labels[trends.income_trend]} across {len(snapshots)} periods",
        ]
        return trends

    def calculate_composite_score(self, result: AnalysisResult) -> float:
        w = self.weights
        score = 0.0
        if result.beneish:
            score += w.beneish * result.beneish.risk_score
        if result.altman:
            score += w.altman * result.altman.risk_score
        if result.piotroski:
            score += w.piotroski * result.piotroski.risk_score
        if result.fraud_triangle:
            score += w.fraud_triangle * result.fraud_triangle.overall_risk
        if result.benford:
            score += w.benford * result.benford.risk_score
        score += w.red_flags * min(1.0, len(result.red_flags) / RED_FLAG_SATURATION)
        return clamp(score, 0.0, 1.0)

    @staticmethod
    def determine_risk_level(score: float) -> RiskLevel:
        if score >= 0.8:
            return RiskLevel.CRITICAL
        if score >= 0.6:
            return RiskLevel.HIGH
        if score >= 0.4:
            return RiskLevel.ELEVATED
        if score >= 0.2:
            return RiskLevel.MODERATE
        return RiskLevel.LOW

    @staticmethod
    def generate_recommendation(level: RiskLevel) -> str:
        return RECOMMENDATIONS[level]
