"""Result records produced by the scoring models and the aggregator."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fraud_analyzer.domain.models.financials import CompanyInfo
from fraud_analyzer.version import ANALYZER_VERSION


class RiskLevel(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    ELEVATED = "ELEVATED"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        """Position in the total order LOW < MODERATE < ELEVATED < HIGH < CRITICAL."""
        return _RISK_ORDER.index(self)


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MODERATE, RiskLevel.ELEVATED, RiskLevel.HIGH, RiskLevel.CRITICAL]


class TrendDirection(str, Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


class AnalysisStatus(str, Enum):
    OK = "OK"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"


class InsufficientDataError(ValueError):
    """Raised when fewer than two valid periods were available for analysis."""


@dataclass
class BeneishResult:
    m_score: float
    dsri: float  # days sales in receivables index
    gmi: float  # gross margin index
    aqi: float  # asset quality index
    sgi: float  # sales growth index
    depi: float  # depreciation index
    sgai: float  # SG&A index
    lvgi: float  # leverage index
    tata: float  # total accruals to total assets
    probability: float
    risk_score: float
    likely_manipulator: bool
    zone: str
    flags: List[str] = field(default_factory=list)


@dataclass
class AltmanResult:
    variant: str
    z_score: float
    x1: float
    x2: float
    x3: float
    x4: float
    x5: float
    zone: str
    bankruptcy_probability: float
    risk_score: float


@dataclass
class PiotroskiResult:
    f_score: int
    roa_positive: bool
    cfo_positive: bool
    roa_increasing: bool
    cfo_greater_than_ni: bool
    leverage_decreasing: bool
    current_ratio_increasing: bool
    no_dilution: bool
    gross_margin_increasing: bool
    asset_turnover_increasing: bool
    interpretation: str
    risk_score: float


@dataclass
class FraudTriangleResult:
    pressure_score: float
    opportunity_score: float
    rationalization_score: float
    overall_risk: float
    risk_level: RiskLevel
    pressure_indicators: List[str] = field(default_factory=list)
    opportunity_indicators: List[str] = field(default_factory=list)
    rationalization_indicators: List[str] = field(default_factory=list)

    @property
    def risk_score(self) -> float:
        return self.overall_risk


@dataclass
class BenfordResult:
    digit_position: str  # "first" or "second"
    expected_distribution: List[float]
    actual_distribution: List[float]
    counts: List[int]
    sample_size: int
    chi_square: float
    mad: float  # mean absolute deviation
    deviation_percent: float
    conformity: str
    is_suspicious: bool
    risk_score: float
    suspicious_digits: List[int] = field(default_factory=list)
    z_scores: List[float] = field(default_factory=list)
    anomalies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RedFlag:
    type: str
    title: str
    description: str
    severity: RiskLevel
    source: str
    confidence: float


@dataclass
class TrendAnalysis:
    """Direction per metric from a newest-vs-oldest comparison.

    Only the metrics listed in ``evaluated_metrics`` are computed; the
    cash-flow, debt and margin directions keep their STABLE default.
    """

    revenue_trend: TrendDirection = TrendDirection.STABLE
    income_trend: TrendDirection = TrendDirection.STABLE
    cash_flow_trend: TrendDirection = TrendDirection.STABLE
    debt_trend: TrendDirection = TrendDirection.STABLE
    margin_trend: TrendDirection = TrendDirection.STABLE
    evaluated_metrics: Tuple[str, ...] = ()
    observations: List[str] = field(default_factory=list)


@dataclass
class AnalysisResult:
    """Composite verdict for one company.

    Model fields are ``None`` when the model did not run, which is distinct
    from a model that ran and scored zero. When ``status`` is
    INSUFFICIENT_DATA the composite score and risk level are ``None`` too.
    """

    company: CompanyInfo
    status: AnalysisStatus = AnalysisStatus.OK
    error: Optional[str] = None
    filings_analyzed: int = 0
    beneish: Optional[BeneishResult] = None
    altman: Optional[AltmanResult] = None
    piotroski: Optional[PiotroskiResult] = None
    fraud_triangle: Optional[FraudTriangleResult] = None
    benford: Optional[BenfordResult] = None
    composite_risk_score: Optional[float] = None
    overall_risk_level: Optional[RiskLevel] = None
    risk_summary: str = ""
    recommendation: str = ""
    red_flags: List[RedFlag] = field(default_factory=list)
    trends: TrendAnalysis = field(default_factory=TrendAnalysis)
    analysis_timestamp: str = ""
    version: str = ANALYZER_VERSION

    @property
    def is_complete(self) -> bool:
        return self.status is AnalysisStatus.OK

    def raise_for_status(self) -> None:
        if self.status is AnalysisStatus.INSUFFICIENT_DATA:
            raise InsufficientDataError(self.error or "Insufficient financial data for analysis")

    def model_risk_scores(self) -> Dict[str, Optional[float]]:
        """Risk contribution per model, ``None`` for models that did not run."""
        return {
            "beneish": self.beneish.risk_score if self.beneish else None,
            "altman": self.altman.risk_score if self.altman else None,
            "piotroski": self.piotroski.risk_score if self.piotroski else None,
            "fraud_triangle": self.fraud_triangle.overall_risk if self.fraud_triangle else None,
            "benford": self.benford.risk_score if self.benford else None,
        }
