"""Domain models describing one reporting period of financial statements."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Iterable, List, Optional

from fraud_analyzer.utils.numeric import is_finite


class FilingType(str, Enum):
    """SEC form types the analyzer understands."""

    UNKNOWN = "UNKNOWN"
    K10 = "10-K"
    K10A = "10-K/A"
    Q10 = "10-Q"
    Q10A = "10-Q/A"
    K8 = "8-K"
    F20 = "20-F"

    @classmethod
    def from_form(cls, form: Optional[str]) -> "FilingType":
        if not form:
            return cls.UNKNOWN
        normalized = str(form).strip().upper()
        for member in cls:
            if member.value == normalized:
                return member
        return cls.UNKNOWN


class PeriodType(str, Enum):
    ANNUAL = "annual"
    QUARTERLY = "quarterly"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FilingInfo:
    """Filing metadata attached to a snapshot."""

    cik: str = ""
    accession_number: str = ""
    form_type: str = ""
    filed_date: str = ""
    report_date: str = ""
    filing_type: FilingType = FilingType.UNKNOWN
    fiscal_year: int = 0
    fiscal_quarter: int = 0

    def is_annual(self) -> bool:
        return self.filing_type in (FilingType.K10, FilingType.K10A, FilingType.F20)

    def is_quarterly(self) -> bool:
        return self.filing_type in (FilingType.Q10, FilingType.Q10A)

    @property
    def period_type(self) -> PeriodType:
        if self.is_annual():
            return PeriodType.ANNUAL
        if self.is_quarterly():
            return PeriodType.QUARTERLY
        return PeriodType.UNKNOWN


@dataclass(frozen=True)
class BalanceSheet:
    total_assets: float = 0.0
    current_assets: float = 0.0
    cash: float = 0.0
    accounts_receivable: float = 0.0
    inventory: float = 0.0
    ppe: float = 0.0  # property, plant & equipment
    goodwill: float = 0.0
    intangible_assets: float = 0.0
    total_liabilities: float = 0.0
    current_liabilities: float = 0.0
    accounts_payable: float = 0.0
    long_term_debt: float = 0.0
    total_equity: float = 0.0
    retained_earnings: float = 0.0
    shares_outstanding: float = 0.0

    def working_capital(self) -> float:
        return self.current_assets - self.current_liabilities

    def current_ratio(self) -> float:
        return self.current_assets / self.current_liabilities if self.current_liabilities > 0 else 0.0

    def quick_ratio(self) -> float:
        if self.current_liabilities <= 0:
            return 0.0
        return (self.current_assets - self.inventory) / self.current_liabilities

    def debt_ratio(self) -> float:
        return self.total_liabilities / self.total_assets if self.total_assets > 0 else 0.0

    def debt_to_equity(self) -> float:
        return self.total_liabilities / self.total_equity if self.total_equity > 0 else 0.0


@dataclass(frozen=True)
class IncomeStatement:
    revenue: float = 0.0
    cost_of_revenue: float = 0.0
    gross_profit: float = 0.0
    operating_expenses: float = 0.0
    rd_expense: float = 0.0
    sga_expense: float = 0.0
    depreciation: float = 0.0
    operating_income: float = 0.0
    interest_expense: float = 0.0
    net_income: float = 0.0
    eps: float = 0.0

    def gross_margin(self) -> float:
        return self.gross_profit / self.revenue if self.revenue > 0 else 0.0

    def operating_margin(self) -> float:
        return self.operating_income / self.revenue if self.revenue > 0 else 0.0

    def net_margin(self) -> float:
        return self.net_income / self.revenue if self.revenue > 0 else 0.0


@dataclass(frozen=True)
class CashFlowStatement:
    operating_cash_flow: float = 0.0
    depreciation_amortization: float = 0.0
    accounts_receivable_change: float = 0.0
    inventory_change: float = 0.0
    accounts_payable_change: float = 0.0
    investing_cash_flow: float = 0.0
    capital_expenditures: float = 0.0
    financing_cash_flow: float = 0.0
    dividends_paid: float = 0.0
    stock_buybacks: float = 0.0
    net_change_in_cash: float = 0.0

    def free_cash_flow(self) -> float:
        return self.operating_cash_flow - self.capital_expenditures


@dataclass(frozen=True)
class FinancialSnapshot:
    """One reporting period: the three statements plus filing metadata.

    ``is_valid`` must be checked before the snapshot takes part in any ratio
    math; an invalid snapshot carries zero-filled statements and an
    ``error_message`` explaining why it could not be built.
    """

    filing: FilingInfo = field(default_factory=FilingInfo)
    balance_sheet: BalanceSheet = field(default_factory=BalanceSheet)
    income_statement: IncomeStatement = field(default_factory=IncomeStatement)
    cash_flow: CashFlowStatement = field(default_factory=CashFlowStatement)
    is_valid: bool = True
    error_message: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.is_valid:
            return
        bad = self.non_finite_field()
        if bad is not None:
            # frozen: flip validity in place so the aggregator drops the period
            object.__setattr__(self, "is_valid", False)
            object.__setattr__(self, "error_message", f"Non-finite value in {bad}")

    def non_finite_field(self) -> Optional[str]:
        """Dotted name of the first NaN or infinite statement field, if any."""
        for section in ("balance_sheet", "income_statement", "cash_flow"):
            statement = getattr(self, section)
            for item in fields(statement):
                if not is_finite(getattr(statement, item.name)):
                    return f"{section}.{item.name}"
        return None

    @classmethod
    def invalid(cls, message: str, filing: Optional[FilingInfo] = None) -> "FinancialSnapshot":
        return cls(filing=filing or FilingInfo(), is_valid=False, error_message=message)

    @property
    def fiscal_year(self) -> int:
        return self.filing.fiscal_year

    @property
    def period_type(self) -> PeriodType:
        return self.filing.period_type


@dataclass(frozen=True)
class CompanyInfo:
    name: str = ""
    ticker: str = ""
    cik: str = ""
    sic: str = ""  # industry classification code
    industry: str = ""
    exchange: str = ""
    fiscal_year_end: str = ""


def valid_snapshots(snapshots: Iterable[FinancialSnapshot]) -> List[FinancialSnapshot]:
    """Keep only snapshots flagged valid, preserving order."""
    return [s for s in snapshots if s is not None and s.is_valid]
