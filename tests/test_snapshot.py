from __future__ import annotations

import pytest

from fraud_analyzer.domain.models.financials import (
    BalanceSheet,
    CashFlowStatement,
    FilingInfo,
    FilingType,
    FinancialSnapshot,
    IncomeStatement,
    PeriodType,
    valid_snapshots,
)
from fraud_analyzer.domain.models.weights import RiskWeights


def close(a: float, b: float, tol: float = 1e-6) -> bool:
    return abs(a - b) <= tol


def test_balance_sheet_ratios():
    bs = BalanceSheet(
        total_assets=1000.0,
        current_assets=400.0,
        inventory=100.0,
        total_liabilities=600.0,
        current_liabilities=200.0,
        total_equity=400.0,
    )
    assert close(bs.working_capital(), 200.0)
    assert close(bs.current_ratio(), 2.0)
    assert close(bs.quick_ratio(), 1.5)
    assert close(bs.debt_ratio(), 0.6)
    assert close(bs.debt_to_equity(), 1.5)


def test_ratios_default_to_zero_without_denominator():
    bs = BalanceSheet(current_assets=100.0, total_liabilities=50.0, total_equity=-10.0)
    assert bs.current_ratio() == 0.0
    assert bs.quick_ratio() == 0.0
    assert bs.debt_ratio() == 0.0
    assert bs.debt_to_equity() == 0.0

    inc = IncomeStatement(revenue=0.0, gross_profit=10.0, net_income=5.0)
    assert inc.gross_margin() == 0.0
    assert inc.operating_margin() == 0.0
    assert inc.net_margin() == 0.0


def test_income_and_cash_flow_derived_values():
    inc = IncomeStatement(revenue=200.0, gross_profit=80.0, operating_income=30.0, net_income=20.0)
    assert close(inc.gross_margin(), 0.4)
    assert close(inc.operating_margin(), 0.15)
    assert close(inc.net_margin(), 0.1)

    cf = CashFlowStatement(operating_cash_flow=50.0, capital_expenditures=20.0)
    assert close(cf.free_cash_flow(), 30.0)


def test_filing_type_classification():
    assert FilingType.from_form("10-k") is FilingType.K10
    assert FilingType.from_form("S-1") is FilingType.UNKNOWN
    assert FilingType.from_form(None) is FilingType.UNKNOWN

    annual = FilingInfo(filing_type=FilingType.F20, fiscal_year=2023)
    quarterly = FilingInfo(filing_type=FilingType.Q10A)
    assert annual.is_annual() and not annual.is_quarterly()
    assert quarterly.is_quarterly()
    assert annual.period_type is PeriodType.ANNUAL
    assert FilingInfo(filing_type=FilingType.K8).period_type is PeriodType.UNKNOWN

    snap = FinancialSnapshot(filing=annual)
    assert snap.fiscal_year == 2023
    assert snap.period_type is PeriodType.ANNUAL


def test_invalid_snapshots_are_filtered():
    good = FinancialSnapshot(income_statement=IncomeStatement(revenue=10.0))
    bad = FinancialSnapshot.invalid("missing statements")
    assert not bad.is_valid
    assert bad.error_message == "missing statements"
    assert valid_snapshots([good, bad, None, good]) == [good, good]


def test_non_finite_statement_values_invalidate_snapshot():
    snap = FinancialSnapshot(cash_flow=CashFlowStatement(operating_cash_flow=float("-inf")))
    assert not snap.is_valid
    assert snap.error_message == "Non-finite value in cash_flow.operating_cash_flow"
    assert snap.non_finite_field() == "cash_flow.operating_cash_flow"
    assert valid_snapshots([snap]) == []

    explicit = FinancialSnapshot.invalid("kept message")
    assert explicit.error_message == "kept message"


def test_snapshots_are_immutable():
    snap = FinancialSnapshot()
    with pytest.raises(AttributeError):
        snap.is_valid = False  # type: ignore[misc]


def test_risk_weights_defaults_and_normalization():
    weights = RiskWeights()
    assert close(weights.total(), 1.0)

    doubled = RiskWeights(beneish=0.6, altman=0.5, piotroski=0.3, fraud_triangle=0.3, benford=0.1, red_flags=0.2)
    normalized = doubled.normalized()
    assert close(normalized.total(), 1.0)
    assert close(normalized.beneish, 0.3)

    zero = RiskWeights(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    assert zero.normalized() == zero


def test_risk_weights_from_mapping():
    weights = RiskWeights.from_mapping({"beneish": "0.5", "unknown": 3, "benford": None})
    assert weights.beneish == 0.5
    assert weights.benford == RiskWeights().benford

    with pytest.raises(ValueError):
        RiskWeights.from_mapping({"altman": "heavy"})
