from __future__ import annotations

from fraud_analyzer.domain.models.financials import (
    BalanceSheet,
    CashFlowStatement,
    FinancialSnapshot,
    IncomeStatement,
)
from fraud_analyzer.domain.services.piotroski import PiotroskiModel


def close(a: float, b: float, tol: float = 1e-3) -> bool:
    return abs(a - b) <= tol


def make_snapshot(net_income, cfo, long_term_debt, current_assets, revenue, gross_profit) -> FinancialSnapshot:
    return FinancialSnapshot(
        balance_sheet=BalanceSheet(
            total_assets=1000.0,
            long_term_debt=long_term_debt,
            current_assets=current_assets,
            current_liabilities=200.0,
            shares_outstanding=100.0,
        ),
        income_statement=IncomeStatement(revenue=revenue, gross_profit=gross_profit, net_income=net_income),
        cash_flow=CashFlowStatement(operating_cash_flow=cfo),
    )


def test_improving_company_scores_strong():
    prior = make_snapshot(50.0, 60.0, 300.0, 300.0, 800.0, 240.0)
    current = make_snapshot(80.0, 100.0, 250.0, 330.0, 800.0, 230.0)

    result = PiotroskiModel().calculate(current, prior)

    assert result.roa_positive and result.cfo_positive
    assert result.roa_increasing and result.cfo_greater_than_ni
    assert result.leverage_decreasing and result.current_ratio_increasing
    assert result.no_dilution
    assert not result.gross_margin_increasing
    assert not result.asset_turnover_increasing
    assert result.f_score == 7
    assert result.interpretation == "Strong"
    assert close(result.risk_score, 0.222)


def test_empty_statements_score_weak():
    result = PiotroskiModel().calculate(FinancialSnapshot(), FinancialSnapshot())
    # equal (zero) share counts still count as no dilution
    assert result.f_score == 1
    assert result.no_dilution
    assert result.interpretation == "Weak"
    assert close(result.risk_score, 8 / 9)


def test_dilution_is_penalized():
    prior = make_snapshot(50.0, 60.0, 300.0, 300.0, 800.0, 240.0)
    current = FinancialSnapshot(
        balance_sheet=BalanceSheet(total_assets=1000.0, shares_outstanding=120.0),
        income_statement=prior.income_statement,
        cash_flow=prior.cash_flow,
    )
    assert not PiotroskiModel().calculate(current, prior).no_dilution


def test_interpretation_bands():
    assert PiotroskiModel.get_interpretation(9) == "Strong"
    assert PiotroskiModel.get_interpretation(7) == "Strong"
    assert PiotroskiModel.get_interpretation(4) == "Moderate"
    assert PiotroskiModel.get_interpretation(3) == "Weak"
    assert PiotroskiModel.score_to_risk(9) == 0.0
    assert PiotroskiModel.score_to_risk(0) == 1.0
