from __future__ import annotations

import math

from fraud_analyzer.domain.models.financials import (
    BalanceSheet,
    CashFlowStatement,
    FinancialSnapshot,
    IncomeStatement,
)
from fraud_analyzer.domain.services.benford import (
    BenfordModel,
    BenfordSecondDigitModel,
    extract_benford_values,
    extract_first_digit,
    extract_second_digit,
)


def close(a: float, b: float, tol: float = 1e-6) -> bool:
    return abs(a - b) <= tol


def benford_sample():
    """1000 values whose leading digits follow the expected distribution exactly."""
    counts = [301, 176, 125, 97, 79, 67, 58, 51, 46]
    values = []
    for digit, count in enumerate(counts, start=1):
        values.extend(digit * 1000.0 + i for i in range(count))
    return values


def test_expected_distributions_sum_to_one():
    assert close(sum(BenfordModel.expected_distribution()), 1.0, tol=1e-9)
    assert close(sum(BenfordSecondDigitModel.expected_distribution()), 1.0, tol=1e-3)


def test_first_digit_extraction():
    assert extract_first_digit(1234.0) == 1
    assert extract_first_digit(-987.0) == 9
    assert extract_first_digit(1.0) == 1
    assert extract_first_digit(9.99) == 9
    assert extract_first_digit(0.5) == 0
    assert extract_first_digit(0.0) == 0
    assert extract_first_digit(float("nan")) == 0
    assert extract_first_digit(math.inf) == 0


def test_second_digit_extraction():
    assert extract_second_digit(1234.0) == 2
    assert extract_second_digit(10.0) == 0
    assert extract_second_digit(-47.0) == 7
    assert extract_second_digit(5.0) is None
    assert extract_second_digit(float("nan")) is None


def test_conforming_sample_is_close_conformity():
    result = BenfordModel().calculate(benford_sample())
    assert result.sample_size == 1000
    assert result.counts == [301, 176, 125, 97, 79, 67, 58, 51, 46]
    assert result.mad < 1e-9
    assert result.chi_square < 1e-6
    assert result.conformity == "Close Conformity"
    assert not result.is_suspicious
    assert result.suspicious_digits == []
    assert result.risk_score < 1e-6


def test_single_digit_sample_is_nonconforming():
    result = BenfordModel().calculate([100.0] * 50)
    assert result.actual_distribution[0] == 1.0
    assert close(result.mad, 1.398 / 9)
    assert close(result.deviation_percent, result.mad * 100.0)
    assert result.conformity == "Nonconformity"
    assert result.is_suspicious
    assert result.risk_score == 1.0
    assert 1 in result.suspicious_digits
    assert "Digit 1 significantly deviates from expected" in result.anomalies
    assert len(result.z_scores) == 9


def test_invalid_values_are_excluded():
    result = BenfordModel().calculate([0.0, 0.3, float("nan"), float("inf"), 250.0, -31.0])
    assert result.sample_size == 2
    assert result.counts[1] == 1
    assert result.counts[2] == 1


def test_empty_sample_reports_insufficient_data():
    result = BenfordModel().calculate([])
    assert result.sample_size == 0
    assert result.conformity == "Insufficient Data"
    assert result.mad == 0.0
    assert result.chi_square == 0.0
    assert not result.is_suspicious
    assert result.risk_score == 0.0


def test_conformity_bands_and_risk_scaling():
    assert BenfordModel.get_conformity_level(0.006) == "Close Conformity"
    assert BenfordModel.get_conformity_level(0.0061) == "Acceptable Conformity"
    assert BenfordModel.get_conformity_level(0.012) == "Acceptable Conformity"
    assert BenfordModel.get_conformity_level(0.015) == "Marginally Acceptable"
    assert BenfordModel.get_conformity_level(0.0151) == "Nonconformity"
    assert close(BenfordModel.mad_to_risk(0.01), 0.5)
    assert BenfordModel.mad_to_risk(0.05) == 1.0


def test_second_digit_model():
    result = BenfordSecondDigitModel().calculate([15.0] * 20 + [3.0])
    assert result.digit_position == "second"
    assert result.sample_size == 20
    assert result.counts[5] == 20
    assert result.is_suspicious
    assert result.conformity == "Suspicious"

    counts = [1197, 1139, 1088, 1043, 1003, 967, 934, 904, 876, 850]
    values = [10.0 + digit for digit, count in enumerate(counts) for _ in range(count)]
    conforming = BenfordSecondDigitModel().calculate(values)
    assert conforming.conformity == "Conforming"
    assert not conforming.is_suspicious

    empty = BenfordSecondDigitModel().calculate([])
    assert empty.sample_size == 0
    assert not empty.is_suspicious
    assert empty.conformity == "Insufficient Data"


def test_extract_values_takes_five_items_per_period():
    snap = FinancialSnapshot(
        balance_sheet=BalanceSheet(total_assets=3000.0, total_liabilities=1500.0),
        income_statement=IncomeStatement(revenue=2000.0, net_income=150.0, gross_profit=999.0),
        cash_flow=CashFlowStatement(operating_cash_flow=175.0),
    )
    assert extract_benford_values([snap, snap]) == [2000.0, 150.0, 3000.0, 1500.0, 175.0] * 2
