from __future__ import annotations

import json

from fraud_analyzer.domain.models.financials import (
    BalanceSheet,
    CashFlowStatement,
    CompanyInfo,
    FilingInfo,
    FinancialSnapshot,
    IncomeStatement,
)
from fraud_analyzer.domain.services.analyzer import FraudAnalyzer
from fraud_analyzer.reports import exporter
from fraud_analyzer.reports.charts import save_benford_chart


def make_snapshot(year: int, revenue: float, net_income: float) -> FinancialSnapshot:
    return FinancialSnapshot(
        filing=FilingInfo(accession_number=f"0000-{year}", form_type="10-K", filed_date=f"{year + 1}-02-01", fiscal_year=year),
        balance_sheet=BalanceSheet(
            total_assets=2000.0,
            current_assets=900.0,
            current_liabilities=400.0,
            total_liabilities=800.0,
            total_equity=1200.0,
            retained_earnings=500.0,
        ),
        income_statement=IncomeStatement(
            revenue=revenue, gross_profit=revenue * 0.4, operating_income=revenue * 0.1, net_income=net_income
        ),
        cash_flow=CashFlowStatement(operating_cash_flow=net_income * 1.1),
    )


def make_inputs():
    company = CompanyInfo(name="A&B Holdings", ticker="AB", cik="42")
    snapshots = [make_snapshot(2023, 1300.0, 140.0), make_snapshot(2022, 1150.0, 120.0)]
    return company, snapshots


def test_json_export_sections():
    company, snapshots = make_inputs()
    result = FraudAnalyzer().analyze(snapshots, company)
    payload = json.loads(exporter.to_json(result, snapshots=snapshots))

    assert payload["company"]["name"] == "A&B Holdings"
    assert payload["status"] == "OK"
    assert payload["overall_risk"]["level"] == result.overall_risk_level.value
    assert payload["overall_risk"]["score"] == result.composite_risk_score
    assert payload["overall_risk"]["components"]["beneish"] == result.beneish.risk_score
    assert set(payload["models"]) == {"beneish", "altman", "piotroski", "fraud_triangle", "benford"}
    assert payload["models"]["piotroski"]["f_score"] == result.piotroski.f_score
    assert payload["trends"]["evaluated_metrics"] == ["revenue", "net_income"]
    assert [f["accession"] for f in payload["filings"]] == ["0000-2023", "0000-2022"]
    assert payload["version"] == result.version

    compact = exporter.to_json(result, pretty=False)
    assert "\n" not in compact


def test_insufficient_result_exports_status_not_scores():
    company, snapshots = make_inputs()
    result = FraudAnalyzer().analyze(snapshots[:1], company)

    payload = json.loads(exporter.to_json(result))
    assert payload["status"] == "INSUFFICIENT_DATA"
    assert payload["error"]
    assert payload["overall_risk"]["score"] is None
    assert set(payload["overall_risk"]["components"].values()) == {None}
    assert payload["models"] == {}

    csv_lines = exporter.to_csv(result).splitlines()
    assert "Status,INSUFFICIENT_DATA" in csv_lines
    assert not any(line.startswith("Risk Score") for line in csv_lines)

    assert "INSUFFICIENT_DATA" in exporter.to_markdown(result)
    assert "INSUFFICIENT_DATA" in exporter.to_html(result)


def test_csv_summary_rows():
    company, snapshots = make_inputs()
    result = FraudAnalyzer().analyze(snapshots, company)
    lines = exporter.to_csv(result).splitlines()

    assert lines[0] == "Metric,Value"
    assert "Ticker,AB" in lines
    assert f"Piotroski F-Score,{result.piotroski.f_score}" in lines
    assert f"Red Flags Count,{len(result.red_flags)}" in lines


def test_filings_csv():
    _, snapshots = make_inputs()
    lines = exporter.filings_to_csv(snapshots).splitlines()
    assert lines[0] == "Accession,Form,Filed Date,Revenue,Net Income,Total Assets,Total Liabilities"
    assert lines[1].startswith("0000-2023,10-K,2024-02-01,1300.0,140.0")
    assert len(lines) == 3


def test_markdown_and_html_reports():
    company, snapshots = make_inputs()
    result = FraudAnalyzer().analyze(snapshots, company)

    markdown = exporter.to_markdown(result, snapshots)
    assert "# Fraud Risk Report: A&B Holdings" in markdown
    assert "Beneish M-Score" in markdown
    assert result.recommendation in markdown

    html = exporter.to_html(result, snapshots)
    assert html.startswith("<!DOCTYPE html>")
    assert "A&amp;B Holdings" in html
    assert "Piotroski F-Score" in html


def test_benford_chart_is_written(tmp_path):
    company, snapshots = make_inputs()
    result = FraudAnalyzer().analyze(snapshots, company)
    path = save_benford_chart(result.benford, tmp_path, name="AB")

    assert path == tmp_path / "charts" / "AB_first_digit.png"
    assert path.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
