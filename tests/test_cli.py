from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from fraud_analyzer.cli.commands import app

runner = CliRunner()


def period(year: int, revenue: float, net_income: float):
    return {
        "filing": {"form_type": "10-K", "fiscal_year": year, "accession_number": f"acc-{year}"},
        "balance_sheet": {
            "total_assets": 2000.0,
            "current_assets": 900.0,
            "current_liabilities": 400.0,
            "total_liabilities": 800.0,
            "total_equity": 1200.0,
            "retained_earnings": 500.0,
        },
        "income_statement": {"revenue": revenue, "gross_profit": revenue * 0.4, "net_income": net_income},
        "cash_flow": {"operating_cash_flow": net_income * 1.1},
    }


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for var in (
        "APP_DEBUG",
        "LOG_LEVEL",
        "LOG_FILE",
        "FRAUD_CONFIG_FILE",
        "NORMALIZE_WEIGHTS",
        "WEIGHT_BENEISH",
        "WEIGHT_ALTMAN",
        "WEIGHT_PIOTROSKI",
        "WEIGHT_FRAUD_TRIANGLE",
        "WEIGHT_BENFORD",
        "WEIGHT_RED_FLAGS",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "out"))


@pytest.fixture
def statements(tmp_path):
    path = tmp_path / "acme.json"
    path.write_text(
        json.dumps(
            {
                "company": {"name": "Acme Corp", "ticker": "ACME"},
                "periods": [period(2021, 1000.0, 90.0), period(2022, 1100.0, 100.0), period(2023, 1250.0, 120.0)],
            }
        )
    )
    return path


def test_analyze_prints_summary(statements):
    result = runner.invoke(app, ["analyze", str(statements)])
    assert result.exit_code == 0, result.output
    assert "Risk Level" in result.output
    assert "Acme Corp" in result.output


def test_analyze_json_to_stdout(statements):
    result = runner.invoke(app, ["analyze", str(statements), "--format", "json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["company"]["ticker"] == "ACME"
    assert payload["filings_analyzed"] == 3
    assert [f["fiscal_year"] for f in payload["filings"]] == [2023, 2022, 2021]


def test_analyze_writes_output_file_and_chart(statements, tmp_path):
    target = tmp_path / "report" / "acme.md"
    result = runner.invoke(app, ["analyze", str(statements), "--format", "md", "--output", str(target), "--chart"])
    assert result.exit_code == 0, result.output
    assert target.read_text().startswith("# Fraud Risk Report: Acme Corp")
    assert (tmp_path / "out" / "charts" / "ACME_first_digit.png").exists()


def test_analyze_rejects_unknown_format(statements):
    result = runner.invoke(app, ["analyze", str(statements), "--format", "xml"])
    assert result.exit_code == 2


def test_analyze_missing_file_fails(tmp_path):
    result = runner.invoke(app, ["analyze", str(tmp_path / "missing.json")])
    assert result.exit_code == 1


def test_insufficient_data_exits_nonzero(tmp_path):
    path = tmp_path / "one.json"
    path.write_text(json.dumps({"company": {"name": "Solo"}, "periods": [period(2023, 1000.0, 50.0)]}))
    result = runner.invoke(app, ["analyze", str(path), "--format", "csv"])
    assert result.exit_code == 1
    assert "INSUFFICIENT_DATA" in result.output


def test_models_table(statements):
    result = runner.invoke(app, ["models", str(statements)])
    assert result.exit_code == 0, result.output
    for name in ("Beneish", "Altman", "Piotroski", "Benford"):
        assert name in result.output


def test_benford_tables(statements):
    result = runner.invoke(app, ["benford", str(statements)])
    assert result.exit_code == 0, result.output
    assert "first digit" in result.output
    assert "second digit" in result.output


def test_weights_from_config_file(tmp_path):
    config = tmp_path / "fraud.json"
    config.write_text(json.dumps({"weights": {"beneish": 1.0, "altman": 1.0}}))
    result = runner.invoke(app, ["--config", str(config), "weights"])
    assert result.exit_code == 0, result.output
    # file weights are normalised: 1.0 / 2.45
    assert "0.408" in result.output
    assert "1.000" in result.output


def test_bad_config_file_fails(tmp_path):
    config = tmp_path / "broken.json"
    config.write_text("{oops")
    result = runner.invoke(app, ["--config", str(config), "weights"])
    assert result.exit_code == 1
