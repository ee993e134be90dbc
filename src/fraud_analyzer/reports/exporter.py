"""Serialize analysis results to JSON, CSV, HTML and Markdown."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from fraud_analyzer.domain.models.financials import FinancialSnapshot
from fraud_analyzer.domain.models.results import AnalysisResult
from fraud_analyzer.reports.renderer import ReportRenderer

FILING_COLUMNS = ["Accession", "Form", "Filed Date", "Revenue", "Net Income", "Total Assets", "Total Liabilities"]


def result_to_dict(result: AnalysisResult, snapshots: Optional[Sequence[FinancialSnapshot]] = None) -> Dict[str, Any]:
    """Plain-data view of ``result`` shared by every export format."""
    company = result.company
    level = result.overall_risk_level.value if result.overall_risk_level else None
    models: Dict[str, Dict[str, Any]] = {}

    if result.beneish:
        b = result.beneish
        models["beneish"] = {
            "m_score": b.m_score,
            "dsri": b.dsri,
            "gmi": b.gmi,
            "aqi": b.aqi,
            "sgi": b.sgi,
            "depi": b.depi,
            "sgai": b.sgai,
            "lvgi": b.lvgi,
            "tata": b.tata,
            "probability": b.probability,
            "likely_manipulator": b.likely_manipulator,
            "zone": b.zone,
            "flags": list(b.flags),
            "risk_score": b.risk_score,
        }
    if result.altman:
        a = result.altman
        models["altman"] = {
            "variant": a.variant,
            "z_score": a.z_score,
            "x1": a.x1,
            "x2": a.x2,
            "x3": a.x3,
            "x4": a.x4,
            "x5": a.x5,
            "zone": a.zone,
            "bankruptcy_probability": a.bankruptcy_probability,
            "risk_score": a.risk_score,
        }
    if result.piotroski:
        p = result.piotroski
        models["piotroski"] = {
            "f_score": p.f_score,
            "interpretation": p.interpretation,
            "signals": {
                "roa_positive": p.roa_positive,
                "cfo_positive": p.cfo_positive,
                "roa_increasing": p.roa_increasing,
                "cfo_greater_than_ni": p.cfo_greater_than_ni,
                "leverage_decreasing": p.leverage_decreasing,
                "current_ratio_increasing": p.current_ratio_increasing,
                "no_dilution": p.no_dilution,
                "gross_margin_increasing": p.gross_margin_increasing,
                "asset_turnover_increasing": p.asset_turnover_increasing,
            },
            "risk_score": p.risk_score,
        }
    if result.fraud_triangle:
        ft = result.fraud_triangle
        models["fraud_triangle"] = {
            "pressure_score": ft.pressure_score,
            "opportunity_score": ft.opportunity_score,
            "rationalization_score": ft.rationalization_score,
            "overall_risk": ft.overall_risk,
            "risk_level": ft.risk_level.value,
            "pressure_indicators": list(ft.pressure_indicators),
            "opportunity_indicators": list(ft.opportunity_indicators),
            "rationalization_indicators": list(ft.rationalization_indicators),
        }
    if result.benford:
        bf = result.benford
        models["benford"] = {
            "sample_size": bf.sample_size,
            "deviation": bf.deviation_percent,
            "chi_square": bf.chi_square,
            "mad": bf.mad,
            "conformity": bf.conformity,
            "suspicious": bf.is_suspicious,
            "suspicious_digits": list(bf.suspicious_digits),
            "anomalies": list(bf.anomalies),
            "risk_score": bf.risk_score,
        }

    trends = result.trends
    return {
        "company": {
            "name": company.name,
            "ticker": company.ticker,
            "cik": company.cik,
            "sic": company.sic,
            "industry": company.industry,
        },
        "ticker": company.ticker,
        "status": result.status.value,
        "error": result.error,
        "filings_analyzed": result.filings_analyzed,
        "overall_risk": {
            "score": result.composite_risk_score,
            "level": level,
            "summary": result.risk_summary,
            "components": result.model_risk_scores(),
        },
        "recommendation": result.recommendation,
        "models": models,
        "red_flags": [
            {
                "type": flag.type,
                "title": flag.title,
                "description": flag.description,
                "severity": flag.severity.value,
                "source": flag.source,
                "confidence": flag.confidence,
            }
            for flag in result.red_flags
        ],
        "trends": {
            "revenue_trend": trends.revenue_trend.value,
            "income_trend": trends.income_trend.value,
            "cash_flow_trend": trends.cash_flow_trend.value,
            "debt_trend": trends.debt_trend.value,
            "margin_trend": trends.margin_trend.value,
            "evaluated_metrics": list(trends.evaluated_metrics),
            "observations": list(trends.observations),
        },
        "filings": [
            {
                "accession": s.filing.accession_number,
                "form_type": s.filing.form_type,
                "filed_date": s.filing.filed_date,
                "fiscal_year": s.filing.fiscal_year,
                "revenue": s.income_statement.revenue,
                "net_income": s.income_statement.net_income,
            }
            for s in (snapshots or [])
            if s.is_valid
        ],
        "version": result.version,
        "analysis_timestamp": result.analysis_timestamp,
    }


def to_json(
    result: AnalysisResult,
    pretty: bool = True,
    snapshots: Optional[Sequence[FinancialSnapshot]] = None,
) -> str:
    return json.dumps(result_to_dict(result, snapshots), indent=2 if pretty else None)


def to_csv(result: AnalysisResult) -> str:
    """Two-column Metric,Value summary."""
    company = result.company
    rows: List[List[Any]] = [
        ["Company", company.name],
        ["Ticker", company.ticker],
        ["CIK", company.cik],
        ["Filings Analyzed", result.filings_analyzed],
        ["Status", result.status.value],
    ]
    if not result.is_complete:
        rows.append(["Error", result.error or ""])
        return pd.DataFrame(rows, columns=["Metric", "Value"]).to_csv(index=False)

    rows.append(["Risk Score", f"{result.composite_risk_score:.4f}"])
    rows.append(["Risk Level", result.overall_risk_level.value])
    if result.beneish:
        rows.append(["Beneish M-Score", f"{result.beneish.m_score:.4f}"])
    if result.altman:
        rows.append(["Altman Z-Score", f"{result.altman.z_score:.4f}"])
    if result.piotroski:
        rows.append(["Piotroski F-Score", result.piotroski.f_score])
    if result.fraud_triangle:
        rows.append(["Fraud Triangle Risk", f"{result.fraud_triangle.overall_risk:.4f}"])
    if result.benford:
        rows.append(["Benford Deviation", f"{result.benford.deviation_percent:.4f}%"])
    rows.append(["Red Flags Count", len(result.red_flags)])
    return pd.DataFrame(rows, columns=["Metric", "Value"]).to_csv(index=False)


def filings_to_csv(snapshots: Sequence[FinancialSnapshot]) -> str:
    frame = pd.DataFrame(
        [
            [
                s.filing.accession_number,
                s.filing.form_type,
                s.filing.filed_date,
                s.income_statement.revenue,
                s.income_statement.net_income,
                s.balance_sheet.total_assets,
                s.balance_sheet.total_liabilities,
            ]
            for s in snapshots
        ],
        columns=FILING_COLUMNS,
    )
    return frame.to_csv(index=False)


def to_html(
    result: AnalysisResult,
    snapshots: Optional[Sequence[FinancialSnapshot]] = None,
    renderer: Optional[ReportRenderer] = None,
) -> str:
    renderer = renderer or ReportRenderer()
    return renderer.render_template("report.html.j2", {"report": result_to_dict(result, snapshots)})


def to_markdown(
    result: AnalysisResult,
    snapshots: Optional[Sequence[FinancialSnapshot]] = None,
    renderer: Optional[ReportRenderer] = None,
) -> str:
    renderer = renderer or ReportRenderer()
    return renderer.render_template("report.md.j2", {"report": result_to_dict(result, snapshots)})
