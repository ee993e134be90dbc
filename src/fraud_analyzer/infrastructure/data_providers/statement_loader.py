"""Load financial snapshots from files on disk.

Three input shapes are understood:

* the analyzer's own JSON document (``{"company": {...}, "periods": [...]}``),
* an SEC EDGAR *companyfacts* JSON file saved locally,
* a flat CSV with one row per period (column aliases accepted).

Snapshots are always returned newest first.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from fraud_analyzer.domain.models.financials import (
    BalanceSheet,
    CashFlowStatement,
    CompanyInfo,
    FilingInfo,
    FilingType,
    FinancialSnapshot,
    IncomeStatement,
)

logger = logging.getLogger(__name__)


class SnapshotLoadError(ValueError):
    """Raised when an input file cannot be read or has no recognisable shape."""


# -----------------
# Normalization
# -----------------

INCOME_MAP = {
    "revenue": ["revenue", "revenues", "total_revenue", "sales"],
    "cost_of_revenue": ["cost_of_revenue", "cogs", "cost_of_sales"],
    "gross_profit": ["gross_profit"],
    "operating_expenses": ["operating_expenses", "opex"],
    "rd_expense": ["rd_expense", "research_and_development"],
    "sga_expense": ["sga_expense", "sga", "selling_general_administrative"],
    "depreciation": ["depreciation", "depreciation_expense"],
    "operating_income": ["operating_income", "ebit"],
    "interest_expense": ["interest_expense"],
    "net_income": ["net_income", "net_profit"],
    "eps": ["eps", "earnings_per_share"],
}

BALANCE_MAP = {
    "total_assets": ["total_assets", "assets"],
    "current_assets": ["current_assets", "total_current_assets"],
    "cash": ["cash", "cash_and_equivalents"],
    "accounts_receivable": ["accounts_receivable", "receivables"],
    "inventory": ["inventory", "inventories"],
    "ppe": ["ppe", "property_plant_equipment", "net_ppe"],
    "goodwill": ["goodwill"],
    "intangible_assets": ["intangible_assets", "intangibles"],
    "total_liabilities": ["total_liabilities", "liabilities"],
    "current_liabilities": ["current_liabilities", "total_current_liabilities"],
    "accounts_payable": ["accounts_payable", "payables"],
    "long_term_debt": ["long_term_debt"],
    "total_equity": ["total_equity", "stockholders_equity", "shareholders_equity"],
    "retained_earnings": ["retained_earnings"],
    "shares_outstanding": ["shares_outstanding", "total_shares"],
}

CASHFLOW_MAP = {
    "operating_cash_flow": ["operating_cash_flow", "cfo", "cash_from_operations"],
    "depreciation_amortization": ["depreciation_amortization", "d_and_a"],
    "accounts_receivable_change": ["accounts_receivable_change"],
    "inventory_change": ["inventory_change"],
    "accounts_payable_change": ["accounts_payable_change"],
    "investing_cash_flow": ["investing_cash_flow", "cash_from_investing"],
    "capital_expenditures": ["capital_expenditures", "capex"],
    "financing_cash_flow": ["financing_cash_flow", "cash_from_financing"],
    "dividends_paid": ["dividends_paid"],
    "stock_buybacks": ["stock_buybacks", "share_repurchases"],
    "net_change_in_cash": ["net_change_in_cash"],
}

FILING_MAP = {
    "cik": ["cik"],
    "accession_number": ["accession_number", "accession", "accn"],
    "form_type": ["form_type", "form"],
    "filed_date": ["filed_date", "filed"],
    "report_date": ["report_date", "period_end", "end_date"],
    "fiscal_year": ["fiscal_year", "fy", "year"],
    "fiscal_quarter": ["fiscal_quarter", "quarter"],
}

# target field -> us-gaap concepts, first non-zero wins
COMPANYFACTS_MAP = {
    ("income_statement", "revenue"): [
        "Revenues",
        "RevenueFromContractWithCustomerExcludingAssessedTax",
        "SalesRevenueNet",
    ],
    ("income_statement", "net_income"): ["NetIncomeLoss"],
    ("income_statement", "operating_income"): ["OperatingIncomeLoss"],
    ("income_statement", "gross_profit"): ["GrossProfit"],
    ("income_statement", "cost_of_revenue"): ["CostOfGoodsAndServicesSold", "CostOfRevenue"],
    ("balance_sheet", "total_assets"): ["Assets"],
    ("balance_sheet", "total_liabilities"): ["Liabilities"],
    ("balance_sheet", "total_equity"): ["StockholdersEquity"],
    ("balance_sheet", "current_assets"): ["AssetsCurrent"],
    ("balance_sheet", "current_liabilities"): ["LiabilitiesCurrent"],
    ("balance_sheet", "cash"): ["CashAndCashEquivalentsAtCarryingValue"],
    ("balance_sheet", "accounts_receivable"): ["AccountsReceivableNetCurrent"],
    ("balance_sheet", "inventory"): ["InventoryNet"],
    ("balance_sheet", "long_term_debt"): ["LongTermDebt"],
    ("cash_flow", "operating_cash_flow"): ["NetCashProvidedByUsedInOperatingActivities"],
    ("cash_flow", "investing_cash_flow"): ["NetCashProvidedByUsedInInvestingActivities"],
    ("cash_flow", "financing_cash_flow"): ["NetCashProvidedByUsedInFinancingActivities"],
    ("cash_flow", "capital_expenditures"): ["PaymentsToAcquirePropertyPlantAndEquipment"],
}

COMPANYFACTS_UNITS = ("USD", "pure", "shares")


class _BadValue(ValueError):
    pass


def load_snapshots(path: Path | str) -> Tuple[CompanyInfo, List[FinancialSnapshot]]:
    """Read ``path`` and return the company plus its snapshots, newest first."""
    path = Path(path)
    if not path.is_file():
        raise SnapshotLoadError(f"Input file not found: {path}")

    if path.suffix.lower() == ".csv":
        company, snapshots = _load_csv(path)
    else:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SnapshotLoadError(f"Cannot read {path}: {exc}") from exc
        if not isinstance(document, dict):
            raise SnapshotLoadError(f"{path}: expected a JSON object at the top level")
        if "facts" in document:
            company, snapshots = _from_companyfacts(document)
        elif "periods" in document:
            company, snapshots = _from_document(document)
        else:
            raise SnapshotLoadError(f"{path}: neither a 'periods' document nor a companyfacts file")

    ordered = sort_newest_first(snapshots)
    logger.info("Loaded %d period(s) for %s from %s", len(ordered), company.name or company.cik or "?", path.name)
    return company, ordered


def sort_newest_first(snapshots: Iterable[FinancialSnapshot]) -> List[FinancialSnapshot]:
    return sorted(
        snapshots,
        key=lambda s: (s.filing.fiscal_year, s.filing.report_date, s.filing.fiscal_quarter),
        reverse=True,
    )


# -----------------
# JSON document
# -----------------


def _from_document(document: Mapping[str, Any]) -> Tuple[CompanyInfo, List[FinancialSnapshot]]:
    company = _company_from_mapping(document.get("company") or {})
    periods = document.get("periods")
    if not isinstance(periods, list):
        raise SnapshotLoadError("'periods' must be a list")

    snapshots: List[FinancialSnapshot] = []
    for idx, period in enumerate(periods):
        if not isinstance(period, dict):
            snapshots.append(FinancialSnapshot.invalid(f"Period {idx} is not an object"))
            continue
        filing = _filing_from_mapping(period.get("filing") or {}, default_cik=company.cik)
        try:
            snapshot = FinancialSnapshot(
                filing=filing,
                balance_sheet=_statement(BalanceSheet, period.get("balance_sheet") or {}),
                income_statement=_statement(IncomeStatement, period.get("income_statement") or {}),
                cash_flow=_statement(CashFlowStatement, period.get("cash_flow") or {}),
            )
        except _BadValue as exc:
            logger.warning("Period %d (%s): %s", idx, filing.fiscal_year or "?", exc)
            snapshot = FinancialSnapshot.invalid(str(exc), filing)
        snapshots.append(snapshot)
    return company, snapshots


def _company_from_mapping(raw: Mapping[str, Any]) -> CompanyInfo:
    known = {f.name for f in fields(CompanyInfo)}
    return CompanyInfo(**{k: str(v) for k, v in raw.items() if k in known and v is not None})


def _filing_from_mapping(raw: Mapping[str, Any], default_cik: str = "") -> FilingInfo:
    values = {name: _first_present(raw, aliases) for name, aliases in FILING_MAP.items()}
    form = str(values["form_type"] or "")
    return FilingInfo(
        cik=str(values["cik"] or default_cik),
        accession_number=str(values["accession_number"] or ""),
        form_type=form,
        filed_date=_safe_date(values["filed_date"]),
        report_date=_safe_date(values["report_date"]),
        filing_type=FilingType.from_form(form),
        fiscal_year=_safe_int(values["fiscal_year"]),
        fiscal_quarter=_safe_int(values["fiscal_quarter"]),
    )


def _statement(cls, raw: Mapping[str, Any]):
    """Build a statement dataclass from exact field names; unknown keys are ignored."""
    known = {f.name for f in fields(cls)}
    return cls(**{k: _number(k, v) for k, v in raw.items() if k in known})


# -----------------
# companyfacts
# -----------------


def _from_companyfacts(document: Mapping[str, Any]) -> Tuple[CompanyInfo, List[FinancialSnapshot]]:
    cik = str(document.get("cik") or "")
    company = CompanyInfo(name=str(document.get("entityName") or ""), cik=cik)
    facts = (document.get("facts") or {}).get("us-gaap") or {}
    if not facts:
        raise SnapshotLoadError("companyfacts file has no us-gaap facts")

    years = sorted(
        {
            int(entry["fy"])
            for concept in facts.values()
            for entry in _annual_entries(concept)
            if entry.get("fy") is not None
        }
    )
    snapshots: List[FinancialSnapshot] = []
    for year in years:
        sections: Dict[str, Dict[str, float]] = {"balance_sheet": {}, "income_statement": {}, "cash_flow": {}}
        meta: Dict[str, Any] = {}
        for (section, name), concepts in COMPANYFACTS_MAP.items():
            for concept in concepts:
                entry = _fact_for_year(facts.get(concept), year)
                if entry is not None and entry.get("val"):
                    sections[section][name] = float(entry["val"])
                    meta = meta or entry
                    break
        filing = FilingInfo(
            cik=cik,
            accession_number=str(meta.get("accn") or ""),
            form_type=str(meta.get("form") or "10-K"),
            filed_date=_safe_date(meta.get("filed")),
            report_date=_safe_date(meta.get("end")),
            filing_type=FilingType.from_form(meta.get("form") or "10-K"),
            fiscal_year=year,
        )
        snapshot = FinancialSnapshot(
            filing=filing,
            balance_sheet=BalanceSheet(**sections["balance_sheet"]),
            income_statement=IncomeStatement(**sections["income_statement"]),
            cash_flow=CashFlowStatement(**sections["cash_flow"]),
        )
        if snapshot.income_statement.revenue <= 0 and snapshot.balance_sheet.total_assets <= 0:
            snapshot = FinancialSnapshot.invalid(f"No revenue or total assets reported for FY{year}", filing)
        snapshots.append(snapshot)
    return company, snapshots


def _annual_entries(concept: Optional[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    if not concept:
        return []
    units = concept.get("units") or {}
    for unit in COMPANYFACTS_UNITS:
        entries = units.get(unit)
        if entries:
            return [e for e in entries if e.get("form") == "10-K" or e.get("fp") == "FY"]
    return []


def _fact_for_year(concept: Optional[Mapping[str, Any]], year: int) -> Optional[Mapping[str, Any]]:
    """Annual fact reported in fiscal year ``year``; the latest period end wins over comparatives."""
    matches = [e for e in _annual_entries(concept) if e.get("fy") == year and "val" in e]
    if not matches:
        return None
    return max(matches, key=lambda e: str(e.get("end") or ""))


# -----------------
# CSV
# -----------------


def _load_csv(path: Path) -> Tuple[CompanyInfo, List[FinancialSnapshot]]:
    try:
        frame = pd.read_csv(path)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise SnapshotLoadError(f"Cannot read {path}: {exc}") from exc
    frame.columns = [str(c).strip().lower() for c in frame.columns]

    company = CompanyInfo()
    if not frame.empty:
        first = frame.iloc[0]
        company = CompanyInfo(
            name=str(_first_present(first, ["company", "name", "company_name"]) or ""),
            ticker=str(_first_present(first, ["ticker", "symbol"]) or ""),
            cik=str(_first_present(first, ["cik"]) or ""),
        )

    snapshots: List[FinancialSnapshot] = []
    for idx, row in frame.iterrows():
        filing = _filing_from_mapping(row, default_cik=company.cik)
        try:
            snapshot = FinancialSnapshot(
                filing=filing,
                balance_sheet=BalanceSheet(**_mapped(row, BALANCE_MAP)),
                income_statement=IncomeStatement(**_mapped(row, INCOME_MAP)),
                cash_flow=CashFlowStatement(**_mapped(row, CASHFLOW_MAP)),
            )
        except _BadValue as exc:
            logger.warning("Row %d: %s", idx, exc)
            snapshot = FinancialSnapshot.invalid(str(exc), filing)
        snapshots.append(snapshot)
    return company, snapshots


def _mapped(row: pd.Series, mapping: Dict[str, List[str]]) -> Dict[str, float]:
    values: Dict[str, float] = {}
    for name, aliases in mapping.items():
        value = _first_present(row, aliases)
        if value is not None:
            values[name] = _number(name, value)
    return values


# -----------------
# Helpers
# -----------------


def _first_present(row: Mapping[str, Any], candidates: Iterable[str]):
    for key in candidates:
        if key in row and row[key] is not None and not _is_missing(row[key]):
            return row[key]
    return None


def _is_missing(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _number(name: str, value: Any) -> float:
    if value is None or _is_missing(value):
        return 0.0
    if isinstance(value, bool):
        raise _BadValue(f"Malformed value for {name}: {value!r}")
    try:
        parsed = float(str(value).replace(",", "").strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as exc:
        raise _BadValue(f"Malformed value for {name}: {value!r}") from exc
    if not math.isfinite(parsed):
        raise _BadValue(f"Non-finite value for {name}: {value!r}")
    return parsed


def _safe_date(value) -> str:
    if value is None or _is_missing(value):
        return ""
    try:
        return pd.to_datetime(value).date().isoformat()
    except (TypeError, ValueError):
        return str(value)


def _safe_int(value) -> int:
    if value is None or _is_missing(value):
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0
