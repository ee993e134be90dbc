"""CLI command definitions for the fraud risk analyzer."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from fraud_analyzer.domain.models.financials import CompanyInfo, FinancialSnapshot, valid_snapshots
from fraud_analyzer.domain.models.results import AnalysisResult, BenfordResult
from fraud_analyzer.domain.services.analyzer import FraudAnalyzer
from fraud_analyzer.domain.services.benford import BenfordModel, BenfordSecondDigitModel, extract_benford_values
from fraud_analyzer.infrastructure.data_providers.statement_loader import SnapshotLoadError, load_snapshots
from fraud_analyzer.reports import exporter
from fraud_analyzer.reports.charts import save_benford_chart
from fraud_analyzer.settings.config import Config
from fraud_analyzer.settings.loader import load_settings
from fraud_analyzer.utils.logging import configure_logging

console = Console()
app = typer.Typer(help="Score financial statements for fraud and distress risk from the terminal.")

FORMATS = {"json", "csv", "html", "md"}


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config
    analyzer: FraudAnalyzer


def _init_context(debug_override: Optional[bool] = None, config_file: Optional[Path] = None) -> AppContext:
    """Create a context with configuration, logging, and analyzer wiring."""
    config = load_settings(debug_override=debug_override, config_file=config_file)
    configure_logging(debug=config.debug, level=config.log_level, log_file=config.log_file)
    analyzer = FraudAnalyzer(weights=config.effective_weights())
    return AppContext(config=config, analyzer=analyzer)


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        help="JSON file with log settings and model weights.",
    ),
) -> None:
    """Attach the application context to Typer."""
    try:
        ctx.obj = _init_context(debug_override=debug, config_file=config_file)
    except ValueError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def _load(path: Path) -> Tuple[CompanyInfo, List[FinancialSnapshot]]:
    try:
        return load_snapshots(path)
    except SnapshotLoadError as exc:
        console.print(f"[bold red]Cannot load {escape(str(path))}:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)


@app.command()
def analyze(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Statements file (.json document, companyfacts .json, or .csv)."),
    output_format: Optional[str] = typer.Option(
        None,
        "--format",
        "-f",
        help="Export format: json, csv, html or md. Prints to stdout unless --output is given.",
        case_sensitive=False,
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the export to this path."),
    market_cap: float = typer.Option(0.0, "--market-cap", help="Market value of equity for Altman X4."),
    chart: bool = typer.Option(False, "--chart", help="Save a Benford digit chart under OUTPUT_DIR/charts."),
) -> None:
    """Run every model over FILE and report the composite fraud risk."""
    if ctx.obj is None:
        raise typer.Exit(code=1)
    context: AppContext = ctx.obj

    fmt = output_format.lower() if output_format else None
    if fmt is not None and fmt not in FORMATS:
        console.print(f"[bold red]Unknown format {output_format!r}; choose from {', '.join(sorted(FORMATS))}[/bold red]")
        raise typer.Exit(code=2)

    company, snapshots = _load(file)
    result = context.analyzer.analyze(snapshots, company, market_cap=market_cap)

    if fmt is not None:
        rendered = _export(result, snapshots, fmt)
        if output is None:
            typer.echo(rendered)
        else:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(rendered, encoding="utf-8")
            console.print(f"Report written to {output}")
    else:
        _print_summary(result)

    if chart and result.benford is not None:
        context.config.ensure_directories()
        path = save_benford_chart(result.benford, context.config.output_dir, name=company.ticker or file.stem)
        console.print(f"Chart saved to {path}")

    if not result.is_complete:
        if fmt is None or output is not None:
            console.print(f"[bold red]{result.error}[/bold red]")
        raise typer.Exit(code=1)


def _export(result: AnalysisResult, snapshots: List[FinancialSnapshot], fmt: str) -> str:
    if fmt == "json":
        return exporter.to_json(result, pretty=True, snapshots=snapshots)
    if fmt == "csv":
        return exporter.to_csv(result)
    if fmt == "html":
        return exporter.to_html(result, snapshots)
    return exporter.to_markdown(result, snapshots)


@app.command()
def models(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Statements file to score."),
    market_cap: float = typer.Option(0.0, "--market-cap", help="Market value of equity for Altman X4."),
) -> None:
    """Show each model's score and interpretation side by side."""
    if ctx.obj is None:
        raise typer.Exit(code=1)
    context: AppContext = ctx.obj
    company, snapshots = _load(file)
    result = context.analyzer.analyze(snapshots, company, market_cap=market_cap)
    if not result.is_complete:
        console.print(f"[bold red]{result.error}[/bold red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Model Scores - {company.name or file.stem}")
    table.add_column("Model", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Interpretation")
    table.add_column("Risk", justify="right")
    table.add_row("Beneish", f"{result.beneish.m_score:.3f}", result.beneish.zone, f"{result.beneish.risk_score:.2f}")
    table.add_row("Altman", f"{result.altman.z_score:.3f}", result.altman.zone, f"{result.altman.risk_score:.2f}")
    table.add_row(
        "Piotroski", f"{result.piotroski.f_score}/9", result.piotroski.interpretation, f"{result.piotroski.risk_score:.2f}"
    )
    table.add_row(
        "Fraud Triangle",
        f"{result.fraud_triangle.overall_risk:.3f}",
        result.fraud_triangle.risk_level.value,
        f"{result.fraud_triangle.overall_risk:.2f}",
    )
    table.add_row("Benford", f"{result.benford.mad:.4f}", result.benford.conformity, f"{result.benford.risk_score:.2f}")
    console.print(table)


@app.command()
def benford(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Statements file whose line items are digit-tested."),
    chart: bool = typer.Option(False, "--chart", help="Save first- and second-digit charts under OUTPUT_DIR/charts."),
) -> None:
    """Run the first- and second-digit Benford tests."""
    if ctx.obj is None:
        raise typer.Exit(code=1)
    context: AppContext = ctx.obj
    company, snapshots = _load(file)
    values = extract_benford_values(valid_snapshots(snapshots))
    if chart:
        context.config.ensure_directories()
    first = BenfordModel().calculate(values)
    second = BenfordSecondDigitModel().calculate(values)

    for result in (first, second):
        _print_benford(result)
        if chart:
            path = save_benford_chart(result, context.config.output_dir, name=company.ticker or file.stem)
            console.print(f"Chart saved to {path}")


@app.command()
def weights(ctx: typer.Context) -> None:
    """Display the composite weights currently in effect."""
    if ctx.obj is None:
        raise typer.Exit(code=1)
    context: AppContext = ctx.obj
    table = Table(title="Composite Weights")
    table.add_column("Component", style="cyan")
    table.add_column("Weight", justify="right")
    current = context.analyzer.weights
    for name, value in current.as_dict().items():
        table.add_row(name, f"{value:.3f}")
    table.add_row("total", f"{current.total():.3f}")
    console.print(table)


def _print_summary(result: AnalysisResult) -> None:
    """Pretty-print the composite verdict for operators."""
    company = result.company
    console.rule(f"Fraud risk: {company.name or company.cik or 'company'}")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value")
    table.add_row("Company", company.name or "N/A")
    table.add_row("Ticker", company.ticker or "N/A")
    table.add_row("Periods", str(result.filings_analyzed))
    table.add_row("Status", result.status.value)
    if result.is_complete:
        table.add_row("Risk Score", f"{result.composite_risk_score:.4f}")
        table.add_row("Risk Level", result.overall_risk_level.value)
        table.add_row("Red Flags", str(len(result.red_flags)))
    console.print(table)

    if not result.is_complete:
        return
    for flag in result.red_flags:
        console.print(f"[bold red]- {flag.title}[/bold red] ({flag.source})")
    console.print(result.recommendation)


def _print_benford(result: BenfordResult) -> None:
    first_label = 1 if result.digit_position == "first" else 0
    console.print(f"[bold]Benford {result.digit_position} digit[/bold] n={result.sample_size} ({result.conformity})")
    table = Table()
    table.add_column("Digit", style="cyan")
    table.add_column("Expected", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Count", justify="right")
    for idx, (exp, act, count) in enumerate(
        zip(result.expected_distribution, result.actual_distribution, result.counts)
    ):
        table.add_row(str(first_label + idx), f"{exp:.3f}", f"{act:.3f}", str(count))
    console.print(table)
    console.print(f"MAD {result.mad:.4f}  chi-square {result.chi_square:.2f}  suspicious: {'yes' if result.is_suspicious else 'no'}")
