from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from loguru import logger

from covey.analysis.formatting import format_currency, format_multiple, format_percent
from covey.analysis.underwriting import run_underwriting
from covey.analysis.underwriting_batch import run_underwriting_df, summarize_batch
from covey.domain.underwriting import UnderwritingResults
from covey.services.scenarios import compare_with_covey_debt
from covey.services.validation import normalize_inputs

app = typer.Typer(help="Covey underwriting engine (single deals, debt-fund comparison, batches).")


def _load_inputs(path: Path):
    with open(path, "r") as f:
        raw = json.load(f)
    try:
        return normalize_inputs(raw)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e


def _headline(r: UnderwritingResults) -> list[tuple[str, str]]:
    return [
        ("NOI", format_currency(r.noi)),
        ("Cap rate", format_percent(r.cap_rate)),
        ("Cash-on-cash", format_percent(r.cash_on_cash)),
        ("DSCR", format_multiple(r.dscr)),
        ("IRR", format_percent(r.irr)),
        ("Equity multiple", format_multiple(r.equity_multiple)),
        ("Total profit", format_currency(r.total_profit)),
        ("Net sale proceeds", format_currency(r.net_sale_proceeds)),
    ]


@app.command()
def run(
    inputs_json: Path = typer.Argument(..., exists=True, help="Scenario inputs as JSON"),
    projections: bool = typer.Option(False, "--projections", help="Also print the year-by-year table"),
) -> None:
    """
    Underwrite one deal and print the headline metrics.
    """
    inputs = _load_inputs(inputs_json)
    results = run_underwriting(inputs)

    typer.echo(f"{inputs.type}: {inputs.street_address or inputs_json.name}")
    for label, value in _headline(results):
        typer.echo(f"  {label:<18} {value}")

    if projections:
        table = pd.DataFrame([asdict(p) for p in results.yearly_projections]).set_index("year")
        typer.echo(table.round(0).to_string())


@app.command()
def covey(
    inputs_json: Path = typer.Argument(..., exists=True, help="Scenario inputs as JSON"),
) -> None:
    """
    Qualify a deal for the Covey Debt Fund and compare it to current financing.
    """
    inputs = _load_inputs(inputs_json)
    current = run_underwriting(inputs)
    comparison = compare_with_covey_debt(inputs, current)
    q = comparison.qualification

    if not q.eligible or comparison.results is None:
        typer.echo(f"Not eligible: {q.reason}")
        raise typer.Exit(code=1)

    typer.echo(f"Eligible at {format_percent(q.adjusted_rate or 0.0, 2)} ({q.dscr_tier})")
    typer.echo(f"  {'':<18} {'current':>12} {'covey':>12}")
    for (label, now), (_, fund) in zip(_headline(current), _headline(comparison.results)):
        typer.echo(f"  {label:<18} {now:>12} {fund:>12}")


@app.command()
def batch(
    scenarios_csv: Path = typer.Argument(..., exists=True, help="One scenario per row"),
    output: Optional[str] = typer.Option(None, help="Write the results table to this CSV"),
) -> None:
    """
    Underwrite every row of a CSV and print portfolio-level stats.
    """
    df = pd.read_csv(scenarios_csv)
    logger.info("Loaded {} scenarios from {}", len(df), scenarios_csv)

    results = run_underwriting_df(df)
    if output:
        results.to_csv(output)
        logger.info("Wrote batch results to {}", output)

    summary = summarize_batch(results)
    typer.echo(json.dumps(asdict(summary), indent=2))


if __name__ == "__main__":
    app()
