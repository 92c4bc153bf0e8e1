"""CLI for the ``just_save`` package.

A Typer console interface over :class:`just_save.api.StatementPipeline`.
Environment variables (the provider credential, ``JUST_SAVE_*`` settings) are
loaded from a local ``.env`` using ``python-dotenv`` before any command runs.
Business logic lives in ``just_save.api`` and the modules it orchestrates;
this module only reads files, renders results and maps errors to exit codes.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .api import StatementPipeline
from .config import Settings
from .errors import JustSaveError
from .gateway import create_gateway
from .logging_setup import configure_logging
from .models import Analysis, SourceKind, Transaction
from .stages import Stage, StageCallback

app = typer.Typer(
    name="just-save",
    no_args_is_help=True,
    add_completion=False,
    help="Turn a CSV or PDF bank statement into a spending breakdown.",
)
console = Console()

FILE_ARGUMENT = typer.Argument(help="Path to a CSV or PDF bank statement.")
KIND_OPTION = typer.Option(
    "--kind", help="Statement kind; inferred from the extension if omitted."
)
JSON_OPTION = typer.Option("--json", help="Print JSON instead of tables.")


# ---- Helpers -----------------------------------------------------------------


def _fail(e: JustSaveError) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(e.user_message)}")
    raise typer.Exit(1)


def _build_pipeline() -> StatementPipeline:
    settings = Settings.from_env()
    return StatementPipeline(create_gateway(settings), settings)


def _check_file(path: Path) -> None:
    if not path.is_file():
        console.print(f"[red]Error:[/red] File not found: {escape(str(path))}")
        raise typer.Exit(1)


def _stage_printer(quiet: bool) -> StageCallback | None:
    if quiet:
        return None

    def _show(stage: Stage) -> None:
        if stage not in (Stage.COMPLETE, Stage.FAILED):
            console.print(f"[dim]{stage}...[/dim]")

    return _show


def _transactions_table(transactions: list[Transaction]) -> Table:
    table = Table(title=f"Transactions ({len(transactions)})")
    table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Type")
    for n, t in enumerate(transactions, start=1):
        table.add_row(str(n), t.date, escape(t.description), f"{t.amount:.2f}", str(t.type))
    return table


def _render_analysis(analysis: Analysis, explanation: str | None) -> None:
    console.print(f"[bold]Total spent:[/bold] {analysis.total_spent:.2f}")

    cats = Table(title="Spending by category")
    cats.add_column("Category")
    cats.add_column("Total", justify="right")
    cats.add_column("Share", justify="right")
    cats.add_column("Count", justify="right")
    for c in analysis.category_spending:
        cats.add_row(c.category, f"{c.total:.2f}", f"{c.percentage:.1f}%", str(c.count))
    console.print(cats)

    if analysis.subscriptions:
        subs = Table(title=f"Subscriptions ({len(analysis.subscriptions)})")
        subs.add_column("Name")
        subs.add_column("Amount", justify="right")
        subs.add_column("Frequency")
        subs.add_column("Confidence")
        subs.add_column("Charges", justify="right")
        for s in analysis.subscriptions:
            subs.add_row(
                escape(s.name),
                f"{s.amount:.2f}",
                str(s.frequency),
                str(s.confidence),
                str(len(s.transactions)),
            )
        console.print(subs)
    else:
        console.print("No subscriptions detected.")

    ins = analysis.insights
    body = "\n\n".join(escape(p) for p in (ins.overview, ins.insight, ins.recommendation) if p)
    console.print(Panel(body, title="Insights", border_style="green"))
    if explanation:
        console.print(Panel(escape(explanation), title="Explanation", border_style="cyan"))


# ---- Commands ----------------------------------------------------------------


@app.command("extract")
def extract_cmd(
    file: Annotated[Path, FILE_ARGUMENT],
    kind: Annotated[SourceKind | None, KIND_OPTION] = None,
    as_json: Annotated[bool, JSON_OPTION] = False,
) -> None:
    """Extract the transactions from a statement."""

    _check_file(file)
    try:
        pipeline = _build_pipeline()
        transactions = asyncio.run(
            pipeline.extract_transactions_from_file(
                file, source_kind=kind, on_stage=_stage_printer(as_json)
            )
        )
    except JustSaveError as e:
        _fail(e)

    if as_json:
        payload = [t.model_dump(mode="json", by_alias=True) for t in transactions]
        typer.echo(json.dumps(payload, indent=2))
        return
    console.print(_transactions_table(transactions))


@app.command("analyze")
def analyze_cmd(
    file: Annotated[Path, FILE_ARGUMENT],
    kind: Annotated[SourceKind | None, KIND_OPTION] = None,
    as_json: Annotated[bool, JSON_OPTION] = False,
    explain: Annotated[
        bool, typer.Option("--explain", help="Also ask for a short advisory narrative.")
    ] = False,
) -> None:
    """Extract and analyze a statement: categories, subscriptions and insights."""

    _check_file(file)

    async def _go() -> tuple[Analysis, str | None]:
        pipeline = _build_pipeline()
        on_stage = _stage_printer(as_json)
        transactions = await pipeline.extract_transactions_from_file(
            file, source_kind=kind, on_stage=on_stage
        )
        analysis = await pipeline.analyze(transactions, on_stage=on_stage)
        explanation = await pipeline.explain(analysis) if explain else None
        return analysis, explanation

    try:
        analysis, explanation = asyncio.run(_go())
    except JustSaveError as e:
        _fail(e)

    if as_json:
        payload = analysis.to_payload()
        if explanation is not None:
            payload["explanation"] = explanation
        typer.echo(json.dumps(payload, indent=2))
        return
    _render_analysis(analysis, explanation)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and configure logging."""

    # override=False keeps already-set environment variables.
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
