"""Batch command: risk analysis of a batch with optional auto-fix."""

from pathlib import Path
from typing import Any, List, Optional

import typer
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn

from glosa_engine.cli._app import app
from glosa_engine.cli._common import build_engine, init_command, load_guides
from glosa_engine.cli._console import console, output_result, print_err, risk_label
from glosa_engine.schemas import BatchAnalysisResult, BatchGuide


def to_batch_guides(items: List[Any], default_operator: str) -> List[BatchGuide]:
    """Accept ``{id, data, operator_name}`` entries or bare guides (positional ids)."""
    guides = []
    for position, item in enumerate(items, start=1):
        if isinstance(item, dict) and isinstance(item.get("data"), dict):
            guides.append(
                BatchGuide(
                    id=str(item.get("id") or position),
                    data=item["data"],
                    operator_name=item.get("operator_name") or default_operator,
                )
            )
        else:
            guides.append(
                BatchGuide(
                    id=str(position),
                    data=item if isinstance(item, dict) else {},
                    operator_name=default_operator,
                )
            )
    return guides


def _print_batch(result: BatchAnalysisResult) -> None:
    for entry in result.results:
        if entry.status == "error":
            console.print(f"[red]✗[/red] {escape(entry.guide_id)}: {escape(entry.error or '')}")
            continue
        risk = entry.risk_analysis
        fixed = f" [green](auto-fixed: {len(entry.fixes)} change(s))[/green]" if entry.auto_fix_applied else ""
        console.print(
            f"{escape(entry.guide_id)}: {risk_label(risk.risk_level.value)} "
            f"p={risk.probability:.0%} loss R$ {risk.estimated_loss:,.2f}{fixed}"
        )

    summary = result.summary
    console.rule("BATCH SUMMARY")
    console.print(f"  Total guides: {summary.total_guides}")
    console.print(f"  Successful: {summary.successful}")
    console.print(f"  Failed: {summary.failed}")
    console.print(f"  High risk: {summary.high_risk}")
    console.print(f"  Auto-fixed: {summary.auto_fixed}")
    console.print(f"  Estimated loss: R$ {summary.total_estimated_loss:,.2f}")


@app.command("batch", help="Analyze glosa risk for a batch of guides.")
def batch_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="JSON list of guides or {id, data, operator_name} entries"),
    operator: Optional[str] = typer.Option(
        None, "--operator", "-o", help="Operator for entries that don't name one"
    ),
    auto_fix: bool = typer.Option(False, "--auto-fix", help="Apply auto-fixes and re-analyze"),
    no_validation: bool = typer.Option(False, "--no-validation", help="Skip per-guide validation results"),
    no_ai: bool = typer.Option(False, "--no-ai", help="Rules and schema only, no AI prediction"),
):
    """Run validation, risk analysis and optional auto-fix over a batch."""
    init_command(ctx)
    items, is_batch = load_guides(file)
    if not is_batch:
        print_err("Batch input must be a JSON list")
        raise SystemExit(1)

    with build_engine(ctx, ai=not no_ai) as engine:
        guides = to_batch_guides(items, operator or engine.default_operator)
        show_progress = not (ctx.obj["json"] or ctx.obj["quiet"])

        if show_progress:
            with Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("Analyzing guides", total=len(guides))
                result = engine.analyze_batch(
                    guides,
                    auto_fix=auto_fix,
                    include_validation=not no_validation,
                    on_progress=lambda n: progress.advance(task, n),
                )
        else:
            result = engine.analyze_batch(
                guides, auto_fix=auto_fix, include_validation=not no_validation
            )

    if ctx.obj["json"]:
        output_result(result.model_dump(mode="json"), ctx=ctx)
    elif not ctx.obj["quiet"]:
        _print_batch(result)
