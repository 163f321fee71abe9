"""Analyze command: glosa risk for each guide of a file."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from glosa_engine.cli._app import app
from glosa_engine.cli._common import build_engine, init_command, load_guides
from glosa_engine.cli._console import console, output_result, risk_label
from glosa_engine.schemas import GlosaRisk


def print_risk(label: str, risk: GlosaRisk) -> None:
    console.print(
        f"{label}: {risk_label(risk.risk_level.value)} "
        f"(probability {risk.probability:.0%}, estimated loss R$ {risk.estimated_loss:,.2f})"
    )
    for issue in risk.predicted_issues:
        line = f"  {escape(f'[{issue.glosa_code}]')} {escape(issue.description)} ({issue.probability:.0%})"
        if issue.suggested_fix:
            line += f" [dim]fix: {escape(issue.suggested_fix)}[/dim]"
        console.print(line)
    if risk.can_auto_fix:
        console.print("  [green]Auto-fix available[/green]")


@app.command("analyze", help="Predict glosa risk for guides.")
def analyze_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="JSON file with a guide or a list of guides"),
    operator: Optional[str] = typer.Option(
        None, "--operator", "-o", help="Insurance operator (default from settings)"
    ),
    no_ai: bool = typer.Option(False, "--no-ai", help="Rules and schema only, no AI prediction"),
):
    """Analyze glosa risk of each guide for an operator."""
    init_command(ctx)
    guides, is_batch = load_guides(file)

    with build_engine(ctx, ai=not no_ai) as engine:
        risks = [engine.analyze_risk(guide, operator) for guide in guides]

    if ctx.obj["json"]:
        data = [risk.model_dump(mode="json") for risk in risks]
        output_result(data if is_batch else data[0], ctx=ctx)
        return

    for position, risk in enumerate(risks, start=1):
        label = f"Guide #{position}" if is_batch else "Guide"
        print_risk(label, risk)
