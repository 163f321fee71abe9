"""Validate command: schema validation of one guide or a batch."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from glosa_engine.cli._app import app
from glosa_engine.cli._common import build_engine, init_command, load_guides
from glosa_engine.cli._console import console, output_result, print_err, print_ok
from glosa_engine.schemas import ValidationResult
from glosa_engine.validation.batch import get_validation_summary


def _print_findings(result: ValidationResult) -> None:
    for finding in result.errors:
        console.print(f"  [red]ERROR[/red]   {escape(finding.field)}: {escape(finding.message)} ({finding.code})")
    for finding in result.warnings:
        console.print(f"  [yellow]WARNING[/yellow] {escape(finding.field)}: {escape(finding.message)} ({finding.code})")


@app.command("validate", help="Validate TISS guides against the schema.")
def validate_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="JSON file with a guide or a list of guides"),
    guide_type: Optional[str] = typer.Option(
        None, "--type", "-t", help="Guide type (CONSULTA, SADT, SP_SADT, INTERNACAO)"
    ),
):
    """Validate one guide, or every guide of a batch file."""
    init_command(ctx)
    guides, is_batch = load_guides(file)
    engine = build_engine(ctx, ai=False)

    if is_batch:
        result = engine.validate_batch(guides)
    else:
        guide = guides[0]
        declared = guide_type
        if declared is None and isinstance(guide, dict):
            declared = guide.get("tipo")
        result = engine.validate_guide(guide, declared)

    summary = get_validation_summary(result)

    if ctx.obj["json"]:
        data = result.model_dump(mode="json")
        data["summary"] = summary
        output_result(data, ctx=ctx)
    elif not ctx.obj["quiet"]:
        _print_findings(result)
        if result.valid:
            print_ok(summary)
        else:
            print_err(summary)

    if not result.valid:
        raise SystemExit(1)
