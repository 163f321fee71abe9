"""Fix command: apply safe automatic fixes to guides."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from glosa_engine.autofix import auto_fix_guide
from glosa_engine.cli._app import app
from glosa_engine.cli._common import init_command, load_guides, write_json
from glosa_engine.cli._console import console, output_result, print_ok


@app.command("fix", help="Apply safe automatic fixes to guides.")
def fix_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="JSON file with a guide or a list of guides"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the fixed guide(s) to this file"
    ),
):
    """Fix CID format, card number and whitespace; print or save the result."""
    init_command(ctx)
    guides, is_batch = load_guides(file)

    results = [auto_fix_guide(guide) for guide in guides]
    fixed = [r.fixed for r in results]
    fixed_data = fixed if is_batch else fixed[0]

    if output is not None:
        write_json(output, fixed_data)

    if ctx.obj["json"]:
        entries = [{"fixed": r.fixed, "changes": r.changes} for r in results]
        output_result(entries if is_batch else entries[0], ctx=ctx)
        return

    if ctx.obj["quiet"]:
        return

    for position, result in enumerate(results, start=1):
        label = f"Guide #{position}" if is_batch else "Guide"
        if not result.changes:
            console.print(f"{label}: no changes")
            continue
        console.print(f"{label}: {len(result.changes)} change(s)")
        for change in result.changes:
            console.print(f"  - {escape(change)}")

    if output is not None:
        print_ok(f"Fixed guide(s) written to {output}")
    else:
        output_result(fixed_data, ctx=ctx, title="Fixed")
