"""Rules command: list the operator rule registry."""

from typing import Optional

import typer

from glosa_engine.cli._app import app
from glosa_engine.cli._common import init_command
from glosa_engine.cli._console import output_table, print_err
from glosa_engine.rules.operators import DEFAULT_REGISTRY


@app.command("rules", help="List operator-specific glosa rules.")
def rules_cmd(
    ctx: typer.Context,
    operator: Optional[str] = typer.Option(None, "--operator", "-o", help="Only this operator"),
):
    """Show the registered rules with their severity and probability."""
    init_command(ctx)

    operators = [operator] if operator else DEFAULT_REGISTRY.operators
    rows = []
    for name in operators:
        for rule in DEFAULT_REGISTRY.rules_for(name):
            rows.append({
                "operator": name.strip().upper(),
                "code": rule.code,
                "severity": rule.severity.value,
                "probability": rule.probability,
                "description": rule.description,
            })

    if operator and not rows:
        print_err(f"No rules registered for operator: {operator}")
        raise SystemExit(1)

    output_table(rows, ctx=ctx, title="Operator rules")
