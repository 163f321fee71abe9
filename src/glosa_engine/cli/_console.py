"""Rich consoles and output helpers shared by the commands."""

import json as json_mod
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

# Findings, progress and logs go to stderr; --json data goes to stdout
console = Console(stderr=True)
stdout_console = Console()

RISK_STYLES = {
    "low": "green",
    "medium": "yellow",
    "high": "red",
    "critical": "bold red",
}


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {msg}")


def risk_label(level: str) -> str:
    """Risk level in upper case, colored by severity."""
    style = RISK_STYLES.get(level, "white")
    return f"[{style}]{level.upper()}[/{style}]"


def output_result(data: Any, *, ctx: typer.Context, title: str = "") -> None:
    """Emit ``data`` as JSON on stdout under --json, else pretty-print it on stderr."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return

    text = Text(json_mod.dumps(data, indent=2, ensure_ascii=False, default=str))
    console.print(Panel(text, title=title, border_style="blue") if title else text)


def output_table(rows: list[dict], *, ctx: typer.Context, title: str = "") -> None:
    """Emit rows as a JSON array under --json, else as a Rich table."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=rows)
        return
    if not rows:
        console.print("[dim]No data[/dim]")
        return

    table = Table(title=title)
    for column in rows[0]:
        table.add_column(column)
    for row in rows:
        table.add_row(*(str(value) for value in row.values()))
    console.print(table)
