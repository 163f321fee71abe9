"""Shared CLI utilities: logging, input loading and engine construction."""

import json
import logging
from pathlib import Path
from typing import Any, List, Tuple

import typer
from rich.logging import RichHandler

from glosa_engine.cli._console import print_err
from glosa_engine.config import GlosaConfigError, GlosaSettings, load_settings
from glosa_engine.engine import GlosaEngine, create_engine

logger = logging.getLogger(__name__)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=None,  # Use default stderr
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # Suppress noisy third-party loggers
    for name in ("openai", "openai._base_client", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def init_command(ctx: typer.Context) -> None:
    """Per-command setup shared by every subcommand."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])


def load_guides(path: Path) -> Tuple[List[Any], bool]:
    """Read guides from a JSON file.

    Returns:
        (guides, is_batch): a JSON list yields its items and True, a single
        object yields a one-item list and False.

    Exits with code 1 when the file is missing or not valid JSON.
    """
    if not path.exists():
        print_err(f"File not found: {path}")
        raise SystemExit(1)

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print_err(f"Could not read guides from {path}: {e}")
        raise SystemExit(1)

    if isinstance(data, list):
        return data, True
    return [data], False


def write_json(path: Path, data: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False, default=str)


def load_cli_settings(ctx: typer.Context, *, ai: bool = True) -> GlosaSettings:
    """Settings from --config / environment; ``ai=False`` disables prediction."""
    try:
        settings = load_settings(ctx.obj.get("config"))
    except GlosaConfigError as e:
        print_err(str(e))
        raise SystemExit(1)

    if not ai:
        settings = settings.model_copy(
            update={"prediction": settings.prediction.model_copy(update={"enabled": False})}
        )
    return settings


def build_engine(ctx: typer.Context, *, ai: bool = True) -> GlosaEngine:
    """Engine configured for this CLI invocation."""
    return create_engine(load_cli_settings(ctx, ai=ai))
