"""CLI package: Typer-based command-line interface.

Usage:
    glosa --help
    python -m glosa_engine.cli analyze --help
"""

from glosa_engine.cli._app import app

# Register command modules (side-effect imports)
import glosa_engine.cli.cmd_validate  # noqa: F401
import glosa_engine.cli.cmd_analyze  # noqa: F401
import glosa_engine.cli.cmd_fix  # noqa: F401
import glosa_engine.cli.cmd_batch  # noqa: F401
import glosa_engine.cli.cmd_rules  # noqa: F401

__all__ = ["app"]
