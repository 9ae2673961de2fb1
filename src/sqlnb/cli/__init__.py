"""CLI interface for sqlnb.

The Typer app and shared helpers live here; each module registers its commands.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

app = typer.Typer(
    name="sqlnb",
    help="Run SQL and sqllogictest notebooks against DuckDB.",
    no_args_is_help=True,
)
console = Console()


def _resolve_notebook(path: Path):
    """Load a notebook file or exit with a readable error."""
    from sqlnb.engine import load_document

    if not path.exists():
        console.print(f"[red]Notebook not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return load_document(path)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


from sqlnb.cli import notebook  # noqa: E402, F401
