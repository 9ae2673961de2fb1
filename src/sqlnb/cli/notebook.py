"""Notebook commands: run, cells, translate."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.markup import escape
from rich.table import Table

from sqlnb.cli import _resolve_notebook, app, console

FORMATS = ("table", "json", "html")


@app.command()
def run(
    notebook: Annotated[Path, typer.Argument(help="Notebook file (.sql or .slt)")],
    database: Annotated[Optional[str], typer.Option("--database", "-d", help="DuckDB file (overrides sqlnb.yml; ':memory:' allowed)")] = None,
    output_format: Annotated[str, typer.Option("--format", "-f", help="Output format: table, json or html")] = "table",
    max_rows: Annotated[Optional[int], typer.Option("--max-rows", "-n", help="Max rows rendered per result")] = None,
    project_dir: Annotated[Optional[Path], typer.Option("--project", "-p", help="Directory containing sqlnb.yml (default: current dir)")] = None,
) -> None:
    """Execute every code cell of a notebook in order."""
    from sqlnb import setup_logging
    from sqlnb.config import load_settings
    from sqlnb.engine import NotebookController, open_pool

    if output_format not in FORMATS:
        console.print(f"[red]Unknown format {output_format!r}. Use one of: {', '.join(FORMATS)}[/red]")
        raise typer.Exit(1)

    settings = load_settings(project_dir)
    setup_logging(settings.log_level)
    document = _resolve_notebook(notebook)

    if database:
        settings.database.path = database
    if max_rows is not None:
        settings.notebook.max_result_rows = max_rows
    # Tables are printed from the structured payload, not the HTML.
    notebook_settings = settings.notebook.model_copy(
        update={"output_json": output_format != "html" or settings.notebook.output_json}
    )

    async def _execute():
        controller = NotebookController(open_pool(settings, settings.project_dir), notebook_settings)
        try:
            return await controller.execute_document(document)
        finally:
            await controller.dispose()

    runs = asyncio.run(_execute())

    failed = 0
    for index, cell_run in enumerate(runs, start=1):
        _print_run(index, cell_run, output_format, notebook_settings.max_result_rows)
        if not cell_run.success:
            failed += 1

    console.print(f"[dim]{len(runs)} cells executed, {failed} failed[/dim]")
    if failed:
        raise typer.Exit(1)


def _print_run(index: int, cell_run, output_format: str, max_rows: int) -> None:
    from sqlnb.engine.controller import APPLICATION_JSON, TEXT_MARKDOWN

    status = "[green]ok[/green]" if cell_run.success else "[red]failed[/red]"
    first_line = cell_run.cell.content.split("\n", 1)[0]
    console.print(f"[bold][{cell_run.execution_order}][/bold] cell {index} {status}  [dim]{escape(first_line)}[/dim]")

    if not cell_run.success:
        console.print(f"  [red]{escape(cell_run.error or '')}[/red]")
        return

    for output in cell_run.outputs:
        items = {item.mime: item.data for item in output.items}
        if output_format == "html" and TEXT_MARKDOWN in items:
            console.print(items[TEXT_MARKDOWN], markup=False, highlight=False)
        elif output_format == "json" and APPLICATION_JSON in items:
            console.print(json.dumps(items[APPLICATION_JSON], indent=2, default=_json_safe), markup=False)
        elif APPLICATION_JSON in items:
            console.print(_rich_table(items[APPLICATION_JSON], max_rows))
        else:
            for item in output.items:
                console.print(f"  {item.data}", markup=False)


def _json_safe(v: Any) -> Any:
    if isinstance(v, (bytes, bytearray)):
        return f"0x{bytes(v).hex()}"
    return str(v)


def _rich_table(rows: list[dict], max_rows: int) -> Table:
    table = Table(show_lines=False)
    if not rows:
        return table
    columns = list(rows[0])
    for col in columns:
        table.add_column(col, no_wrap=False, max_width=60)
    for row in rows[:max_rows]:
        table.add_row(*[escape(_json_safe(v)) if v is not None else "NULL" for v in row.values()])
    if len(rows) > max_rows:
        table.add_row(*["..." for _ in columns])
    return table


@app.command()
def cells(
    notebook: Annotated[Path, typer.Argument(help="Notebook file (.sql or .slt)")],
) -> None:
    """List the cells a notebook file parses into."""
    from sqlnb.engine import REGRESSION_TEST, translate

    document = _resolve_notebook(notebook)
    table = Table(title=f"{notebook.name} ({document.dialect})")
    table.add_column("#", justify="right")
    table.add_column("Kind")
    table.add_column("Language")
    table.add_column("Content", max_width=60)
    if document.dialect == REGRESSION_TEST:
        table.add_column("SQL", max_width=60)

    for i, cell in enumerate(document.cells, start=1):
        row = [str(i), cell.kind, cell.language, escape(cell.content.split("\n", 1)[0])]
        if document.dialect == REGRESSION_TEST:
            row.append(escape(translate(cell.content)))
        table.add_row(*row)
    console.print(table)


@app.command()
def translate(
    notebook: Annotated[Path, typer.Argument(help="sqllogictest file (.slt)")],
) -> None:
    """Print the SQL executed for each cell of a sqllogictest file."""
    from sqlnb.engine import REGRESSION_TEST
    from sqlnb.engine import translate as translate_cell

    document = _resolve_notebook(notebook)
    if document.dialect != REGRESSION_TEST:
        console.print(f"[red]{notebook.name} is not a sqllogictest file[/red]")
        raise typer.Exit(1)

    for cell in document.code_cells():
        sql = translate_cell(cell.content)
        if sql:
            console.print(sql, markup=False, highlight=False)
