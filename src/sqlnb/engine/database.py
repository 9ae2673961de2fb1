"""DuckDB connections and statement execution for the pool."""

from __future__ import annotations

from pathlib import Path

import duckdb

from .results import StatusResult, TablesResult, make_row


def connect(db_path: str | Path, read_only: bool = False) -> duckdb.DuckDBPyConnection:
    """Open the root DuckDB connection that pooled cursors are taken from."""
    conn = duckdb.connect(str(db_path), read_only=read_only)
    # Progress output would interleave with CLI rendering
    conn.execute("SET enable_progress_bar = false")
    return conn


def run_statements(conn: duckdb.DuckDBPyConnection, sql: str) -> StatusResult | TablesResult:
    """Execute every statement in ``sql`` and collect the ones that return rows.

    DuckDB's parser does the splitting, so comments and quoted identifiers
    containing ``;`` stay intact. Blocking; callers run this in a worker thread.
    """
    statements = conn.extract_statements(sql) if sql.strip() else []
    tables = []
    for statement in statements:
        result = conn.execute(statement.query)
        if result.description:
            columns = [desc[0] for desc in result.description]
            tables.append([make_row(columns, row) for row in result.fetchall()])

    if not tables:
        return StatusResult(f"{len(statements)} statement(s) executed")
    return TablesResult(tables)
