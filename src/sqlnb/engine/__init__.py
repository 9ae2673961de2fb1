"""Notebook engine: parsing, sqllogictest translation, execution and rendering.

Notebooks are plain files:
  - .sql: SQL blocks separated by blank lines, markdown in ``/*markdown ... */``
  - .slt: sqllogictest records; ``statement``/``query`` bodies are executed

This package re-exports the public symbols:
    from sqlnb.engine import NotebookController, load_document, ...
"""

from __future__ import annotations

# Cells
from .cells import PLAIN_SQL, REGRESSION_TEST, Cell, Document, dialect_for_path

# Serialization
from .serializer import load_document, parse, save_document, serialize

# sqllogictest
from .slt import translate, translate_statements

# Rendering
from .markdown import escape_cell, render_table, stringify_value

# Pool
from .pool import Connection, DuckDBPool, Pool, open_pool

# Execution
from .controller import CellOutput, CellRun, NotebookController, OutputItem

__all__ = [
    "PLAIN_SQL",
    "REGRESSION_TEST",
    "Cell",
    "Document",
    "dialect_for_path",
    "load_document",
    "parse",
    "save_document",
    "serialize",
    "translate",
    "translate_statements",
    "escape_cell",
    "render_table",
    "stringify_value",
    "Connection",
    "DuckDBPool",
    "Pool",
    "open_pool",
    "CellOutput",
    "CellRun",
    "NotebookController",
    "OutputItem",
]
