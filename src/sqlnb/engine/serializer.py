"""Notebook serialization: raw file bytes <-> ordered cells.

Cells are separated by a blank line. In plain-SQL files a block such as::

    /*markdown
    # Heading
    */

becomes a markdown cell; everything else is SQL. Regression-test files keep
every block as code and only tag pure-comment blocks as plain text.
"""

from __future__ import annotations

from pathlib import Path

from .cells import (
    CODE,
    MARKUP,
    PLAIN_SQL,
    REGRESSION_TEST,
    Cell,
    Document,
    dialect_for_path,
)
from .errors import InternalError

DELIMITER = "\n\n"

MARKDOWN_START = "/*markdown"
MARKDOWN_END = "*/"


def split_blocks(raw: str) -> list[str]:
    """Split on blank lines, trimming each block and dropping empty ones."""
    blocks = []
    for block in raw.split(DELIMITER):
        trimmed = block.strip()
        if trimmed:
            blocks.append(trimmed)
    return blocks


def parse(raw: bytes, dialect: str) -> list[Cell]:
    """Parse raw notebook bytes into cells."""
    blocks = split_blocks(raw.decode("utf-8"))
    if dialect == PLAIN_SQL:
        return [_parse_sql_block(block) for block in blocks]
    if dialect == REGRESSION_TEST:
        return [_parse_slt_block(block) for block in blocks]
    raise InternalError(f"Unknown notebook dialect: {dialect!r}")


def serialize(cells: list[Cell], dialect: str) -> bytes:
    """Inverse of :func:`parse`."""
    if dialect == PLAIN_SQL:
        text = DELIMITER.join(
            cell.content if cell.kind == CODE else f"{MARKDOWN_START}\n{cell.content}\n{MARKDOWN_END}"
            for cell in cells
        )
    elif dialect == REGRESSION_TEST:
        # Markup is not reconstructed for sqllogictest files.
        text = DELIMITER.join(cell.content for cell in cells) + "\n"
    else:
        raise InternalError(f"Unknown notebook dialect: {dialect!r}")
    return text.encode("utf-8")


def _parse_sql_block(block: str) -> Cell:
    if block.startswith(MARKDOWN_START) and block.endswith(MARKDOWN_END):
        lines = block.split("\n")
        inner = "\n".join(lines[1:-1]) if len(lines) > 2 else ""
        return Cell(MARKUP, inner, "markdown")
    return Cell(CODE, block, "sql")


def _parse_slt_block(block: str) -> Cell:
    is_pure_comment = all(line.startswith("# ") for line in block.split("\n"))
    return Cell(CODE, block, "plaintext" if is_pure_comment else "sql")


def load_document(path: Path, dialect: str | None = None) -> Document:
    """Load a notebook file. The dialect defaults to the one implied by the suffix."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Notebook not found: {path}")
    dialect = dialect or dialect_for_path(path)
    return Document(dialect=dialect, cells=parse(path.read_bytes(), dialect))


def save_document(path: Path, document: Document) -> None:
    """Write a notebook back to disk."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(serialize(document.cells, document.dialect))
