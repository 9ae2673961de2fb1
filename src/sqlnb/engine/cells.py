"""Cells and documents.

A document is an ordered list of cells plus the dialect that decides how it
is parsed and executed:

  - plain-sql:       ``.sql`` files, markdown blocks wrapped in ``/*markdown */``
  - regression-test: ``.slt`` files, a subset of sqllogictest
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

PLAIN_SQL = "plain-sql"
REGRESSION_TEST = "regression-test"

CODE = "code"
MARKUP = "markup"

_SUFFIX_DIALECTS = {
    ".sql": PLAIN_SQL,
    ".slt": REGRESSION_TEST,
    ".test": REGRESSION_TEST,
}


def _make_cell_id() -> str:
    """Generate a unique cell ID."""
    return f"cell_{secrets.token_hex(6)}"


@dataclass
class Cell:
    """One block of a notebook.

    ``id`` and ``outputs`` are not part of equality: two cells are equal when
    their kind, content and language match.
    """

    kind: str  # "code" or "markup"
    content: str
    language: str  # "sql", "markdown", "plaintext"
    id: str = field(default_factory=_make_cell_id, compare=False)
    outputs: list[Any] = field(default_factory=list, compare=False, repr=False)

    @property
    def is_code(self) -> bool:
        return self.kind == CODE


@dataclass
class Document:
    dialect: str
    cells: list[Cell] = field(default_factory=list)

    def code_cells(self) -> list[Cell]:
        return [c for c in self.cells if c.is_code]


def dialect_for_path(path: str | Path) -> str:
    """Pick the document dialect from a file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix not in _SUFFIX_DIALECTS:
        raise ValueError(
            f"Unknown notebook type: {suffix or str(path)!r}. "
            f"Expected one of: {', '.join(sorted(_SUFFIX_DIALECTS))}"
        )
    return _SUFFIX_DIALECTS[suffix]
