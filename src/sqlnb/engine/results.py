"""Query results as seen by the renderer.

Driver values are classified once, when rows come off the connection, into a
tagged ``Value``. Everything downstream dispatches on ``Value.tag``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

NULL = "null"
BOOL = "bool"
NUMBER = "number"
TEXT = "text"
BINARY = "binary"
STRUCTURED = "structured"


@dataclass(frozen=True)
class Value:
    """A single column value."""

    tag: str
    payload: Any = None

    @classmethod
    def of(cls, obj: Any) -> Value:
        """Classify a raw driver value."""
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls(NULL)
        # bool before number: bool is an int subclass
        if isinstance(obj, bool):
            return cls(BOOL, obj)
        if isinstance(obj, (int, float, Decimal)):
            return cls(NUMBER, obj)
        if isinstance(obj, str):
            return cls(TEXT, obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls(BINARY, bytes(obj))
        if isinstance(obj, (dict, list, tuple)):
            return cls(STRUCTURED, obj)
        # dates, times, UUIDs, intervals...
        return cls(TEXT, str(obj))


def text(s: str) -> Value:
    return Value(TEXT, s)


Row = dict[str, Value]
TabularResult = list[Row]


def make_row(columns: list[str], values: Any) -> Row:
    """Zip column names with raw values, keeping column order."""
    return {col: Value.of(v) for col, v in zip(columns, values)}


def to_plain(row: Row) -> dict[str, Any]:
    """The original driver values of a row, without any stringification."""
    return {col: value.payload for col, value in row.items()}


STATUS = "status"
TABLES = "tables"


@dataclass
class StatusResult:
    """A statement that reported a status message instead of rows."""

    text: str
    kind: str = field(default=STATUS, init=False)


@dataclass
class TablesResult:
    """One tabular result per statement that produced rows."""

    tables: list[TabularResult] = field(default_factory=list)
    kind: str = field(default=TABLES, init=False)

    def is_empty(self) -> bool:
        return len(self.tables) == 0 or (len(self.tables) == 1 and len(self.tables[0]) == 0)


ExecutionResult = StatusResult | TablesResult
