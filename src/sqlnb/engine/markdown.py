"""Render tabular results as an HTML table for markdown output."""

from __future__ import annotations

import json
import logging
import re
from typing import Callable

from .results import BINARY, BOOL, NULL, STRUCTURED, TEXT, Row, TabularResult, Value, text

logger = logging.getLogger("sqlnb.markdown")

EMPTY_TABLE = "*Empty Results Table*"
ELLIPSIS = "..."
DEFAULT_MAX_ROWS = 25
DEFAULT_FONT_FAMILY = "monospace"

_NEWLINES = re.compile(r"[\n\r]+")

# Order matters: '&' first so later entities are not double-escaped.
_ESCAPES = (
    ("&", "&amp;"),
    ('"', "&quot;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ("\\", "&apos;"),
    (" ", "&nbsp;"),
)


def _default_text(value: Value) -> str:
    if value.tag == NULL:
        return "null"
    if value.tag == BOOL:
        return "true" if value.payload else "false"
    return str(value.payload)


def _binary_text(value: Value) -> str:
    return f"0x{value.payload.hex()}"


def _structured_text(value: Value) -> str:
    return json.dumps(value.payload, separators=(",", ":"), ensure_ascii=False)


def _text_text(value: Value) -> str:
    return _NEWLINES.sub(" ", value.payload)


_STRINGIFIERS: dict[str, Callable[[Value], str]] = {
    BINARY: _binary_text,
    STRUCTURED: _structured_text,
    TEXT: _text_text,
}


def stringify_value(value: Value) -> str:
    """Turn a column value into display text (before escaping)."""
    stringify = _STRINGIFIERS.get(value.tag, _default_text)
    try:
        return stringify(value)
    except (TypeError, ValueError, AttributeError) as e:
        logger.debug("Falling back to default text for %s value: %s", value.tag, e)
        return _default_text(value)


def escape_cell(s: str) -> str:
    for old, new in _ESCAPES:
        s = s.replace(old, new)
    return s


def _html_header_row(row: Row) -> str:
    content = "".join(f"<th>{escape_cell(stringify_value(text(col)))}</th>" for col in row)
    return f"<tr>{content}</tr>"


def _html_body_row(row: Row) -> str:
    content = "".join(f"<td>{escape_cell(stringify_value(v))}</td>" for v in row.values())
    return f"<tr>{content}</tr>"


def truncate_rows(result: TabularResult, max_rows: int) -> TabularResult:
    """Keep the first ``max_rows`` rows, adding an ellipsis row if any were cut."""
    if len(result) <= max_rows:
        return result
    kept = result[:max_rows]
    kept.append({col: text(ELLIPSIS) for col in result[0]})
    return kept


def render_table(
    result: TabularResult,
    max_rows: int = DEFAULT_MAX_ROWS,
    font_family: str = DEFAULT_FONT_FAMILY,
) -> str:
    """Render one tabular result as an HTML table wrapped for markdown output."""
    if len(result) < 1:
        return EMPTY_TABLE

    rows = truncate_rows(result, max_rows)
    body = "\n".join(_html_body_row(row) for row in rows)

    return f"""
  <div>
  <style scoped>
    table {{
      font-family: {font_family}
    }}
    table tbody tr:not(:first-child) td {{
      border-top: none;
      padding-top: 3px;
    }}
    table tbody tr:not(:last-child) td {{
      border-bottom: none;
      padding-bottom: 3px;
    }}
  </style>
  <table>
    <thead>
      {_html_header_row(rows[0])}
    </thead>
    <tbody>
      {body}
    </tbody>
  </table>
  </div>"""
