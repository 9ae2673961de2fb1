from __future__ import annotations

from sqlnb.engine import escape_cell, render_table, stringify_value
from sqlnb.engine.markdown import EMPTY_TABLE, truncate_rows
from sqlnb.engine.results import STRUCTURED, Value, make_row


def _rows(n: int) -> list:
    return [make_row(["id", "name"], [i, f"row {i}"]) for i in range(n)]


def _body_rows(html: str) -> list[str]:
    body = html.split("<tbody>", 1)[1].split("</tbody>", 1)[0]
    return [line.strip() for line in body.strip().split("\n")]


def test_escape_order():
    """Ampersands go first; backslash maps to the apostrophe entity."""
    assert escape_cell('a & "b" <c> \\d e') == (
        "a&nbsp;&amp;&nbsp;&quot;b&quot;&nbsp;&lt;c&gt;&nbsp;&apos;d&nbsp;e"
    )
    assert escape_cell("&lt;") == "&amp;lt;"


def test_stringify_binary_as_hex():
    assert stringify_value(Value.of(b"\x00\xffA")) == "0x00ff41"
    assert stringify_value(Value.of(bytearray(b"\x10"))) == "0x10"


def test_stringify_structured_as_json():
    assert stringify_value(Value.of({"a": [1, 2], "b": None})) == '{"a":[1,2],"b":null}'
    assert stringify_value(Value.of([1, "x"])) == '[1,"x"]'


def test_stringify_structured_falls_back_on_error():
    """Values JSON cannot encode use their default text form."""
    value = Value(STRUCTURED, {"blob": b"\x01"})
    assert stringify_value(value) == str({"blob": b"\x01"})


def test_stringify_text_collapses_newlines():
    assert stringify_value(Value.of("one\r\n\ntwo\rthree")) == "one two three"


def test_stringify_scalars():
    assert stringify_value(Value.of(None)) == "null"
    assert stringify_value(Value.of(True)) == "true"
    assert stringify_value(Value.of(False)) == "false"
    assert stringify_value(Value.of(42)) == "42"
    assert stringify_value(Value.of(1.5)) == "1.5"


def test_render_empty_result():
    assert render_table([]) == EMPTY_TABLE


def test_render_table_structure():
    html = render_table([make_row(["a b", "c"], ['x "y"', None])])
    assert "<th>a&nbsp;b</th><th>c</th>" in html
    assert _body_rows(html) == ["<tr><td>x&nbsp;&quot;y&quot;</td><td>null</td></tr>"]


def test_render_truncates_with_ellipsis_row():
    """More rows than max_rows keeps max_rows and appends one '...' row."""
    html = render_table(_rows(30), max_rows=25)
    rows = _body_rows(html)
    assert len(rows) == 26
    assert rows[0] == "<tr><td>0</td><td>row&nbsp;0</td></tr>"
    assert rows[-1] == "<tr><td>...</td><td>...</td></tr>"


def test_render_exactly_max_rows_not_truncated():
    rows = _body_rows(render_table(_rows(3), max_rows=3))
    assert len(rows) == 3
    assert "..." not in rows[-1]


def test_truncate_does_not_mutate_input():
    result = _rows(5)
    truncated = truncate_rows(result, 2)
    assert len(result) == 5
    assert len(truncated) == 3


def test_render_uses_font_family():
    html = render_table(_rows(1), font_family="Fira Code")
    assert "font-family: Fira Code" in html
