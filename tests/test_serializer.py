from __future__ import annotations

import pytest

from sqlnb.engine import (
    PLAIN_SQL,
    REGRESSION_TEST,
    Cell,
    Document,
    dialect_for_path,
    load_document,
    parse,
    save_document,
    serialize,
)
from sqlnb.engine.errors import InternalError


def test_parse_sql_code_and_markdown():
    """Markdown blocks become markup cells, everything else is SQL."""
    raw = b"/*markdown\n# Title\nSome text\n*/\n\nSELECT 1;\n\n\n\n  SELECT 2;  \n"
    cells = parse(raw, PLAIN_SQL)
    assert cells == [
        Cell("markup", "# Title\nSome text", "markdown"),
        Cell("code", "SELECT 1;", "sql"),
        Cell("code", "SELECT 2;", "sql"),
    ]


def test_parse_sql_markdown_without_body():
    """A two-line markdown block has empty content."""
    cells = parse(b"/*markdown\n*/", PLAIN_SQL)
    assert cells == [Cell("markup", "", "markdown")]


def test_parse_drops_empty_blocks():
    assert parse(b"\n\n   \n\n\n", PLAIN_SQL) == []


def test_sql_round_trip():
    """Documents written by serialize parse back to the same cells."""
    cells = [
        Cell("markup", "# Report\n\nwith a blank line inside", "markdown"),
        Cell("code", "SELECT *\nFROM t;", "sql"),
        Cell("markup", "closing words", "markdown"),
    ]
    raw = serialize(cells, PLAIN_SQL)
    assert raw == (
        b"/*markdown\n# Report\n\nwith a blank line inside\n*/\n\n"
        b"SELECT *\nFROM t;\n\n"
        b"/*markdown\nclosing words\n*/"
    )
    # A blank line inside markdown splits the block, so only blank-free cells round-trip
    simple = [cells[1], cells[2], Cell("code", "SELECT 1", "sql")]
    assert parse(serialize(simple, PLAIN_SQL), PLAIN_SQL) == simple


def test_cell_identity_not_part_of_equality():
    a = Cell("code", "SELECT 1", "sql")
    b = Cell("code", "SELECT 1", "sql")
    assert a.id != b.id
    assert a == b


def test_parse_slt_marks_pure_comments_as_plaintext():
    raw = b"# just a comment\n# another one\n\nstatement ok\nCREATE TABLE t(a INT)\n\n# header\nquery I\nSELECT 1\n"
    cells = parse(raw, REGRESSION_TEST)
    assert [c.kind for c in cells] == ["code", "code", "code"]
    assert [c.language for c in cells] == ["plaintext", "sql", "sql"]


def test_parse_slt_comment_without_space_is_sql():
    """Only lines starting with '# ' count as commentary."""
    cells = parse(b"#no space", REGRESSION_TEST)
    assert cells[0].language == "sql"


def test_serialize_slt_appends_trailing_newline():
    cells = [Cell("code", "statement ok\nSELECT 1", "sql"), Cell("code", "# note", "plaintext")]
    assert serialize(cells, REGRESSION_TEST) == b"statement ok\nSELECT 1\n\n# note\n"


def test_unknown_dialect_is_internal_error():
    with pytest.raises(InternalError):
        parse(b"SELECT 1", "csv")
    with pytest.raises(InternalError):
        serialize([], "csv")


def test_dialect_for_path():
    assert dialect_for_path("queries.sql") == PLAIN_SQL
    assert dialect_for_path("select1.SLT") == REGRESSION_TEST
    assert dialect_for_path("basic.test") == REGRESSION_TEST
    with pytest.raises(ValueError, match="Unknown notebook type"):
        dialect_for_path("notes.txt")


def test_load_and_save_document(tmp_path):
    """Load a notebook from disk and write it back."""
    path = tmp_path / "nb" / "report.sql"
    doc = Document(PLAIN_SQL, [Cell("markup", "# Hi", "markdown"), Cell("code", "SELECT 42", "sql")])
    save_document(path, doc)

    loaded = load_document(path)
    assert loaded.dialect == PLAIN_SQL
    assert loaded.cells == doc.cells
    assert len(loaded.code_cells()) == 1


def test_load_missing_document(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "missing.sql")
