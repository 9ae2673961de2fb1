from __future__ import annotations

import json

from typer.testing import CliRunner

from sqlnb.cli import app

runner = CliRunner()


def _write(path, text):
    path.write_text(text)
    return path


def test_run_sql_notebook(tmp_path):
    nb = _write(
        tmp_path / "report.sql",
        "/*markdown\n# Report\n*/\n\nCREATE TABLE t AS SELECT 42 AS val\n\nSELECT val FROM t\n",
    )
    result = runner.invoke(app, ["run", str(nb), "--database", ":memory:", "--project", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "42" in result.output
    assert "2 cells executed, 0 failed" in result.output


def test_run_json_format(tmp_path):
    nb = _write(tmp_path / "q.sql", "SELECT 1 AS id, 'a' AS name")
    result = runner.invoke(
        app, ["run", str(nb), "-d", ":memory:", "--format", "json", "--project", str(tmp_path)]
    )
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    start = lines.index("[")
    end = lines.index("]", start) + 1
    assert json.loads("\n".join(lines[start:end])) == [{"id": 1, "name": "a"}]


def test_run_without_database_fails(tmp_path):
    nb = _write(tmp_path / "q.sql", "SELECT 1")
    result = runner.invoke(app, ["run", str(nb), "--project", str(tmp_path)])
    assert result.exit_code == 1
    assert "No active connection found" in result.output


def test_run_uses_settings_file(tmp_path):
    (tmp_path / "sqlnb.yml").write_text("database:\n  path: local.duckdb\n")
    nb = _write(tmp_path / "q.sql", "SELECT 7 AS seven")
    result = runner.invoke(app, ["run", str(nb), "--project", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "local.duckdb").exists()


def test_run_missing_notebook(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path / "nope.sql"), "-d", ":memory:"])
    assert result.exit_code == 1
    assert "Notebook not found" in result.output


def test_cells_lists_slt_translation(tmp_path):
    nb = _write(tmp_path / "basic.slt", "# comment only\n\nstatement ok\nCREATE TABLE t(a INT)\n")
    result = runner.invoke(app, ["cells", str(nb)])
    assert result.exit_code == 0, result.output
    assert "plaintext" in result.output
    assert "CREATE TABLE" in result.output


def test_translate_command(tmp_path):
    nb = _write(tmp_path / "basic.slt", "statement ok\nSELECT 1\n\nquery I\nSELECT 2\n----\n2\n")
    result = runner.invoke(app, ["translate", str(nb)])
    assert result.exit_code == 0, result.output
    assert "SELECT 1;" in result.output
    assert "SELECT 2;" in result.output


def test_translate_rejects_sql_files(tmp_path):
    nb = _write(tmp_path / "q.sql", "SELECT 1")
    result = runner.invoke(app, ["translate", str(nb)])
    assert result.exit_code == 1
