"""Project settings: sqlnb.yml parsing and defaults."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

SETTINGS_FILE = "sqlnb.yml"


class NotebookSettings(BaseModel):
    """Rendering options for cell outputs."""
    model_config = ConfigDict(extra="ignore")

    output_json: bool = False  # emit application/json next to each table
    max_result_rows: int = Field(default=25, ge=0)
    font_family: str = "monospace"


class DatabaseSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path: str | None = None  # DuckDB file or ":memory:"; None = not configured
    pool_size: int = Field(default=4, ge=1)
    read_only: bool = False


class ProjectSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    notebook: NotebookSettings = Field(default_factory=NotebookSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    log_level: str = "INFO"
    project_dir: Path = Field(default_factory=Path.cwd)


def _expand_env_vars(value: Any) -> Any:
    """Expand ${ENV_VAR} references in string values."""
    if isinstance(value, str):
        return re.sub(
            r"\$\{(\w+)\}",
            lambda m: os.environ.get(m.group(1), m.group(0)),
            value,
        )
    if isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(v) for v in value]
    return value


def load_settings(project_dir: Path | None = None) -> ProjectSettings:
    """Load sqlnb.yml from the given directory (or cwd).

    A missing file yields the defaults: no database, 25 rendered rows,
    no JSON companion output.
    """
    project_dir = Path(project_dir) if project_dir else Path.cwd()
    config_path = project_dir / SETTINGS_FILE

    if not config_path.exists():
        return ProjectSettings(project_dir=project_dir)

    raw = yaml.safe_load(config_path.read_text()) or {}
    raw = _expand_env_vars(raw)

    return ProjectSettings(
        notebook=NotebookSettings(**(raw.get("notebook") or {})),
        database=DatabaseSettings(**(raw.get("database") or {})),
        log_level=raw.get("log_level", "INFO"),
        project_dir=project_dir,
    )
