"""Translate sqllogictest cells into executable SQL.

Only ``statement`` and ``query`` records produce SQL. Harness directives are
recognised and skipped; anything else is logged and skipped.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger("sqlnb.slt")

RESULT_SEPARATOR = "----"

IGNORED_COMMANDS = frozenset({
    "include",
    "halt",
    "subtest",
    "sleep",
    "skipif",
    "onlyif",
    "connection",
    "system",
    "control",
    "hash-threshold",
})


def translate_statements(text: str) -> list[str]:
    """Return the SQL statements captured from one sqllogictest cell."""
    statements: list[str] = []
    lines = text.split("\n")

    i = 0
    while i < len(lines):
        line = lines[i]
        if not line.strip() or line.startswith("#"):
            i += 1
            continue

        # An indented command yields an empty first token and is not recognised
        tokens = re.split(r"\s+", line)
        command = tokens[0]

        if command in ("statement", "query"):
            stop_at_results = command == "query"
            query = ""
            # Capture until a blank line, or the results separator for queries
            while i + 1 < len(lines) and lines[i + 1]:
                if stop_at_results and lines[i + 1] == RESULT_SEPARATOR:
                    break
                query += lines[i + 1]
                i += 1
            if not query.rstrip().endswith(";"):
                query += ";"
            statements.append(query)
        elif command in IGNORED_COMMANDS:
            logger.warning("ignored sqllogictest command `%s`", " ".join(tokens))
        else:
            logger.error("unrecognized sqllogictest command `%s`", " ".join(tokens))
        i += 1

    return statements


def translate(text: str) -> str:
    """Translate a cell into the query text handed to the database."""
    return "\n".join(translate_statements(text))
