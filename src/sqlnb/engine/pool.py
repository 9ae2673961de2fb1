"""Connection pool contract and the DuckDB-backed implementation.

The controller only relies on the base-class contract:

- ``Pool.acquire()`` hands out a ``Connection`` (may raise ``ConfigurationError``)
- ``Connection.query(text)`` returns an ``ExecutionResult`` or raises ``QueryError``
- ``Connection.release()`` returns it for reuse
- ``Connection.destroy()`` removes it from the pool for good
- ``Pool.end()`` closes everything; later acquisitions fail

Each handle is released or destroyed at most once; repeated calls are no-ops.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import TYPE_CHECKING

import duckdb

from .database import connect, run_statements
from .errors import PoolExhaustedError, PoolNotConfiguredError, QueryError
from .results import StatusResult, TablesResult

if TYPE_CHECKING:
    from sqlnb.config import ProjectSettings

logger = logging.getLogger("sqlnb.pool")

ACTIVE = "active"
RELEASED = "released"
DESTROYED = "destroyed"


class Connection:
    """A checked-out database connection."""

    async def query(self, text: str) -> StatusResult | TablesResult:
        raise NotImplementedError

    async def release(self) -> None:
        raise NotImplementedError

    async def destroy(self) -> None:
        raise NotImplementedError


class Pool:
    """A manager of reusable connections."""

    async def acquire(self) -> Connection:
        raise NotImplementedError

    async def end(self) -> None:
        raise NotImplementedError


class DuckDBConnection(Connection):
    """One checkout of a DuckDB cursor from a :class:`DuckDBPool`.

    Statements run in a worker thread. ``destroy`` interrupts a running
    statement; the cursor is closed by whichever side finishes last.
    """

    def __init__(self, pool: DuckDBPool, raw: duckdb.DuckDBPyConnection) -> None:
        self._pool = pool
        self._raw = raw
        self._state = ACTIVE
        self._busy = False
        self._lock = threading.Lock()

    @property
    def state(self) -> str:
        return self._state

    async def query(self, text: str) -> StatusResult | TablesResult:
        with self._lock:
            if self._state != ACTIVE:
                raise QueryError(f"Connection is {self._state}")
            self._busy = True
        logger.debug("Running query on %s: %s", id(self._raw), text)
        try:
            return await asyncio.to_thread(self._run, text)
        except duckdb.Error as e:
            raise QueryError(str(e)) from e

    def _run(self, text: str) -> StatusResult | TablesResult:
        try:
            # Destroyed before the worker picked the statement up
            if self._state == DESTROYED:
                raise QueryError("Connection is destroyed")
            return run_statements(self._raw, text)
        finally:
            with self._lock:
                self._busy = False
                destroyed = self._state == DESTROYED
            if destroyed:
                self._raw.close()

    async def release(self) -> None:
        with self._lock:
            if self._state != ACTIVE:
                logger.debug("Ignoring release of %s connection", self._state)
                return
            self._state = RELEASED
        self._pool._return(self._raw)

    async def destroy(self) -> None:
        with self._lock:
            if self._state != ACTIVE:
                logger.debug("Ignoring destroy of %s connection", self._state)
                return
            self._state = DESTROYED
            busy = self._busy
            if busy:
                # The worker thread closes the cursor once the statement stops.
                self._raw.interrupt()
        self._pool._discard()
        if not busy:
            self._raw.close()


class DuckDBPool(Pool):
    """Pool of DuckDB cursors sharing one database.

    Cursors of a single root connection see the same database, which keeps
    ``:memory:`` databases shared across cells.
    """

    def __init__(self, path: str | Path = ":memory:", size: int = 4, read_only: bool = False) -> None:
        if size < 1:
            raise ValueError(f"Pool size must be at least 1, got {size}")
        self.path = str(path)
        self.size = size
        self._root = connect(self.path, read_only=read_only)
        self._idle: list[duckdb.DuckDBPyConnection] = []
        self._checked_out = 0
        self._ended = False

    async def acquire(self) -> DuckDBConnection:
        if self._ended:
            raise PoolNotConfiguredError("Connection pool has been closed")
        if self._idle:
            raw = self._idle.pop()
        elif self._checked_out >= self.size:
            raise PoolExhaustedError(
                f"Connection pool exhausted: all {self.size} connections are in use"
            )
        else:
            raw = self._root.cursor()
        self._checked_out += 1
        return DuckDBConnection(self, raw)

    async def end(self) -> None:
        if self._ended:
            return
        self._ended = True
        for raw in self._idle:
            raw.close()
        self._idle.clear()
        self._root.close()
        logger.info("Closed connection pool for %s", self.path)

    def stats(self) -> dict[str, int]:
        return {"idle": len(self._idle), "checked_out": self._checked_out}

    def _return(self, raw: duckdb.DuckDBPyConnection) -> None:
        self._checked_out -= 1
        if self._ended:
            raw.close()
        else:
            self._idle.append(raw)

    def _discard(self) -> None:
        self._checked_out -= 1


def open_pool(settings: ProjectSettings, project_dir: Path | None = None) -> DuckDBPool | None:
    """Open the configured pool, or ``None`` when no database is configured."""
    db = settings.database
    if not db.path:
        return None
    path = db.path
    if path != ":memory:" and project_dir is not None and not Path(path).is_absolute():
        path = str(Path(project_dir) / path)
    logger.info("Opening connection pool for %s (size=%d)", path, db.pool_size)
    return DuckDBPool(path, size=db.pool_size, read_only=db.read_only)
