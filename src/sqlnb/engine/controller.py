"""Cell execution: run notebook cells one at a time against a pooled connection.

For every cell the controller:

    1. starts an execution and assigns the dialect's next execution order
    2. resolves the SQL (verbatim, or translated from sqllogictest)
    3. acquires a connection from the pool
    4. races the query against the cell's cancellation token
    5. releases (or, on cancel, destroys) the connection
    6. renders the result and finalizes the cell exactly once

Cells in a batch never overlap: cell i+1 starts after cell i has finalized.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from sqlnb.config import NotebookSettings

from .cells import PLAIN_SQL, REGRESSION_TEST, Cell, Document
from .errors import (
    CancellationError,
    ConfigurationError,
    InternalError,
    PoolNotConfiguredError,
    QueryError,
)
from .markdown import render_table
from .pool import Connection, Pool
from .results import STATUS, TABLES, StatusResult, TablesResult, to_plain
from .slt import translate

logger = logging.getLogger("sqlnb.controller")

NO_CONNECTION_MESSAGE = (
    "No active connection found. Configure a database connection before running cells."
)
CANCELLED_MESSAGE = "Query cancelled"
INTERNAL_ERROR_MESSAGE = "Internal error happened"
SUCCESS_MESSAGE = "Successfully executed query"

TEXT_PLAIN = "text/plain"
TEXT_MARKDOWN = "text/markdown"
APPLICATION_JSON = "application/json"


@dataclass
class OutputItem:
    mime: str
    data: Any


@dataclass
class CellOutput:
    """One output block of a cell; a table and its JSON companion share a block."""

    items: list[OutputItem] = field(default_factory=list)


def text_output(text: str, mime: str = TEXT_PLAIN) -> CellOutput:
    return CellOutput([OutputItem(mime, text)])


@dataclass
class CellRun:
    """The outcome of executing one cell."""

    cell: Cell
    execution_order: int | None = None
    success: bool | None = None
    outputs: list[CellOutput] = field(default_factory=list)
    started_at: float | None = None
    ended_at: float | None = None

    @property
    def error(self) -> str | None:
        if self.success is not False or not self.outputs:
            return None
        return self.outputs[0].items[0].data


class CancellationToken:
    """Set once by :meth:`cancel`; awaited by the controller's watcher task."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


class CellExecution:
    """Execution context of a single cell with a one-shot finalize gate."""

    def __init__(self, cell: Cell) -> None:
        self.cell = cell
        self.token = CancellationToken()
        self.run = CellRun(cell=cell)

    @property
    def finalized(self) -> bool:
        return self.run.ended_at is not None

    def start(self) -> None:
        self.run.started_at = time.time()

    def end(self, success: bool, outputs: list[CellOutput]) -> bool:
        """Replace the cell's outputs and record completion. Only the first call counts."""
        if self.finalized:
            logger.debug("Cell %s already finalized, ignoring", self.cell.id)
            return False
        self.cell.outputs = list(outputs)
        self.run.outputs = list(outputs)
        self.run.success = success
        self.run.ended_at = time.time()
        return True

    def fail(self, message: str) -> bool:
        return self.end(False, [text_output(message)])


def _log_abandoned_query(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.debug("Cancelled query task stopped")
    elif task.exception() is not None:
        logger.debug("Cancelled query failed afterwards: %s", task.exception())
    else:
        logger.debug("Cancelled query completed afterwards, result discarded")


class NotebookController:
    """Executes notebook cells for both dialects.

    The pool is an explicit handle: ``None`` means no connection is
    configured and every cell fails with a configuration error.
    """

    def __init__(self, pool: Pool | None = None, settings: NotebookSettings | None = None) -> None:
        self._pool = pool
        self.settings = settings or NotebookSettings()
        # Never reset for the controller's lifetime
        self._execution_order = {PLAIN_SQL: 0, REGRESSION_TEST: 0}
        self._executions: dict[str, CellExecution] = {}

    @property
    def pool(self) -> Pool | None:
        return self._pool

    def configure(self, pool: Pool | None) -> None:
        self._pool = pool

    async def dispose(self) -> None:
        """End the pool. Later executions fail as not configured."""
        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.end()

    def cancel(self, cell: Cell) -> bool:
        """Request cancellation of a running cell. Returns False if it is not running."""
        execution = self._executions.get(cell.id)
        if execution is None or execution.finalized:
            return False
        execution.token.cancel()
        return True

    async def execute_document(self, document: Document) -> list[CellRun]:
        return await self.execute(document.code_cells(), document)

    async def execute(self, cells: list[Cell], document: Document) -> list[CellRun]:
        """Run cells sequentially, in order, awaiting each one's completion."""
        runs = []
        for cell in cells:
            if not cell.is_code:
                logger.debug("Skipping %s cell %s", cell.kind, cell.id)
                continue
            runs.append(await self._do_execution(cell, document))
        return runs

    async def _do_execution(self, cell: Cell, document: Document) -> CellRun:
        execution = CellExecution(cell)
        self._executions[cell.id] = execution
        try:
            await self._run_cell(execution, document)
        except InternalError as e:
            logger.error("Internal error in cell %s: %s", cell.id, e)
            execution.fail(INTERNAL_ERROR_MESSAGE)
        except Exception:
            logger.exception("Unexpected failure executing cell %s", cell.id)
            execution.fail(INTERNAL_ERROR_MESSAGE)
        finally:
            self._executions.pop(cell.id, None)
        return execution.run

    def _next_execution_order(self, dialect: str) -> int:
        if dialect not in self._execution_order:
            raise InternalError(f"something strange happened, notebook dialect: {dialect!r}")
        self._execution_order[dialect] += 1
        return self._execution_order[dialect]

    def _resolve_query(self, cell: Cell, dialect: str) -> str:
        if dialect == PLAIN_SQL:
            return cell.content
        return translate(cell.content)

    async def _run_cell(self, execution: CellExecution, document: Document) -> None:
        execution.start()
        execution.run.execution_order = self._next_execution_order(document.dialect)
        query = self._resolve_query(execution.cell, document.dialect)

        pool = self._pool
        if pool is None:
            execution.fail(NO_CONNECTION_MESSAGE)
            return

        try:
            conn = await pool.acquire()
        except PoolNotConfiguredError:
            execution.fail(NO_CONNECTION_MESSAGE)
            return
        except ConfigurationError as e:
            execution.fail(str(e))
            return

        logger.debug("executing query %r", query)
        try:
            result = await self._query_or_cancel(execution, conn, query)
        except QueryError as e:
            logger.debug("sql query failed: %s", e)
            await conn.release()
            execution.fail(str(e))
            return
        except CancellationError as e:
            # Connection already destroyed by the race
            execution.fail(str(e))
            return
        except Exception:
            # Connection state is unknown after an unexpected failure
            await conn.destroy()
            raise

        await conn.release()
        execution.end(True, self._render(result))

    async def _query_or_cancel(
        self,
        execution: CellExecution,
        conn: Connection,
        query: str,
    ) -> StatusResult | TablesResult:
        """Run the query unless cancellation wins the race.

        Raises ``CancellationError`` after destroying the connection when the
        token fires first.
        """
        query_task = asyncio.create_task(conn.query(query))
        cancel_task = asyncio.create_task(execution.token.wait())
        try:
            await asyncio.wait({query_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            query_task.cancel()
            query_task.add_done_callback(_log_abandoned_query)
            await conn.destroy()
            execution.fail(CANCELLED_MESSAGE)
            raise
        finally:
            cancel_task.cancel()

        if query_task.done():
            return query_task.result()

        logger.debug("got cancellation request for cell %s", execution.cell.id)
        query_task.cancel()
        query_task.add_done_callback(_log_abandoned_query)
        await conn.destroy()
        raise CancellationError(CANCELLED_MESSAGE)

    def _render(self, result: StatusResult | TablesResult) -> list[CellOutput]:
        if result.kind == STATUS:
            return [text_output(result.text)]
        if result.kind == TABLES:
            if result.is_empty():
                return [text_output(SUCCESS_MESSAGE)]
            outputs = []
            for table in result.tables:
                items = [OutputItem(
                    TEXT_MARKDOWN,
                    render_table(table, self.settings.max_result_rows, self.settings.font_family),
                )]
                if self.settings.output_json:
                    items.append(OutputItem(APPLICATION_JSON, [to_plain(row) for row in table]))
                outputs.append(CellOutput(items))
            return outputs
        raise InternalError(f"Unknown result kind: {result.kind!r}")
