"""
EXECUTOR MODULE - Run statements on one pooled connection

Purpose:
    1. Execute parameterized SQL (arguments bound by the driver as $1, $2, ...)
    2. Execute statements synthesized from a SchemaDescriptor (no parameters)
    3. Log every call with its timing, unless the SQL starts with "!"
    4. Normalize result rows and translate failures into the error taxonomy

Data Flow:
    caller → DB.exec()/get()/... → connection → rows → normalize() → caller
                                              ↘ failure → translate_error() → caller
"""

import logging
import textwrap
import time
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncConnection

from pgbridge.core.errors import DbError, InternalConsistencyError, translate_error
from pgbridge.core.results import QueryResult, Row, normalize
from pgbridge.core.schemas import Record, SchemaDescriptor
from pgbridge.core.statements import Statement, build_insert, build_update, build_upsert

# Prefix that silences the per-call debug lines for one statement
QUIET_PREFIX = "!"

default_logger = logging.getLogger(__name__)


def reindent(sql: str) -> str:
    """Strip the common indentation of a triple-quoted query for log output."""
    return textwrap.dedent(sql).strip()


def _strip_quiet(query: str) -> str:
    return query[len(QUIET_PREFIX):] if query.startswith(QUIET_PREFIX) else query


class DB:
    """
    Query executor bound to a single connection for one unit of work.

    Transactions are plain statements: begin(), commit() and rollback() send
    BEGIN / COMMIT / ROLLBACK. Nothing here rolls back on its own.
    """

    def __init__(self, conn: AsyncConnection, logger: Optional[logging.Logger] = None):
        self._conn: Optional[AsyncConnection] = conn
        self.logger = logger or default_logger

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    @property
    def released(self) -> bool:
        return self._conn is None

    @property
    def connection(self) -> AsyncConnection:
        if self._conn is None:
            raise DbError("Session already released")
        return self._conn

    async def release(self) -> None:
        """Return the connection to the pool. Safe to call more than once."""
        conn, self._conn = self._conn, None
        if conn is not None:
            await conn.close()

    async def begin(self) -> None:
        await self.proc("BEGIN")

    async def commit(self) -> None:
        await self.proc("COMMIT")

    async def rollback(self) -> None:
        await self.proc("ROLLBACK")

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    async def _run(self, tag: str, query: str, args: Sequence[Any] = ()):
        """
        Execute one statement and return (result, quiet, started).

        Driver failures are logged with the offending query and re-raised
        as DbError subclasses.
        """
        quiet = query.startswith(QUIET_PREFIX)
        sql = _strip_quiet(query)
        params = tuple(args) if args else None

        if not quiet:
            self.logger.debug("%s: %s %s", tag, reindent(sql), list(args))

        started = time.perf_counter()
        try:
            result = await self.connection.exec_driver_sql(sql, params)
        except DbError:
            raise
        except Exception as exc:
            raise self._fail(tag, sql, args, translate_error(exc)) from exc

        return result, quiet, started

    def _fail(self, tag: str, sql: str, args: Sequence[Any], error: DbError) -> DbError:
        """Log a failed call with its query and arguments; returns the error to raise."""
        self.logger.error("DB:%s ERROR %s", tag, error)
        self.logger.error("E: %s %s", reindent(_strip_quiet(sql)), list(args))
        return error

    def _done(self, quiet: bool, started: float, outcome: Any) -> None:
        if not quiet:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self.logger.debug("R: %s %d ms", outcome, elapsed_ms)

    @staticmethod
    def _rows(result) -> list:
        if not result.returns_rows:
            return []
        return [dict(row) for row in result.mappings()]

    async def _fetch(self, tag: str, sql: str, args: Sequence[Any]) -> QueryResult:
        result, quiet, started = await self._run(tag, sql, args)
        rows = self._rows(result)
        rowcount = result.rowcount
        if rowcount is None or rowcount < 0:
            rowcount = len(rows)
        self._done(quiet, started, f"{len(rows)} rows")
        return QueryResult(rows, rowcount)

    # -------------------------------------------------------------------------
    # Raw SQL accessors
    # -------------------------------------------------------------------------

    async def exec(
        self,
        sql: str,
        args: Sequence[Any] = (),
        include_nulls: bool = False,
        no_trim_strings: bool = False,
    ) -> QueryResult:
        """
        Run a parameterized query and return all of its rows.

        Example:
            res = await db.exec("SELECT * FROM users WHERE role = $1", ["admin"])
            for row in res.rows: ...
        """
        res = await self._fetch("Q", sql, args)
        return normalize(res, include_nulls=include_nulls, no_trim_strings=no_trim_strings)

    async def get(
        self,
        sql: str,
        args: Sequence[Any] = (),
        include_nulls: bool = False,
        no_trim_strings: bool = False,
    ) -> Optional[Row]:
        """Return the only row of the query, or None. Two or more rows is a bug."""
        res = await self.exec(sql, args, include_nulls, no_trim_strings)
        if len(res.rows) > 1:
            raise self._fail(
                "Q",
                sql,
                args,
                InternalConsistencyError(f"Internal error: db.get() returned {len(res.rows)} rows"),
            )
        return res.rows[0] if res.rows else None

    async def proc(self, sql: str, args: Sequence[Any] = ()) -> int:
        """Run a statement for its side effects and return the affected row count."""
        result, quiet, started = await self._run("P", sql, args)
        # Commands such as BEGIN report no count (-1)
        rowcount = max(result.rowcount or 0, 0)
        self._done(quiet, started, f"{rowcount} rows")
        return rowcount

    async def func(self, sql: str, args: Sequence[Any] = ()) -> Any:
        """
        Return the single value of a one-row, one-column result.

        Meant for scalar server-side functions: SELECT place_order($1, $2)
        """
        result, quiet, started = await self._run("F", sql, args)
        rows = result.all() if result.returns_rows else []
        if len(rows) != 1 or len(rows[0]) != 1:
            raise self._fail("F", sql, args, InternalConsistencyError("Internal error: db.func() result"))
        value = rows[0][0]
        self._done(quiet, started, value)
        return value

    async def map(
        self,
        sql: str,
        key: str,
        args: Sequence[Any] = (),
        include_nulls: bool = False,
        no_trim_strings: bool = False,
    ) -> Dict[Any, Row]:
        """Index the rows of a query by the value of column `key`; later rows win."""
        res = await self.exec(sql, args, include_nulls, no_trim_strings)
        return {row.get(key): row for row in res.rows}

    # -------------------------------------------------------------------------
    # Schema-driven writes
    # -------------------------------------------------------------------------

    async def _write(self, tag: str, stmt: Statement) -> Optional[Row]:
        res = await self._fetch(tag, stmt.text, stmt.params)
        return res.rows[0] if res.rows else None

    async def insert(self, table: str, schema: SchemaDescriptor, record: Record) -> Optional[Row]:
        return await self._write("I", build_insert(table, schema, record))

    async def upsert(self, table: str, schema: SchemaDescriptor, record: Record) -> Optional[Row]:
        return await self._write("S", build_upsert(table, schema, record))

    async def update(self, table: str, schema: SchemaDescriptor, record: Record) -> Optional[Row]:
        return await self._write("U", build_update(table, schema, record))
