"""
Instrumented statement execution.

Every statement runs on the process-wide pool, is timed with the profiler and
logged with its text, duration and row count. Parameters are never logged.
Driver failures are re-raised as `QueryExecutionError`; nothing is retried.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Sequence, Union

import psycopg
from psycopg import sql
from psycopg_pool import PoolTimeout

from landmark_service.config import get_settings
from landmark_service.domain.models import QueryResult
from landmark_service.errors import QueryExecutionError
from landmark_service.infrastructure.db_factory import get_pool
from landmark_service.utils.logging import get_logger
from landmark_service.utils.profiler import profile_block

log = get_logger(__name__)

Statement = Union[str, sql.Composable]


def _statement_text(statement: Statement, conn: psycopg.AsyncConnection) -> str:
    if isinstance(statement, str):
        return statement
    return statement.as_string(conn)


async def execute(statement: Statement, params: Optional[Sequence[Any]] = None) -> QueryResult:
    """
    Execute a parameterized statement and return its rows.

    Parameters
    ----------
    statement : str | psycopg.sql.Composable
        Statement text with ``%s`` placeholders.
    params : sequence, optional
        Positional parameters.

    Returns
    -------
    QueryResult
        Rows as dicts (empty for statements without a result set) and the
        driver-reported row count.

    Raises
    ------
    QueryExecutionError
        If the statement fails or no connection could be obtained.
    """
    pool = await get_pool()
    text = statement if isinstance(statement, str) else "<composed>"
    try:
        with profile_block("query") as stats:
            async with pool.connection() as conn:
                text = _statement_text(statement, conn)
                cursor = await conn.execute(statement, params)
                rows = await cursor.fetchall() if cursor.description else []
                row_count = cursor.rowcount if cursor.rowcount >= 0 else len(rows)
    except (psycopg.Error, PoolTimeout) as error:
        log.error(
            "[QUERY] Database query error",
            extra={"text": text, "duration_ms": stats.duration_ms, "error": str(error)},
        )
        raise QueryExecutionError(str(error)) from error

    log.info(
        "[QUERY] Executed query",
        extra={"text": text, "duration_ms": stats.duration_ms, "rows": row_count},
    )
    return QueryResult(rows=list(rows), row_count=row_count)


async def check_health(timeout: Optional[float] = None) -> None:
    """
    Run a trivial statement raced against a timer.

    Raises
    ------
    QueryExecutionError
        If the statement fails or does not finish within ``timeout`` seconds
        (default ``DB_HEALTH_TIMEOUT_SECONDS``).
    """
    limit = timeout if timeout is not None else get_settings().db_health_timeout_seconds
    try:
        await asyncio.wait_for(execute("SELECT 1"), timeout=limit)
    except asyncio.TimeoutError as error:
        raise QueryExecutionError("Database connection timeout") from error


__all__ = ["Statement", "check_health", "execute"]
