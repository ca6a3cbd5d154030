"""
Database connection pool management for the Landmark Service.

The service runs one logical execution context per process, so the pool is
capped at a single physical connection and reused by every invocation that
lands on a warm process. That connection is opened on demand and closed
after two idle minutes, so a quiet process holds no connection. The pool is
built lazily on first use from the resolved credentials and verified with a
connect-and-release probe before it is handed out. A failed or cancelled
build is closed and forgotten; the next call retries.

There is no teardown on exit: the hosting runtime recycles the process.
`close_pool()` exists for the CLI and tests.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from landmark_service.config import get_settings
from landmark_service.domain.models import CredentialSet
from landmark_service.errors import PoolInitializationError
from landmark_service.infrastructure.credentials import get_credentials
from landmark_service.utils.lazy import AsyncLazy
from landmark_service.utils.logging import get_logger

log = get_logger(__name__)

# idle eviction (max_idle) only applies to connections above min_size
POOL_MIN_SIZE = 0
POOL_MAX_SIZE = 1
LIVENESS_PROBE_SQL = "SELECT 1"


def _connection_kwargs(credentials: CredentialSet) -> Dict[str, Any]:
    """
    Compose psycopg connection kwargs from credentials and settings.

    ``DB_SSLMODE=require`` encrypts the transport without verifying the server
    certificate.
    """
    settings = get_settings()
    kwargs = credentials.connection_kwargs()
    kwargs.update(
        connect_timeout=settings.db_connect_timeout_seconds,
        sslmode=settings.db_sslmode,
        row_factory=dict_row,
    )
    return kwargs


def create_pool(credentials: CredentialSet) -> AsyncConnectionPool:
    """
    Construct an unopened single-connection async pool.

    Parameters
    ----------
    credentials : CredentialSet
        Resolved connection parameters.

    Returns
    -------
    AsyncConnectionPool
        Pool configured with idle eviction and connect timeout; call
        ``open()`` before use.
    """
    settings = get_settings()
    return AsyncConnectionPool(
        conninfo="",
        kwargs=_connection_kwargs(credentials),
        min_size=POOL_MIN_SIZE,
        max_size=POOL_MAX_SIZE,
        max_idle=settings.db_pool_max_idle_seconds,
        timeout=float(settings.db_connect_timeout_seconds),
        open=False,
        name="landmarks",
    )


async def _probe(pool: AsyncConnectionPool) -> None:
    async with pool.connection() as conn:
        await conn.execute(LIVENESS_PROBE_SQL)


async def _build_pool() -> AsyncConnectionPool:
    credentials = await get_credentials()
    settings = get_settings()
    pool = create_pool(credentials)
    try:
        await pool.open(wait=True, timeout=float(settings.db_connect_timeout_seconds))
        await _probe(pool)
    except (psycopg.Error, PoolTimeout, OSError) as error:
        await pool.close()
        log.error(
            "[POOL] Liveness probe failed",
            extra={"error": str(error)},
        )
        raise PoolInitializationError(f"Database pool initialization failed: {error}") from error
    except asyncio.CancelledError:
        # close_pool() during the build
        await pool.close()
        raise
    log.info(
        "[POOL] Connection pool ready",
        extra={"max_size": POOL_MAX_SIZE},
    )
    return pool


_pool: AsyncLazy[AsyncConnectionPool] = AsyncLazy(_build_pool, name="pool")


async def get_pool() -> AsyncConnectionPool:
    """
    Return the process-wide pool, building and probing it on first use.

    Subsequent calls return the cached pool without re-probing.

    Raises
    ------
    CredentialResolutionError
        If credentials cannot be resolved.
    PoolInitializationError
        If the pool cannot connect or the liveness probe fails.
    """
    return await _pool.get()


def current_pool() -> Optional[AsyncConnectionPool]:
    """Return the cached pool without building one."""
    return _pool.peek()


async def close_pool() -> None:
    """Close and forget the cached pool, if any."""
    pool = _pool.reset()
    if pool is not None:
        await pool.close()


__all__ = [
    "create_pool",
    "current_pool",
    "close_pool",
    "get_pool",
]
