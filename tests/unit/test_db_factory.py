from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, ClassVar, Optional

import psycopg
import pytest

from landmark_service.domain.models import CredentialSet
from landmark_service.errors import CredentialResolutionError, PoolInitializationError
from landmark_service.infrastructure import db_factory
from landmark_service.infrastructure.db_factory import close_pool, get_pool

CREDENTIALS = CredentialSet(
    host="db.internal",
    username="landmarks",
    password="s3cret",
    database="assessments",
    port=5432,
)


class _FakeConnection:
    def __init__(self, pool: _FakePool) -> None:
        self._pool = pool

    async def execute(self, statement: str, params: Any = None) -> None:
        del params
        self._pool.statements.append(statement)
        if self._pool.probe_error is not None:
            raise self._pool.probe_error


class _FakePool:
    instances: ClassVar[list[_FakePool]] = []

    def __init__(self, probe_error: Optional[Exception] = None) -> None:
        self.probe_error = probe_error
        self.statements: list[str] = []
        self.opened = False
        self.closed = False
        _FakePool.instances.append(self)

    async def open(self, wait: bool = False, timeout: float = 30.0) -> None:
        del wait, timeout
        self.opened = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[_FakeConnection]:
        yield _FakeConnection(self)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def pool_factory(monkeypatch: pytest.MonkeyPatch) -> list[Optional[Exception]]:
    """
    Replace pool construction; each build pops the next probe outcome
    (None = healthy) from the returned list.
    """
    _FakePool.instances = []
    probe_outcomes: list[Optional[Exception]] = []

    async def fake_get_credentials() -> CredentialSet:
        return CREDENTIALS

    def fake_create_pool(credentials: CredentialSet) -> _FakePool:
        assert credentials is CREDENTIALS
        outcome = probe_outcomes.pop(0) if probe_outcomes else None
        return _FakePool(probe_error=outcome)

    monkeypatch.setattr(db_factory, "get_credentials", fake_get_credentials)
    monkeypatch.setattr(db_factory, "create_pool", fake_create_pool)
    return probe_outcomes


@pytest.mark.asyncio
async def test_get_pool_probes_once_and_reuses_pool(pool_factory) -> None:
    first = await get_pool()
    second = await get_pool()

    assert first is second
    assert len(_FakePool.instances) == 1
    assert first.opened is True
    assert first.statements == ["SELECT 1"]


@pytest.mark.asyncio
async def test_probe_failure_discards_pool_and_next_call_rebuilds(pool_factory) -> None:
    pool_factory.append(psycopg.OperationalError("connection refused"))

    with pytest.raises(PoolInitializationError, match="connection refused"):
        await get_pool()

    broken = _FakePool.instances[0]
    assert broken.closed is True
    assert db_factory.current_pool() is None

    healthy = await get_pool()

    assert healthy is not broken
    assert len(_FakePool.instances) == 2
    assert db_factory.current_pool() is healthy


@pytest.mark.asyncio
async def test_credential_failure_propagates_without_building(monkeypatch) -> None:
    async def failing_credentials() -> CredentialSet:
        raise CredentialResolutionError("secret missing")

    def unexpected_create_pool(credentials: CredentialSet) -> None:
        raise AssertionError("pool must not be built without credentials")

    monkeypatch.setattr(db_factory, "get_credentials", failing_credentials)
    monkeypatch.setattr(db_factory, "create_pool", unexpected_create_pool)

    with pytest.raises(CredentialResolutionError):
        await get_pool()


@pytest.mark.asyncio
async def test_close_pool_closes_and_forgets(pool_factory) -> None:
    pool = await get_pool()

    await close_pool()

    assert pool.closed is True
    assert db_factory.current_pool() is None


@pytest.mark.asyncio
async def test_create_pool_is_capped_at_one_connection(static_db_env) -> None:
    pool = db_factory.create_pool(CREDENTIALS)

    assert pool.min_size == 0
    assert pool.max_size == 1
    assert pool.max_idle == 120.0
    assert pool.kwargs["connect_timeout"] == 10
    assert pool.kwargs["dbname"] == "assessments"
    assert pool.kwargs["user"] == "landmarks"


class _IdleConnection:
    def __init__(self) -> None:
        self.closed = False

    async def close(self) -> None:
        self.closed = True


@pytest.mark.asyncio
async def test_idle_connection_is_evicted_after_an_unused_window(static_db_env) -> None:
    pool = db_factory.create_pool(CREDENTIALS)
    idle = _IdleConnection()
    # One pooled connection that stayed unused for a whole max_idle window.
    pool._pool.append(idle)
    pool._nconns = 1
    pool._nconns_min = 1

    await pool._shrink_pool()

    assert idle.closed is True
    assert pool._nconns == 0
    assert len(pool._pool) == 0


@pytest.mark.asyncio
async def test_close_pool_during_build_closes_the_partial_pool(monkeypatch) -> None:
    _FakePool.instances = []

    class _StalledPool(_FakePool):
        async def open(self, wait: bool = False, timeout: float = 30.0) -> None:
            if len(_FakePool.instances) == 1:
                await asyncio.Event().wait()
            await super().open(wait, timeout)

    async def fake_get_credentials() -> CredentialSet:
        return CREDENTIALS

    monkeypatch.setattr(db_factory, "get_credentials", fake_get_credentials)
    monkeypatch.setattr(db_factory, "create_pool", lambda credentials: _StalledPool())

    waiter = asyncio.ensure_future(get_pool())
    while not _FakePool.instances:
        await asyncio.sleep(0)

    await close_pool()
    rebuilt = await waiter

    stalled = _FakePool.instances[0]
    assert stalled.closed is True
    assert stalled.opened is False
    assert rebuilt is _FakePool.instances[1]
    assert db_factory.current_pool() is rebuilt
