"""
Pytest configuration for the Landmark Service.

Provides fixtures for:
- Resetting process-scoped state (settings, credentials, pool) between tests
- Static database credentials in the environment
- Database connection management and landmark tables for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from landmark_service.config import Settings, get_settings
from landmark_service.infrastructure import credentials, db_factory

CONFIG_ENV_VARS = (
    "DB_HOST",
    "DB_PORT",
    "DB_USER",
    "DB_PASSWORD",
    "DB_NAME",
    "DB_SECRET_NAME",
    "DB_SSLMODE",
    "S3_ENDPOINT_URL",
    "LOG_JSON",
)

LANDMARK_TABLES_DDL = """
CREATE TABLE IF NOT EXISTS hitting_landmarks (
    id BIGSERIAL PRIMARY KEY,
    assessment_id BIGINT NOT NULL,
    file_name TEXT NOT NULL,
    raw_json JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
CREATE TABLE IF NOT EXISTS pitching_landmarks (
    id BIGSERIAL PRIMARY KEY,
    assessment_id BIGINT NOT NULL,
    file_name TEXT NOT NULL,
    raw_json JSONB NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);
"""


def _reset_state() -> None:
    get_settings.cache_clear()
    credentials.reset_credentials()
    db_factory._pool.reset()


@pytest.fixture(autouse=True)
def isolated_process_state(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Start every test with no cached settings, credentials or pool and with
    no DB_* configuration inherited from the developer's shell.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(os.path.dirname(__file__))
    _reset_state()
    yield
    _reset_state()


@pytest.fixture
def static_db_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Fully-specified static credentials."""
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_PORT", "5433")
    monkeypatch.setenv("DB_USER", "landmarks")
    monkeypatch.setenv("DB_PASSWORD", "s3cret")
    monkeypatch.setenv("DB_NAME", "assessments")
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings for integration tests.

    Reads TEST_DB_* so a developer's DB_* never points tests at a real database.
    """
    return Settings(
        db_host=os.getenv("TEST_DB_HOST", "localhost"),
        db_port=int(os.getenv("TEST_DB_PORT", "5432")),
        db_user=os.getenv("TEST_DB_USER", "postgres"),
        db_password=os.getenv("TEST_DB_PASSWORD", "postgres"),
        db_name=os.getenv("TEST_DB_NAME", "landmarks_test"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        with conn.cursor() as cur:
            cur.execute(LANDMARK_TABLES_DDL)
        yield conn
    finally:
        conn.close()


@pytest.fixture
def clean_landmark_tables(db_connection: psycopg.Connection) -> Generator[None, None, None]:
    """
    Empty both landmark tables before and after a test.
    """
    truncate = "TRUNCATE TABLE hitting_landmarks, pitching_landmarks RESTART IDENTITY;"
    with db_connection.cursor() as cur:
        cur.execute(truncate)
    yield
    with db_connection.cursor() as cur:
        cur.execute(truncate)


@pytest.fixture
def integration_db_env(
    monkeypatch: pytest.MonkeyPatch, test_settings: Settings, clean_landmark_tables: None
) -> None:
    """Point the service's static credentials at the test database."""
    monkeypatch.setenv("DB_HOST", test_settings.db_host or "localhost")
    monkeypatch.setenv("DB_PORT", str(test_settings.db_port))
    monkeypatch.setenv("DB_USER", test_settings.db_user or "postgres")
    monkeypatch.setenv("DB_PASSWORD", test_settings.db_password or "postgres")
    monkeypatch.setenv("DB_NAME", test_settings.db_name or "landmarks_test")
    monkeypatch.setenv("DB_SSLMODE", "disable")
    get_settings.cache_clear()
