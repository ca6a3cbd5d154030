from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Awaitable, Optional, TypeVar
from urllib.parse import quote_plus

import typer

from landmark_service.config import get_settings
from landmark_service.domain.models import LandmarkType
from landmark_service.errors import LandmarkServiceError
from landmark_service.infrastructure import close_pool
from landmark_service.infrastructure.query import check_health
from landmark_service.orchestrator import handle_object_created
from landmark_service.reporter import print_ingestion_result, print_landmarks
from landmark_service.repository import get_landmarks
from landmark_service.utils.logging import configure_logging

app = typer.Typer(help="Landmark Service CLI.")

T = TypeVar("T")


def _run(coro: Awaitable[T]) -> T:
    """Run one command on a fresh loop and release the pool afterwards."""

    async def _main() -> T:
        try:
            return await coro
        finally:
            await close_pool()

    return asyncio.run(_main())


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _parse_type(value: Optional[str]) -> Optional[LandmarkType]:
    if value is None:
        return None
    try:
        return LandmarkType.parse(value)
    except ValueError as error:
        raise typer.BadParameter(str(error)) from error


@app.command()
def info() -> None:
    """
    Show effective configuration values (never the password).
    """
    settings = get_settings()
    if settings.db_secret_name:
        source = f"secret={settings.db_secret_name}"
    else:
        source = f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    typer.echo(
        f"{source} | sslmode={settings.db_sslmode} | region={settings.aws_region} "
        f"s3_attempts={settings.s3_max_attempts} s3_timeout={settings.s3_timeout_seconds}s"
    )


@app.command()
def health() -> None:
    """
    Check that the database accepts a trivial query.
    """
    _setup()
    try:
        _run(check_health())
    except LandmarkServiceError as error:
        typer.echo(f"Database unavailable: {error}", err=True)
        raise typer.Exit(code=1) from error
    typer.echo("Database connected.")


@app.command()
def landmarks(
    assessment_id: str = typer.Argument(..., help="Assessment ID to look up."),
    landmark_type: Optional[str] = typer.Option(
        None,
        "--type",
        "-t",
        help="Restrict to one table: hitting or pitching (default: both).",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print rows as JSON."),
) -> None:
    """
    Show stored landmark rows for an assessment.
    """
    _setup()
    kind = _parse_type(landmark_type)
    try:
        result = _run(get_landmarks(assessment_id, kind))
    except LandmarkServiceError as error:
        typer.echo(f"Query failed: {error}", err=True)
        raise typer.Exit(code=1) from error

    if as_json:
        typer.echo(json.dumps(result.rows, indent=2, default=str))
    else:
        print_landmarks(result.rows)


@app.command()
def ingest(
    bucket: str = typer.Argument(..., help="Bucket holding the landmark file."),
    key: str = typer.Argument(..., help="Object key (plain, not URL-encoded)."),
    landmark_type: str = typer.Option(..., "--type", "-t", help="hitting or pitching."),
) -> None:
    """
    Ingest one landmark file as if an object-created notification arrived.
    """
    _setup()
    kind = _parse_type(landmark_type)
    encoded_key = quote_plus(key, safe="/")
    notification: dict[str, Any] = {
        "Records": [{"s3": {"bucket": {"name": bucket}, "object": {"key": encoded_key}}}]
    }
    result = _run(handle_object_created(notification, kind))
    print_ingestion_result(result)
    if not result.success:
        raise typer.Exit(code=1)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
