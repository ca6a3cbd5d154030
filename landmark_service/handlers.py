"""
Serving boundary for the hosted runtime.

Each entry point takes a runtime event and returns a
``{"statusCode", "headers", "body"}`` response. This is the only layer, next
to the ingestion orchestrator, that turns errors into reported outcomes:

- ``health``: database liveness (``SELECT 1`` raced against a 5 s timer).
- ``landmarks``: landmark rows for ``pathParameters.assessmentId``, optionally
  narrowed by ``queryStringParameters.type``; an empty result maps to 404.
- ``ingest_hitting`` / ``ingest_pitching``: object-created notifications.

All entry points share one event loop per process, so the cached credentials
and connection pool survive across invocations on a warm process.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, Mapping, Optional, TypeVar

from landmark_service.config import get_settings
from landmark_service.domain.models import LandmarkRecord, LandmarkType
from landmark_service.errors import ValidationError
from landmark_service.infrastructure import query
from landmark_service.orchestrator import handle_object_created
from landmark_service.repository import get_landmarks
from landmark_service.utils.logging import configure_logging, get_logger

log = get_logger(__name__)

T = TypeVar("T")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": True,
}

_loop: Optional[asyncio.AbstractEventLoop] = None
_logging_configured = False


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine on the process-wide event loop."""
    global _loop, _logging_configured
    if not _logging_configured:
        settings = get_settings()
        configure_logging(level=settings.log_level, json_logs=settings.log_json, force=False)
        _logging_configured = True
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop.run_until_complete(coro)


def _response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": json.dumps(body, default=str),
    }


def _serialize_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        LandmarkRecord.model_validate(row).model_dump(mode="json", exclude_none=True)
        for row in rows
    ]


def parse_landmark_query(event: Mapping[str, Any]) -> tuple[str, Optional[LandmarkType]]:
    """
    Validate the assessment ID and optional type of a landmark request.

    Raises
    ------
    ValidationError
        If the assessment ID is missing or not numeric, or the type is not one
        of the two landmark types.
    """
    path_params = event.get("pathParameters") or {}
    assessment_id = str(path_params.get("assessmentId") or "").strip()
    if not assessment_id:
        raise ValidationError("Missing assessment ID parameter")
    if not assessment_id.isdigit():
        raise ValidationError(f"Assessment ID must be numeric, got {assessment_id!r}")

    query_params = event.get("queryStringParameters") or {}
    raw_type = query_params.get("type")
    if raw_type is None:
        return assessment_id, None
    try:
        return assessment_id, LandmarkType.parse(raw_type)
    except ValueError as error:
        raise ValidationError(str(error)) from error


async def handle_health(event: Mapping[str, Any]) -> Dict[str, Any]:
    del event
    try:
        await query.check_health()
    except Exception as exc:  # noqa: BLE001 - boundary: report any failure as unhealthy
        log.error("[HEALTH] Health check failed", extra={"error": str(exc)})
        return _response(
            500,
            {"error": "Internal server error", "details": str(exc), "type": type(exc).__name__},
        )
    return _response(
        200,
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected",
        },
    )


async def handle_landmarks(event: Mapping[str, Any]) -> Dict[str, Any]:
    try:
        assessment_id, landmark_type = parse_landmark_query(event)
    except ValidationError as exc:
        return _response(400, {"error": str(exc)})

    try:
        result = await get_landmarks(assessment_id, landmark_type)
    except Exception as exc:  # noqa: BLE001 - boundary: map failures to a 500 response
        log.error(
            "[LANDMARKS] Landmark handler error",
            extra={"assessment_id": assessment_id, "error": str(exc)},
        )
        return _response(500, {"error": "Internal server error", "details": str(exc)})

    if not result.rows:
        return _response(404, {"error": "No landmark data found"})
    return _response(200, _serialize_rows(result.rows))


async def handle_ingest(event: Mapping[str, Any], landmark_type: LandmarkType) -> Dict[str, Any]:
    result = await handle_object_created(event, landmark_type)
    return _response(200 if result.success else 500, result.to_dict())


def health(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    return _run(handle_health(event))


def landmarks(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    return _run(handle_landmarks(event))


def ingest_hitting(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    return _run(handle_ingest(event, LandmarkType.HITTING))


def ingest_pitching(event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
    return _run(handle_ingest(event, LandmarkType.PITCHING))


__all__ = [
    "handle_health",
    "handle_ingest",
    "handle_landmarks",
    "health",
    "ingest_hitting",
    "ingest_pitching",
    "landmarks",
    "parse_landmark_query",
]
