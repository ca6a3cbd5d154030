"""
Ingestion orchestrator for object-created notifications.

One notification is handled as one attempt: locate the object, fetch and
decode it, tag it with the landmark type, insert it, and report the outcome.
Failures are logged and reported in the returned `IngestionResult`; the
notification is never retried here (redelivery belongs to the event source).

Usage:
    from landmark_service.orchestrator import handle_object_created

    result = await handle_object_created(event, LandmarkType.HITTING)
    print(result.to_dict())
"""

from __future__ import annotations

import json
from typing import Any, Dict, Mapping, Tuple
from urllib.parse import unquote_plus

from landmark_service import repository
from landmark_service.domain.models import IngestionResult, LandmarkType
from landmark_service.errors import PayloadFormatError, ValidationError
from landmark_service.infrastructure import object_store
from landmark_service.utils.logging import get_logger

log = get_logger(__name__)

FAILURE_MESSAGE = "Failed to process landmark file"
SUCCESS_MESSAGE = "Landmark data processed successfully"


def extract_location(notification: Mapping[str, Any]) -> Tuple[str, str]:
    """
    Return ``(bucket, key)`` from the first record of a notification.

    The key arrives URL-encoded with ``+`` for spaces and is decoded here.

    Raises
    ------
    ValidationError
        If the notification has no records or the first record lacks a bucket
        name or object key.
    """
    records = notification.get("Records") or []
    if not records:
        raise ValidationError("Notification contains no records")
    s3_info = records[0].get("s3") or {}
    bucket = (s3_info.get("bucket") or {}).get("name")
    raw_key = (s3_info.get("object") or {}).get("key")
    if not bucket or not raw_key:
        raise ValidationError("Notification record is missing bucket name or object key")
    return bucket, unquote_plus(raw_key)


def parse_payload(text: str) -> Dict[str, Any]:
    """
    Decode landmark file text into a JSON object.

    Raises
    ------
    PayloadFormatError
        If the text is not JSON or its top level is not an object.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise PayloadFormatError(f"Landmark file is not valid JSON: {error}") from error
    if not isinstance(payload, dict):
        raise PayloadFormatError(
            f"Landmark file must contain a JSON object, got {type(payload).__name__}"
        )
    return payload


async def _ingest(notification: Mapping[str, Any], landmark_type: LandmarkType) -> IngestionResult:
    bucket, key = extract_location(notification)
    log.info(
        "[INGEST START] Processing landmark file",
        extra={"bucket": bucket, "key": key, "landmark_type": landmark_type.value},
    )
    text = await object_store.fetch_object_as_text(bucket, key)
    payload = parse_payload(text)
    payload.update(type=landmark_type.value, key=key)
    row = await repository.insert_landmark(payload)
    return IngestionResult(
        success=True,
        message=SUCCESS_MESSAGE,
        assessment_id=row["assessment_id"],
        file_name=row["file_name"],
        landmark_type=landmark_type.value,
    )


async def handle_object_created(
    notification: Mapping[str, Any], landmark_type: LandmarkType | str
) -> IngestionResult:
    """
    Ingest the object named by an object-created notification.

    Parameters
    ----------
    notification : Mapping[str, Any]
        Event with ``Records[0].s3.bucket.name`` and ``Records[0].s3.object.key``.
    landmark_type : LandmarkType | str
        Table the landmark belongs to.

    Returns
    -------
    IngestionResult
        Success with the assigned assessment ID and file name, or failure with
        a generic message and the underlying error text.
    """
    try:
        kind = LandmarkType.parse(landmark_type)
    except ValueError as error:
        return _failure(ValidationError(str(error)))

    try:
        result = await _ingest(notification, kind)
    except Exception as exc:  # noqa: BLE001 - boundary: every failure becomes a reported outcome
        return _failure(exc)

    log.info(
        "[INGEST SUCCESS] Landmark stored",
        extra={
            "landmark_type": kind.value,
            "assessment_id": result.assessment_id,
            "file_name": result.file_name,
        },
    )
    return result


def _failure(exc: Exception) -> IngestionResult:
    log.error(
        "[INGEST FAILED] %s",
        FAILURE_MESSAGE,
        exc_info=exc,
        extra={"error_type": type(exc).__name__},
    )
    return IngestionResult(success=False, message=FAILURE_MESSAGE, detail=str(exc))


__all__ = [
    "FAILURE_MESSAGE",
    "SUCCESS_MESSAGE",
    "extract_location",
    "handle_object_created",
    "parse_payload",
]
