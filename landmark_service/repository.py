"""
Landmark persistence.

Hitting and pitching landmarks are stored in two tables with the same shape:
``(id, assessment_id, file_name, raw_json, created_at)``. Reads target one
table when a type is given and both tables otherwise; writes always target the
table of the payload's type.

Each table has its own assessment ID space, so a union read may return rows
from both tables for the same ID. The ``type`` column on union reads is a
literal added by the query, not a stored column.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Dict, Mapping, Optional, Tuple

from psycopg import sql
from psycopg.types.json import Jsonb

from landmark_service.domain.models import LandmarkType, QueryResult
from landmark_service.errors import QueryExecutionError, ValidationError
from landmark_service.infrastructure import query
from landmark_service.utils.logging import get_logger

log = get_logger(__name__)

ASSESSMENT_ID_MIN = 10_000
ASSESSMENT_ID_MAX = 99_999_999

# Payload keys that route the record and are not stored in raw_json.
ROUTING_KEYS = ("type", "key")

_COLUMNS = sql.SQL("id, assessment_id, file_name, raw_json, created_at")


def _select_statement(landmark_type: LandmarkType, tagged: bool) -> sql.Composed:
    tag = (
        sql.SQL(", {} AS type").format(sql.Literal(landmark_type.value))
        if tagged
        else sql.SQL("")
    )
    return sql.SQL("SELECT {columns}{tag} FROM {table} WHERE assessment_id = %s").format(
        columns=_COLUMNS,
        tag=tag,
        table=sql.Identifier(landmark_type.table),
    )


def _insert_statement(landmark_type: LandmarkType) -> sql.Composed:
    return sql.SQL(
        "INSERT INTO {table} (assessment_id, file_name, raw_json) "
        "VALUES (%s, %s, %s) RETURNING {columns}"
    ).format(table=sql.Identifier(landmark_type.table), columns=_COLUMNS)


async def _select(
    assessment_id: str, landmark_type: LandmarkType, tagged: bool = False
) -> QueryResult:
    return await query.execute(_select_statement(landmark_type, tagged), (assessment_id,))


async def get_landmarks(
    assessment_id: str, landmark_type: Optional[LandmarkType] = None
) -> QueryResult:
    """
    Fetch landmark rows for one assessment.

    With a type, only that table is read. Without one, both tables are read
    concurrently and the rows are concatenated hitting first, each tagged with
    its ``type``. No ordering is imposed within a table. An empty result is
    not an error.

    Raises
    ------
    QueryExecutionError
        If any of the underlying selects fails; no partial rows are returned.
    """
    if landmark_type is not None:
        return await _select(assessment_id, LandmarkType(landmark_type))

    outcomes = await asyncio.gather(
        _select(assessment_id, LandmarkType.HITTING, tagged=True),
        _select(assessment_id, LandmarkType.PITCHING, tagged=True),
        return_exceptions=True,
    )
    hitting, pitching = outcomes
    _raise_for_failures(
        ((LandmarkType.HITTING, hitting), (LandmarkType.PITCHING, pitching))
    )
    return QueryResult(
        rows=[*hitting.rows, *pitching.rows],
        row_count=hitting.row_count + pitching.row_count,
    )


def _raise_for_failures(outcomes: Tuple[Tuple[LandmarkType, Any], ...]) -> None:
    failures = [(kind, outcome) for kind, outcome in outcomes if isinstance(outcome, BaseException)]
    if not failures:
        return
    for _, outcome in failures:
        if not isinstance(outcome, Exception):
            raise outcome
    if len(failures) == len(outcomes):
        detail = "; ".join(f"{kind.value}: {outcome}" for kind, outcome in failures)
        raise QueryExecutionError(
            f"Landmark reads failed for both tables ({detail})"
        ) from failures[0][1]
    kind, outcome = failures[0]
    raise QueryExecutionError(f"Landmark read failed for {kind.value} table: {outcome}") from outcome


def generate_assessment_id() -> int:
    """
    Draw a synthetic assessment ID.

    Collisions with existing rows are neither checked nor prevented.
    """
    return random.randint(ASSESSMENT_ID_MIN, ASSESSMENT_ID_MAX)


def derive_file_name(key: Optional[str], landmark_type: LandmarkType, assessment_id: int) -> str:
    if key:
        return key.rsplit("/", 1)[-1]
    return f"{landmark_type.value}_{assessment_id}.json"


def strip_routing_keys(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {name: value for name, value in payload.items() if name not in ROUTING_KEYS}


async def insert_landmark(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Store one landmark payload in the table named by its ``type``.

    Parameters
    ----------
    payload : Mapping[str, Any]
        Decoded landmark JSON with routing fields ``type`` (required) and
        ``key`` (optional source object key). Every other field is stored
        as-is.

    Returns
    -------
    dict
        The inserted row.

    Raises
    ------
    ValidationError
        If ``type`` is missing or not one of the two landmark types, or
        ``key`` is present but not a string. Raised before any database access.
    QueryExecutionError
        If the insert fails.
    """
    try:
        landmark_type = LandmarkType.parse(payload.get("type"))
    except ValueError as error:
        raise ValidationError(str(error)) from error

    key = payload.get("key")
    if key is not None and not isinstance(key, str):
        raise ValidationError(f"Invalid object key {key!r}. Expected a string.")

    assessment_id = generate_assessment_id()
    file_name = derive_file_name(key, landmark_type, assessment_id)
    raw_json = strip_routing_keys(payload)

    result = await query.execute(
        _insert_statement(landmark_type), (assessment_id, file_name, Jsonb(raw_json))
    )
    log.info(
        "[REPOSITORY] Inserted landmark",
        extra={
            "type": landmark_type.value,
            "assessment_id": assessment_id,
            "file_name": file_name,
        },
    )
    return result.rows[0]


__all__ = [
    "ASSESSMENT_ID_MAX",
    "ASSESSMENT_ID_MIN",
    "derive_file_name",
    "generate_assessment_id",
    "get_landmarks",
    "insert_landmark",
    "strip_routing_keys",
]
