"""
Domain models for the Landmark Service.

Hitting and pitching landmarks live in two tables with an identical row shape;
`LandmarkType` routes between them. The `type` discriminator is a read-path
annotation only and is never stored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr


class LandmarkType(str, Enum):
    """Assessment kind; each member owns one physical table."""

    HITTING = "hitting"
    PITCHING = "pitching"

    @property
    def table(self) -> str:
        return f"{self.value}_landmarks"

    @classmethod
    def parse(cls, value: Any) -> "LandmarkType":
        """
        Resolve a raw value to a member, raising ValueError for anything else.

        No coercion is applied: "Hitting" or " hitting" are rejected.
        """
        if isinstance(value, cls):
            return value
        for member in cls:
            if value == member.value:
                return member
        raise ValueError(f"Invalid landmark type {value!r}. Expected 'hitting' or 'pitching'.")


class CredentialSet(BaseModel):
    """
    Database connection parameters resolved once per process.

    The password is held as a SecretStr so reprs and logs never expose it.
    """

    host: str
    username: str
    password: SecretStr
    database: str
    port: int = 5432

    model_config = {"frozen": True}

    def connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments accepted by psycopg.connect()."""
        return {
            "host": self.host,
            "user": self.username,
            "password": self.password.get_secret_value(),
            "dbname": self.database,
            "port": self.port,
        }


class LandmarkRecord(BaseModel):
    """
    Representation of a single row in either landmark table.
    """

    id: int = Field(..., description="Surrogate key assigned by the database.")
    assessment_id: int = Field(..., description="Synthetic assessment identifier.")
    file_name: str = Field(..., description="Source file name.")
    raw_json: Dict[str, Any] = Field(..., description="Landmark payload without routing fields.")
    created_at: datetime = Field(..., description="Insertion timestamp.")
    type: Optional[LandmarkType] = Field(None, description="Set on union reads only.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }


@dataclass
class QueryResult:
    """Rows returned by a statement plus the driver-reported row count."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    row_count: int = 0


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of handling one object-created notification."""

    success: bool
    message: str
    assessment_id: Optional[int] = None
    file_name: Optional[str] = None
    landmark_type: Optional[str] = None
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "message": self.message}
        if self.success:
            payload.update(
                assessment_id=self.assessment_id,
                file_name=self.file_name,
                type=self.landmark_type,
            )
        else:
            payload["details"] = self.detail
        return payload


__all__ = [
    "CredentialSet",
    "IngestionResult",
    "LandmarkRecord",
    "LandmarkType",
    "QueryResult",
]
