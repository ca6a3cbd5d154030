"""
Domain package for the Landmark Service.

Exports the core domain models shared by the repository, orchestrator and
handlers. Keep this package focused on data definitions and validation.
"""

from landmark_service.domain.models import (
    CredentialSet,
    IngestionResult,
    LandmarkRecord,
    LandmarkType,
    QueryResult,
)

__all__ = [
    "CredentialSet",
    "IngestionResult",
    "LandmarkRecord",
    "LandmarkType",
    "QueryResult",
]
