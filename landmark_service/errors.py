"""
Landmark Service exception hierarchy.

Each layer raises its own error type and chains the underlying cause, so the
serving boundary can report what failed without inspecting driver or SDK
exceptions.
"""

from __future__ import annotations

from typing import Optional


class LandmarkServiceError(Exception):
    """Base exception for all Landmark Service failures."""


class CredentialResolutionError(LandmarkServiceError):
    """Raised when database credentials cannot be resolved."""


class PoolInitializationError(LandmarkServiceError):
    """Raised when the connection pool cannot be built or fails its liveness probe."""


class QueryExecutionError(LandmarkServiceError):
    """Raised when a statement fails; carries the original driver message."""


class ValidationError(LandmarkServiceError):
    """Raised for a missing or invalid landmark type or assessment ID."""


class DnsResolutionError(LandmarkServiceError):
    """Raised when the object-store endpoint host name does not resolve."""


class ObjectStoreError(LandmarkServiceError):
    """Raised when the object store rejects or fails a get-object request."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class ObjectStreamError(LandmarkServiceError):
    """Raised when an object body stream fails before completion."""


class PayloadFormatError(LandmarkServiceError):
    """Raised when a landmark file is not a JSON object."""


__all__ = [
    "LandmarkServiceError",
    "CredentialResolutionError",
    "PoolInitializationError",
    "QueryExecutionError",
    "ValidationError",
    "DnsResolutionError",
    "ObjectStoreError",
    "ObjectStreamError",
    "PayloadFormatError",
]
