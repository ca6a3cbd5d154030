"""
Landmark Service - storage and serving for biomechanical landmark data.

This package ingests landmark files (pose/keypoint JSON produced by an external
pipeline) for two assessment kinds, hitting and pitching, and serves them back
by assessment ID:

- Lazily resolved database credentials (static configuration or secret store)
- A single-connection async pool reused across invocations on a warm process
- Dual-table routing with concurrent union reads across both assessment kinds
- Object-store retrieval with DNS preflight and client-side retries
- Ingestion of object-created notifications with synthetic assessment IDs
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from landmark_service.config import Settings, get_settings
from landmark_service.domain.models import IngestionResult, LandmarkType, QueryResult
from landmark_service.orchestrator import handle_object_created
from landmark_service.repository import get_landmarks, insert_landmark
from landmark_service.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "IngestionResult",
    "LandmarkType",
    "QueryResult",
    # Operations
    "get_landmarks",
    "insert_landmark",
    "handle_object_created",
    # Logging
    "configure_logging",
    "get_logger",
]
