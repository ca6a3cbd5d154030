"""
Infrastructure package for the Landmark Service.

Centralizes I/O and resource management: credential resolution, the pooled
database connection, statement execution, and object retrieval. Keep this
layer decoupled from the landmark table routing in the repository.
"""

from landmark_service.infrastructure.credentials import get_credentials, reset_credentials
from landmark_service.infrastructure.db_factory import close_pool, get_pool
from landmark_service.infrastructure.object_store import fetch_object_as_text
from landmark_service.infrastructure.query import check_health, execute

__all__ = [
    "check_health",
    "close_pool",
    "execute",
    "fetch_object_as_text",
    "get_credentials",
    "get_pool",
    "reset_credentials",
]
