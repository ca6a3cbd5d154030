"""
Utilities package for the Landmark Service.

Exports shared helpers for logging, timing, and lazily-initialized process
state. Keep this package lightweight and free of domain-specific logic.
"""

from landmark_service.utils.lazy import AsyncLazy
from landmark_service.utils.logging import configure_logging, get_logger
from landmark_service.utils.profiler import ProfileStats, profile_block

__all__ = [
    "AsyncLazy",
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "profile_block",
]
