"""
Timing utilities for the Landmark Service.

Every statement and object fetch is wrapped in `profile_block` so its wall-clock
duration can be logged next to the row or byte count. The context manager is
synchronous but works around `await` expressions, since only the enclosing
coroutine is suspended.

Usage examples:
    from landmark_service.utils.profiler import profile_block

    with profile_block("query") as stats:
        rows = await cursor.fetchall()

    print(stats.duration_ms)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Any, Generator


@dataclass
class ProfileStats:
    """
    Container for timing measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def duration_ms(self) -> float:
        return round(self.duration_seconds * 1000.0, 2)


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager measuring the wall-clock duration of a block.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.

    Notes
    -----
    The duration is recorded even when the block raises, so failed statements
    are reported with their timing too.
    """
    stats = ProfileStats(label=label)
    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts


__all__ = ["ProfileStats", "profile_block"]
