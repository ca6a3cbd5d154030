"""
Process-scoped lazy values for asyncio code.

`AsyncLazy` holds a value that is built on first use and reused for the rest of
the process lifetime (the credential set and the connection pool). Callers that
arrive while the first build is still running await the same task instead of
starting a second build. A failed build leaves the cell empty so the next call
starts over. `reset()` forgets the value and cancels an unfinished build.

Usage:
    _pool = AsyncLazy(_build_pool, name="pool")

    pool = await _pool.get()
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class AsyncLazy(Generic[T]):
    """
    Absent/present cell with a single shared in-flight initialization.

    There is no lock: within one event loop the check-and-create of the pending
    task runs without a suspension point, so only one task is ever created.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]], name: str = "value") -> None:
        self._factory = factory
        self._name = name
        self._value: Optional[T] = None
        self._present = False
        self._pending: Optional[asyncio.Task[T]] = None

    @property
    def is_present(self) -> bool:
        return self._present

    def peek(self) -> Optional[T]:
        """Return the cached value without initializing, or None."""
        return self._value if self._present else None

    async def _initialize(self) -> T:
        task = asyncio.current_task()
        try:
            value = await self._factory()
        except BaseException:
            if self._pending is task:
                self._pending = None
            raise
        # A reset() during the build detaches this task; it must not repopulate
        # the cell or clear a newer pending build.
        if self._pending is task:
            self._value = value
            self._present = True
            self._pending = None
        return value

    async def get(self) -> T:
        while True:
            if self._present:
                return self._value  # type: ignore[return-value]
            pending = self._pending
            if pending is None:
                pending = asyncio.ensure_future(self._initialize())
                self._pending = pending
            try:
                # Shield so one cancelled caller does not abort the build for the others.
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                caller = asyncio.current_task()
                superseded = pending.cancelled() and self._pending is not pending
                if superseded and caller is not None and not caller.cancelling():
                    continue
                raise

    def reset(self) -> Optional[T]:
        """
        Forget the cached value and return it (if any) for cleanup.

        An in-flight build is cancelled; callers waiting on it start a new one.
        """
        value = self._value if self._present else None
        self._value = None
        self._present = False
        pending, self._pending = self._pending, None
        if pending is not None:
            pending.cancel()
        return value

    def __repr__(self) -> str:
        state = "present" if self._present else ("pending" if self._pending else "absent")
        return f"AsyncLazy({self._name}, {state})"


__all__ = ["AsyncLazy"]
