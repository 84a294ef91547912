"""Single-flight memoization of quote computations keyed by request fingerprint."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, TypeVar

from ...config import settings

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    task: asyncio.Future
    created_at: float


class CompareCache(Generic[T]):
    """Fingerprint -> in-flight or completed computation.

    At most one computation per key runs at a time; concurrent callers await
    the same task. Callers wait through ``asyncio.shield`` so a cancelled
    caller leaves the shared computation running. Failed computations are
    dropped at once; successful ones expire after ``ttl_seconds``.
    """

    def __init__(self, ttl_seconds: float | None = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = settings.compare_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def get_or_compute(self, key: str, factory: Callable[[], Awaitable[T]]) -> tuple[T, bool]:
        """Return ``(value, reused)``; ``reused`` is true when another call started the work."""
        self.evict_expired()
        entry = self._entries.get(key)
        reused = entry is not None
        if entry is None:
            task = asyncio.ensure_future(factory())
            entry = _Entry(task=task, created_at=self._clock())
            self._entries[key] = entry
            task.add_done_callback(lambda done, key=key: self._forget_failure(key, done))
        else:
            logger.debug(f"Compare cache hit for {key[:12]}")
        value = await asyncio.shield(entry.task)
        return value, reused

    def _forget_failure(self, key: str, task: asyncio.Future) -> None:
        if not task.cancelled() and task.exception() is None:
            return
        current = self._entries.get(key)
        if current is not None and current.task is task:
            del self._entries[key]

    def evict_expired(self) -> int:
        """Drop completed entries older than the TTL; in-flight work is kept."""
        now = self._clock()
        expired = [
            key
            for key, entry in self._entries.items()
            if entry.task.done() and now - entry.created_at >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()
