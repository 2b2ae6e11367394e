from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class _Entry:
    value: Any
    stored_at: float


class ReferenceCache:
    """
    In-process memo for slow-changing reference collections (countries, pathways).

    Loads are single-flight: concurrent ``get_or_load`` calls for the same key
    share one loader invocation and receive the same object. Only successful
    loads are stored. Entries live until invalidated, or until ``ttl_seconds``
    elapse when a TTL is configured.

    The in-flight map is only touched between awaits, so cooperative tasks on
    one event loop always observe each other's markers.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[Hashable, _Entry] = {}
        self._inflight: Dict[Hashable, asyncio.Task] = {}

    def _expired(self, entry: _Entry) -> bool:
        if self.ttl_seconds is None:
            return False
        return self._clock() - entry.stored_at >= self.ttl_seconds

    def _live_entry(self, key: Hashable) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is not None and self._expired(entry):
            del self._entries[key]
            return None
        return entry

    def __contains__(self, key: Hashable) -> bool:
        return self._live_entry(key) is not None

    # PUBLIC_INTERFACE
    def get(self, key: Hashable) -> Optional[Any]:
        """Return the cached value or None. Never triggers a load."""
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    # PUBLIC_INTERFACE
    async def get_or_load(self, key: Hashable, loader: Loader) -> Any:
        """
        Return the cached value for ``key``, loading it with ``loader`` on a miss.

        Any value the loader returns is cached, None included. If the loader
        raises, every waiter sees the exception and nothing is cached; the next
        call runs the loader again.
        """
        entry = self._live_entry(key)
        if entry is not None:
            return entry.value

        task = self._inflight.get(key)
        if task is None:
            logger.debug("Cache miss for %r; loading", key)
            task = asyncio.ensure_future(self._load(key, loader))
            self._inflight[key] = task
        # Shield so one cancelled waiter does not cancel the shared load.
        return await asyncio.shield(task)

    async def _load(self, key: Hashable, loader: Loader) -> Any:
        me = asyncio.current_task()
        try:
            value = await loader()
        except BaseException:
            if self._inflight.get(key) is me:
                del self._inflight[key]
            raise
        # Invalidation during the load detaches it; its value is returned but not stored.
        if self._inflight.get(key) is me:
            del self._inflight[key]
            self._entries[key] = _Entry(value=value, stored_at=self._clock())
        return value

    # PUBLIC_INTERFACE
    def invalidate(self, key: Hashable) -> None:
        """Drop one key and detach any in-flight load for it."""
        self._entries.pop(key, None)
        self._inflight.pop(key, None)
        logger.debug("Invalidated cache key %r", key)

    # PUBLIC_INTERFACE
    def invalidate_all(self) -> None:
        """Drop every key and detach all in-flight loads."""
        self._entries.clear()
        self._inflight.clear()
        logger.info("Reference cache cleared")

    # PUBLIC_INTERFACE
    async def close(self) -> None:
        """Teardown: cancel in-flight loads and clear all entries."""
        pending = list(self._inflight.values())
        self.invalidate_all()
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
