"""QueryCache — memoized async fetches keyed by an arbitrary hashable key.

The session facade loads the application, the workflow and the final
submission through this cache so repeated requests for the same key share
one result (and one in-flight request).  ``invalidate`` drops a key so the
next fetch goes to the back end again, which is how a refetch is forced.

Failed loads are not cached.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class QueryCache:
    """Memoizes the result of ``loader()`` per key."""

    def __init__(self) -> None:
        self._entries: dict[Hashable, asyncio.Future] = {}

    async def fetch(self, key: Hashable, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for ``key`` or run ``loader`` once to fill it."""
        future = self._entries.get(key)
        if future is None:
            logger.debug("cache miss: %r", key)
            future = asyncio.ensure_future(loader())
            self._entries[key] = future
            try:
                return await asyncio.shield(future)
            except Exception:
                # Do not keep failures around; the next fetch retries
                if self._entries.get(key) is future:
                    del self._entries[key]
                raise
        logger.debug("cache hit: %r", key)
        return await asyncio.shield(future)

    def invalidate(self, key: Hashable) -> None:
        """Forget ``key``; a no-op for unknown keys."""
        if self._entries.pop(key, None) is not None:
            logger.debug("cache invalidated: %r", key)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: Any) -> bool:
        future = self._entries.get(key)
        return future is not None and future.done() and not future.cancelled() and future.exception() is None
