"""
In-process read cache for backend queries.

Keys are tuples such as ("orders", "detail", order_id) or
("payments", "order", order_id). Invalidation works on key prefixes, so
invalidating ("orders",) drops every order detail and order list at once.
Only successful results are stored; failures are always refetched.
"""

import logging
from typing import Awaitable, Callable

from backend_api.envelope import ApiResult

logger = logging.getLogger(__name__)

CacheKey = tuple


class QueryCache:

    def __init__(self):
        self._entries: dict[CacheKey, ApiResult] = {}

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> ApiResult | None:
        return self._entries.get(key)

    def set(self, key: CacheKey, result: ApiResult) -> None:
        if result.ok:
            self._entries[key] = result

    async def get_or_fetch(self, key: CacheKey, fetch: Callable[[], Awaitable[ApiResult]]) -> ApiResult:
        """
        Cache-aside read.

        Args:
            key: Cache key tuple
            fetch: Coroutine factory performing the backend call on a miss

        Returns:
            Cached result, or the fresh one (stored only when ok)
        """
        cached = self._entries.get(key)
        if cached is not None:
            logger.debug(f"Cache hit {key}")
            return cached
        result = await fetch()
        self.set(key, result)
        return result

    def invalidate(self, *prefix) -> int:
        """Drop every entry whose key starts with prefix. Returns how many were dropped."""
        stale = [key for key in self._entries if key[:len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries under {prefix}")
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


query_cache = QueryCache()
