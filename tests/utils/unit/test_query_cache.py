"""
Unit Tests: QueryCache

Tests for services/query_cache.py covering:
- cache-aside reads
- failures never stored
- prefix invalidation

Run with: pytest tests/utils/unit/test_query_cache.py -v
"""

import pytest
from unittest.mock import AsyncMock

from backend_api.envelope import ApiResult
from backend_api.errors import TransportError
from services.query_cache import QueryCache


class TestQueryCache:

    @pytest.mark.asyncio
    async def test_hit_skips_fetch(self):
        cache = QueryCache()
        fetch = AsyncMock(return_value=ApiResult.success({"orderId": "o-1"}))

        first = await cache.get_or_fetch(("orders", "detail", "o-1"), fetch)
        second = await cache.get_or_fetch(("orders", "detail", "o-1"), fetch)

        assert first is second
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failures_are_refetched(self):
        cache = QueryCache()
        fetch = AsyncMock(side_effect=[
            ApiResult.failure(TransportError(message="down")),
            ApiResult.success({"orderId": "o-1"}),
        ])

        first = await cache.get_or_fetch(("orders", "detail", "o-1"), fetch)
        second = await cache.get_or_fetch(("orders", "detail", "o-1"), fetch)

        assert not first.ok
        assert second.ok
        assert fetch.await_count == 2

    def test_prefix_invalidation(self):
        cache = QueryCache()
        for key in [("orders", "detail", "o-1"), ("orders", "my"), ("orders", "shop", "A"),
                    ("payments", "order", "o-1"), ("cart",)]:
            cache.set(key, ApiResult.success(True))

        assert cache.invalidate("orders") == 3
        assert ("payments", "order", "o-1") in cache
        assert ("cart",) in cache

        assert cache.invalidate("payments", "order", "o-2") == 0
        assert cache.invalidate("payments", "order", "o-1") == 1

    def test_clear(self):
        cache = QueryCache()
        cache.set(("cart",), ApiResult.success(True))

        cache.clear()

        assert cache.get(("cart",)) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
