"""QueryCache tests: memoization, shared in-flight loads and invalidation."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from enrollment_workflow.cache import QueryCache


class TestQueryCache:

    @pytest.mark.asyncio
    async def test_second_fetch_is_served_from_cache(self):
        cache = QueryCache()
        loader = AsyncMock(return_value="wf")
        assert await cache.fetch("workflow", loader) == "wf"
        assert await cache.fetch("workflow", loader) == "wf"
        loader.assert_awaited_once()
        assert "workflow" in cache

    @pytest.mark.asyncio
    async def test_concurrent_fetches_share_one_load(self):
        cache = QueryCache()
        calls = []

        async def loader():
            calls.append(1)
            await asyncio.sleep(0.01)
            return "app"

        results = await asyncio.gather(cache.fetch("k", loader), cache.fetch("k", loader))
        assert results == ["app", "app"]
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self):
        cache = QueryCache()
        loader = AsyncMock(side_effect=[RuntimeError("down"), "ok"])
        with pytest.raises(RuntimeError):
            await cache.fetch("k", loader)
        assert "k" not in cache
        assert await cache.fetch("k", loader) == "ok"

    @pytest.mark.asyncio
    async def test_invalidate_forces_reload(self):
        cache = QueryCache()
        loader = AsyncMock(side_effect=["v1", "v2"])
        assert await cache.fetch(("application", "APP-1"), loader) == "v1"
        cache.invalidate(("application", "APP-1"))
        cache.invalidate("never-cached")
        assert await cache.fetch(("application", "APP-1"), loader) == "v2"

    @pytest.mark.asyncio
    async def test_clear(self):
        cache = QueryCache()
        await cache.fetch("a", AsyncMock(return_value=1))
        cache.clear()
        assert "a" not in cache
