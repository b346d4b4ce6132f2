"""Tests for DiskcacheAdapter TTL handling."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from reelscout.infrastructure.cache.cache_factory import create_cache
from reelscout.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from reelscout.infrastructure.cache.redis_adapter import RedisAdapter


class TestDiskcacheAdapter:
    @pytest.mark.asyncio()
    async def test_roundtrip(self, tmp_path: Path) -> None:
        async with DiskcacheAdapter(directory=tmp_path / "c") as cache:
            await cache.set("k", {"v": 1})
            assert await cache.get("k") == {"v": 1}
            assert await cache.exists("k")
            assert await cache.delete("k") is True
            assert await cache.get("k") is None

    @pytest.mark.asyncio()
    async def test_ttl_zero_means_no_expiry(self, tmp_path: Path) -> None:
        adapter = DiskcacheAdapter(directory=tmp_path / "c", ttl_seconds=60)
        async with adapter:
            inner = adapter._cache
            assert inner is not None
            spy = MagicMock(wraps=inner.set)
            inner.set = spy  # type: ignore[method-assign]

            await adapter.set("forever", "x", ttl=0)
            await adapter.set("default", "y")
            await adapter.set("short", "z", ttl=5)

        expires = [c.kwargs["expire"] for c in spy.call_args_list]
        assert expires == [None, 60, 5]

    @pytest.mark.asyncio()
    async def test_get_before_open_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RuntimeError):
            await DiskcacheAdapter(directory=tmp_path / "c").get("k")


class TestCreateCache:
    def test_diskcache(self, tmp_path: Path) -> None:
        cache = create_cache("diskcache", directory=str(tmp_path))
        assert isinstance(cache, DiskcacheAdapter)

    def test_redis(self) -> None:
        assert isinstance(create_cache("redis"), RedisAdapter)

    def test_unknown_backend(self) -> None:
        with pytest.raises(ValueError):
            create_cache("memcached")  # type: ignore[arg-type]
