"""Redis adapter - async Redis via redis.asyncio."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis store, values pickled for parity with the disk adapter.

    Redis errors on reads and writes are logged and degrade to a miss;
    only the initial PING on ``__aenter__`` raises.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        ttl_seconds: int = 3600,
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self.default_ttl = ttl_seconds
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=False)
            try:
                await self._client.ping()
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
            log.info("redis_connected", url=self.url)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    def _require_open(self) -> Redis:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")
        return self._client

    async def get(self, key: str) -> Any | None:
        client = self._require_open()
        async with self._semaphore:
            try:
                raw = await client.get(key)
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None
        if raw is None:
            return None
        try:
            return pickle.loads(raw)
        except pickle.PickleError as e:
            log.error("redis_unpickle_error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        client = self._require_open()
        seconds = self.default_ttl if ttl is None else ttl
        packed = pickle.dumps(value)
        async with self._semaphore:
            try:
                await client.set(key, packed, ex=seconds or None)
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))
                return
        log.debug("cache_set", key=key, ttl=seconds or None)

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.delete(key) > 0
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False
        async with self._semaphore:
            try:
                return await self._client.exists(key) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        if self._client is None:
            return
        async with self._semaphore:
            try:
                await self._client.flushdb()
            except RedisError as e:
                log.error("redis_flush_error", error=str(e))
                return
        log.warning("redis_flushed")
