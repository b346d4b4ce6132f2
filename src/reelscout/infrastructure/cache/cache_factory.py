"""Cache factory - builds the configured CachePort adapter."""

from __future__ import annotations

from typing import Literal

import structlog

from reelscout.domain.ports.cache import CachePort
from reelscout.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from reelscout.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./.cache/reelscout",
    redis_url: str = "redis://localhost:6379/0",
    ttl_seconds: int = 3600,
    max_concurrent: int = 10,
) -> CachePort:
    """Create the cache adapter for *backend*.

    Raises:
        ValueError: unknown backend.
    """
    log.info("cache_factory_create", backend=backend, ttl=ttl_seconds)
    if backend == "diskcache":
        return DiskcacheAdapter(
            directory=directory,
            ttl_seconds=ttl_seconds,
            max_concurrent=max_concurrent,
        )
    if backend == "redis":
        return RedisAdapter(url=redis_url, ttl_seconds=ttl_seconds)
    raise ValueError(
        f"Unknown cache backend: {backend!r}. Must be 'diskcache' or 'redis'."
    )
