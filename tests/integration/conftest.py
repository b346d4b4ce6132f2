"""Shared fixtures for integration tests.

These tests use real infrastructure components (DiskcacheAdapter,
CacheAddonRegistry, HttpxAddonClient, HttpxYtsClient) with mocked HTTP
via respx.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import httpx
import pytest
import respx

from reelscout.infrastructure.cache.diskcache_adapter import DiskcacheAdapter


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
async def diskcache(tmp_path: Path) -> AsyncIterator[DiskcacheAdapter]:
    """Real DiskcacheAdapter backed by tmp_path (auto-cleaned)."""
    adapter = DiskcacheAdapter(
        directory=tmp_path / "cache",
        ttl_seconds=3600,
        max_concurrent=5,
    )
    async with adapter:
        yield adapter


@pytest.fixture()
def respx_mock() -> Iterator[respx.MockRouter]:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router
