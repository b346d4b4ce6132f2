"""Shared test fixtures for the reelscout test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from unittest.mock import AsyncMock

import pytest

from reelscout.domain.entities.playback import FallbackEmbed, PlaybackTarget
from reelscout.domain.entities.streams import (
    AddonEndpoint,
    ContentRequest,
    StreamSource,
    SubtitleSource,
    UserContext,
)

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------

_HASH_A = "a" * 40
_HASH_B = "b" * 40


@pytest.fixture()
def user_ctx() -> UserContext:
    return UserContext(owner="alice")


@pytest.fixture()
def movie_request() -> ContentRequest:
    return ContentRequest(
        content_type="movie", external_id="tt0133093", title="The Matrix"
    )


@pytest.fixture()
def addon_endpoint() -> AddonEndpoint:
    return AddonEndpoint(
        addon_id="addon-1",
        name="Torrentio",
        base_url="https://torrentio.example",
        owner="alice",
    )


@pytest.fixture()
def source_1080p() -> StreamSource:
    return StreamSource(
        title="The.Matrix.1999.1080p.BluRay",
        addon_name="Torrentio",
        quality="1080p",
        info_hash=_HASH_A,
        seeders=120,
    )


@pytest.fixture()
def source_4k() -> StreamSource:
    return StreamSource(
        title="The.Matrix.1999.2160p.UHD",
        addon_name="Torrentio",
        quality="4K",
        info_hash=_HASH_B,
        seeders=15,
    )


@pytest.fixture()
def subtitle_en() -> SubtitleSource:
    return SubtitleSource(
        lang="en",
        url="https://subs.example/matrix.en.srt",
        addon_name="OpenSubtitles",
        label="English",
    )


# ---------------------------------------------------------------------------
# Playback fakes
# ---------------------------------------------------------------------------


@dataclass
class FakeHandle:
    session_id: str
    destroy_calls: int = 0

    async def destroy(self) -> None:
        self.destroy_calls += 1


@dataclass
class FakeEngine:
    """Records attach() calls; every handle is kept for assertions."""

    handles: list[FakeHandle] = field(default_factory=list)
    targets: list[PlaybackTarget] = field(default_factory=list)
    fail_attach: bool = False

    async def attach(self, target: PlaybackTarget) -> FakeHandle:
        if self.fail_attach:
            raise RuntimeError("engine unavailable")
        handle = FakeHandle(session_id=f"engine-{len(self.handles)}")
        self.handles.append(handle)
        self.targets.append(target)
        return handle

    @property
    def live_handles(self) -> list[FakeHandle]:
        return [h for h in self.handles if h.destroy_calls == 0]


class FakeFallbackPlayer:
    def __init__(self) -> None:
        self.embeds: list[PlaybackTarget] = []

    def embed(self, target: PlaybackTarget) -> FallbackEmbed:
        self.embeds.append(target)
        return FallbackEmbed(
            url=f"https://embed.example/{len(self.embeds)}",
            magnet=target.magnet,
            title=target.title,
            subtitles=target.subtitles,
        )


@pytest.fixture()
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture()
def fake_fallback_player() -> FakeFallbackPlayer:
    return FakeFallbackPlayer()


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """CachePort mock backed by an in-memory dict."""
    store: dict[str, object] = {}
    mock = AsyncMock()

    async def _get(key: str) -> object:
        return store.get(key)

    async def _set(key: str, value: object, *, ttl: int | None = None) -> None:
        store[key] = value

    mock.get.side_effect = _get
    mock.set.side_effect = _set
    mock.store = store
    return mock
