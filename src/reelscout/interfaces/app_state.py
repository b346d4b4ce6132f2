"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from reelscout.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from reelscout.application.use_cases import (
        AddonStreamsUseCase,
        PlaybackSessionManager,
        SourceSearchUseCase,
    )
    from reelscout.domain.ports import CachePort
    from reelscout.infrastructure.persistence.addon_registry_cache import (
        CacheAddonRegistry,
    )
    from reelscout.infrastructure.playback.browser_engine import BrowserTorrentEngine
    from reelscout.infrastructure.playback.webtor import WebtorFallbackPlayer
    from reelscout.infrastructure.subtitles.fetch import SubtitleFetcher


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient
    subtitle_fetcher: SubtitleFetcher

    # Add-ons
    addon_registry: CacheAddonRegistry
    addon_streams_uc: AddonStreamsUseCase
    source_search_uc: SourceSearchUseCase

    # Playback
    playback_engine: BrowserTorrentEngine
    fallback_player: WebtorFallbackPlayer
    playback_sessions: PlaybackSessionManager
    playback_sweeper_task: asyncio.Task[None] | None
