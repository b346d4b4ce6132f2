"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from reelscout.application.playback_chain import PlaybackChain
from reelscout.application.use_cases import (
    AddonStreamsUseCase,
    PlaybackSessionManager,
    SourceSearchUseCase,
)
from reelscout.application.use_cases.playback_sessions import ChainFactory
from reelscout.domain.entities.streams import ContentRequest, UserContext
from reelscout.infrastructure.addons.client import HttpxAddonClient
from reelscout.infrastructure.cache.cache_factory import create_cache
from reelscout.infrastructure.config.schema import AppConfig
from reelscout.infrastructure.legacy.yts_client import HttpxYtsClient
from reelscout.infrastructure.persistence.addon_registry_cache import (
    CacheAddonRegistry,
)
from reelscout.infrastructure.playback.browser_engine import BrowserTorrentEngine
from reelscout.infrastructure.playback.webtor import WebtorFallbackPlayer
from reelscout.infrastructure.streams.stream_sorter import StreamSorter
from reelscout.infrastructure.subtitles.fetch import SubtitleFetcher
from reelscout.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _chain_factory(state: AppState, config: AppConfig) -> ChainFactory:
    playback = config.playback

    def build(ctx: UserContext, request: ContentRequest, session_id: str) -> PlaybackChain:
        return PlaybackChain(
            ctx=ctx,
            request=request,
            search=state.source_search_uc,
            engine=state.playback_engine,
            fallback_player=state.fallback_player,
            session_id=session_id,
            trackers=playback.trackers,
            fallback_enabled=playback.fallback_enabled,
            searching_hint_seconds=playback.searching_hint_seconds,
            auto_fallback_seconds=playback.auto_fallback_seconds,
        )

    return build


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (the add-on registry persists through it)
        2. HTTP client (shared by add-on and legacy clients)
        3. Add-on registry (+ seeding of configured defaults)
        4. Fan-out and source search use cases
        5. Playback engines and the session manager
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Cache
    cache = create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        ttl_seconds=config.cache.ttl_seconds,
        max_concurrent=config.cache.max_concurrent,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=True,
    )
    state.subtitle_fetcher = SubtitleFetcher(
        http_client=state.http_client,
        max_bytes=config.http_subtitle_max_bytes,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Add-on registry
    state.addon_registry = CacheAddonRegistry(cache=state.cache)
    seeded = await state.addon_registry.seed(
        config.addons.default_owner,
        [(a.name, a.url) for a in config.addons.defaults],
    )
    log.info(
        "addon_registry_initialized",
        default_owner=config.addons.default_owner,
        seeded=seeded,
    )

    # 4) Use cases
    state.addon_streams_uc = AddonStreamsUseCase(
        registry=state.addon_registry,
        client=HttpxAddonClient(
            http_client=state.http_client,
            timeout_seconds=config.addons.fetch_timeout_seconds,
        ),
        sorter=StreamSorter(),
    )
    legacy = None
    if config.legacy.policy != "disabled":
        legacy = HttpxYtsClient(
            http_client=state.http_client, base_url=config.legacy.base_url
        )
    state.source_search_uc = SourceSearchUseCase(
        addon_streams=state.addon_streams_uc,
        legacy=legacy,
        legacy_policy=config.legacy.policy,
    )
    log.info("source_search_initialized", legacy_policy=config.legacy.policy)

    # 5) Playback
    state.playback_engine = BrowserTorrentEngine(announce=config.playback.trackers)
    state.fallback_player = WebtorFallbackPlayer(
        base_url=config.playback.embed_base_url
    )
    state.playback_sessions = PlaybackSessionManager(
        chain_factory=_chain_factory(state, config),
        idle_ttl_seconds=config.playback.session_idle_ttl_seconds,
        max_sessions=config.playback.max_sessions,
    )
    state.playback_sweeper_task = None
    if config.playback.session_idle_ttl_seconds is not None:
        state.playback_sweeper_task = asyncio.create_task(
            state.playback_sessions.run_sweeper(
                config.playback.session_sweep_interval_seconds
            )
        )
    log.info(
        "playback_initialized",
        fallback_enabled=config.playback.fallback_enabled,
        session_idle_ttl=config.playback.session_idle_ttl_seconds,
        auto_fallback_seconds=config.playback.auto_fallback_seconds,
    )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        if state.playback_sweeper_task is not None:
            state.playback_sweeper_task.cancel()
            with suppress(asyncio.CancelledError):
                await state.playback_sweeper_task
            log.info("playback_sweeper_stopped")

        await state.playback_sessions.close_all()
        log.info("playback_sessions_closed")

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
