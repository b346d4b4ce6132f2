"""Add-on fan-out: query every enabled add-on concurrently and rank.

UserContext -> enabled add-ons -> parallel fetch -> concatenate -> rank.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import structlog

from reelscout.domain.entities.streams import (
    AddonEndpoint,
    ContentType,
    StreamSource,
    SubtitleSource,
    UserContext,
)
from reelscout.domain.ports.addon_client import AddonClientPort
from reelscout.domain.ports.addon_registry import AddonRegistryPort

log = structlog.get_logger(__name__)


class _StreamSorter(Protocol):
    def sort(self, sources: list[StreamSource]) -> list[StreamSource]: ...


class AddonStreamsUseCase:
    """Aggregates streams and subtitles across a user's enabled add-ons.

    Every add-on is awaited; a slow add-on delays the result but is never
    cancelled. A failing add-on contributes ``[]``.
    """

    def __init__(
        self,
        *,
        registry: AddonRegistryPort,
        client: AddonClientPort,
        sorter: _StreamSorter,
    ) -> None:
        self._registry = registry
        self._client = client
        self._sorter = sorter

    async def _enabled_addons(self, ctx: UserContext) -> list[AddonEndpoint]:
        try:
            return await self._registry.list_enabled(ctx.owner)
        except Exception:
            log.warning("addon_registry_unavailable", owner=ctx.owner, exc_info=True)
            return []

    async def _streams_from(
        self, addon: AddonEndpoint, content_type: ContentType, external_id: str
    ) -> list[StreamSource]:
        try:
            return await self._client.fetch_streams(addon, content_type, external_id)
        except Exception:
            # The client contract is no-throw; guard the fan-out anyway.
            log.warning("addon_fetch_failed", addon=addon.name, exc_info=True)
            return []

    async def _subtitles_from(
        self, addon: AddonEndpoint, content_type: ContentType, external_id: str
    ) -> list[SubtitleSource]:
        try:
            return await self._client.fetch_subtitles(addon, content_type, external_id)
        except Exception:
            log.warning("addon_subtitles_failed", addon=addon.name, exc_info=True)
            return []

    async def fetch_streams(
        self, ctx: UserContext, content_type: ContentType, external_id: str
    ) -> list[StreamSource]:
        """Ranked union of streams from all enabled add-ons."""
        addons = await self._enabled_addons(ctx)
        if not addons:
            log.info("addon_fanout_no_addons", owner=ctx.owner)
            return []

        per_addon = await asyncio.gather(
            *(self._streams_from(a, content_type, external_id) for a in addons)
        )
        merged = [source for batch in per_addon for source in batch]
        ranked = self._sorter.sort(merged)

        log.info(
            "addon_fanout_complete",
            owner=ctx.owner,
            content_type=content_type,
            external_id=external_id,
            addons=len(addons),
            sources=len(ranked),
        )
        return ranked

    async def fetch_subtitles(
        self, ctx: UserContext, content_type: ContentType, external_id: str
    ) -> list[SubtitleSource]:
        """Subtitles from all enabled add-ons, in add-on order."""
        addons = await self._enabled_addons(ctx)
        if not addons:
            return []

        per_addon = await asyncio.gather(
            *(self._subtitles_from(a, content_type, external_id) for a in addons)
        )
        subtitles = [sub for batch in per_addon for sub in batch]
        log.debug(
            "addon_subtitles_complete",
            owner=ctx.owner,
            external_id=external_id,
            count=len(subtitles),
        )
        return subtitles
