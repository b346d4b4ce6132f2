"""Source search: add-on fan-out plus the optional legacy index."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Literal

import structlog

from reelscout.application.use_cases.addon_streams import AddonStreamsUseCase
from reelscout.domain.entities.streams import (
    ContentRequest,
    StreamSource,
    SubtitleSource,
    UserContext,
)
from reelscout.domain.ports.legacy_index import LegacyIndexPort

log = structlog.get_logger(__name__)

LegacyPolicy = Literal["disabled", "always", "when_empty"]


@dataclass(frozen=True)
class SearchOutcome:
    """Ranked sources plus every subtitle found for the request."""

    sources: list[StreamSource] = field(default_factory=list)
    subtitles: list[SubtitleSource] = field(default_factory=list)


class SourceSearchUseCase:
    """Runs the add-on fan-out and applies the legacy policy.

    Policies:
      - ``disabled``: add-ons only.
      - ``always``: legacy lookup runs concurrently with the fan-out; its
        results are appended after the ranked add-on sources.
      - ``when_empty``: legacy lookup runs only when add-ons yield nothing.

    Series requests never reach the legacy index.
    """

    def __init__(
        self,
        *,
        addon_streams: AddonStreamsUseCase,
        legacy: LegacyIndexPort | None = None,
        legacy_policy: LegacyPolicy = "when_empty",
    ) -> None:
        self._addon_streams = addon_streams
        self._legacy = legacy
        self._policy: LegacyPolicy = legacy_policy if legacy else "disabled"

    async def _legacy_sources(self, request: ContentRequest) -> list[StreamSource]:
        if self._legacy is None:
            return []
        try:
            return await self._legacy.search_by_external_id(
                request.external_id, title=request.title
            )
        except Exception:
            log.warning(
                "legacy_search_failed", external_id=request.external_id, exc_info=True
            )
            return []

    async def _no_legacy(self) -> list[StreamSource]:
        return []

    async def search(self, ctx: UserContext, request: ContentRequest) -> SearchOutcome:
        use_legacy = self._policy != "disabled" and request.content_type == "movie"

        legacy_now = use_legacy and self._policy == "always"
        sources, subtitles, legacy = await asyncio.gather(
            self._addon_streams.fetch_streams(
                ctx, request.content_type, request.external_id
            ),
            self._addon_streams.fetch_subtitles(
                ctx, request.content_type, request.external_id
            ),
            self._legacy_sources(request) if legacy_now else self._no_legacy(),
        )

        if use_legacy and self._policy == "when_empty" and not sources:
            legacy = await self._legacy_sources(request)

        if legacy:
            log.info(
                "legacy_sources_added",
                external_id=request.external_id,
                policy=self._policy,
                count=len(legacy),
            )
        return SearchOutcome(sources=[*sources, *legacy], subtitles=subtitles)
