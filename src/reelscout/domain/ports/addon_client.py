"""Port for querying a single add-on endpoint."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelscout.domain.entities.streams import (
    AddonEndpoint,
    ContentType,
    StreamSource,
    SubtitleSource,
)


@runtime_checkable
class AddonClientPort(Protocol):
    """Fetch streams and subtitles from one add-on.

    Implementations MUST NOT raise: any failure yields an empty list so a
    broken add-on never blocks the others.
    """

    async def fetch_streams(
        self, addon: AddonEndpoint, content_type: ContentType, external_id: str
    ) -> list[StreamSource]: ...

    async def fetch_subtitles(
        self, addon: AddonEndpoint, content_type: ContentType, external_id: str
    ) -> list[SubtitleSource]: ...
