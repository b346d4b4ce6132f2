"""Port for the optional last-resort public torrent index."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelscout.domain.entities.streams import StreamSource


@runtime_checkable
class LegacyIndexPort(Protocol):
    """Movies-only lookup by IMDb id. Returns [] on any failure."""

    async def search_by_external_id(
        self, external_id: str, *, title: str = ""
    ) -> list[StreamSource]: ...
