"""Convert raw add-on JSON payloads into StreamSource / SubtitleSource.

Pure transformation logic: no I/O. Add-on payloads are validated on
ingest: entries that do not fit the expected shape are dropped instead of
being propagated with missing fields.
"""

from __future__ import annotations

import math
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reelscout.domain.entities.streams import StreamSource, SubtitleSource
from reelscout.infrastructure.streams.release_parser import (
    parse_quality,
    parse_seeders,
)

log = structlog.get_logger(__name__)

_UNKNOWN_TITLE = "Unknown Source"


class _AddonStream(BaseModel):
    """One entry of ``{"streams": [...]}`` as sent by Stremio-style add-ons."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = None
    name: str | None = None
    quality: str | None = None
    info_hash: str | None = Field(default=None, alias="infoHash")
    magnet_uri: str | None = Field(default=None, alias="magnetUri")
    url: str | None = None
    seeders: int | None = None
    file_idx: int | None = Field(default=None, alias="fileIdx")

    @field_validator("seeders", mode="before")
    @classmethod
    def _lenient_seeders(cls, v: Any) -> Any:
        # Seeders is only a ranking hint: anything unusable becomes None
        # instead of failing the whole entry.
        if isinstance(v, bool):
            return None
        if isinstance(v, int):
            return v
        if isinstance(v, float):
            return int(v) if math.isfinite(v) else None
        if isinstance(v, str):
            return int(v.strip()) if v.strip().isdigit() else None
        return None

    @property
    def magnet_url(self) -> str | None:
        if self.url and self.url.startswith("magnet:"):
            return self.url
        return None

    @property
    def has_locator(self) -> bool:
        return bool(self.info_hash or self.magnet_uri or self.magnet_url)


class _AddonSubtitle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str
    lang: str | None = None
    id: str | None = None
    name: str | None = None


def _entries(payload: Any, key: str) -> list[Any]:
    if not isinstance(payload, dict):
        return []
    entries = payload.get(key)
    if not isinstance(entries, list):
        return []
    return entries


def convert_stream_payload(payload: Any, addon_name: str) -> list[StreamSource]:
    """Convert an add-on ``/stream`` response body into StreamSources.

    Keeps only entries carrying a usable locator (``infoHash``,
    ``magnetUri`` or a ``magnet:`` url). Order is preserved.
    """
    sources: list[StreamSource] = []
    dropped = 0
    for raw in _entries(payload, "streams"):
        try:
            entry = _AddonStream.model_validate(raw)
        except ValidationError:
            dropped += 1
            continue
        if not entry.has_locator:
            continue

        text = entry.title or entry.name or entry.quality
        sources.append(
            StreamSource(
                title=entry.title or entry.name or _UNKNOWN_TITLE,
                addon_name=addon_name,
                quality=parse_quality(text, raw_quality=entry.quality),
                info_hash=entry.info_hash,
                magnet_uri=entry.magnet_uri or entry.magnet_url,
                url=entry.url,
                seeders=parse_seeders(
                    entry.title or entry.name, explicit=entry.seeders
                ),
                file_index=entry.file_idx,
            )
        )

    if dropped:
        log.debug("addon_streams_dropped_invalid", addon=addon_name, count=dropped)
    return sources


def convert_subtitle_payload(payload: Any, addon_name: str) -> list[SubtitleSource]:
    """Convert an add-on ``/subtitles`` response body into SubtitleSources."""
    subtitles: list[SubtitleSource] = []
    for raw in _entries(payload, "subtitles"):
        try:
            entry = _AddonSubtitle.model_validate(raw)
        except ValidationError:
            continue
        if not entry.url:
            continue
        subtitles.append(
            SubtitleSource(
                lang=entry.lang or entry.id or "en",
                url=entry.url,
                label=entry.name or entry.lang or entry.id or addon_name,
                addon_name=addon_name,
            )
        )
    return subtitles
