"""Domain entities for add-on stream aggregation.

Pure value objects: no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

ContentType = Literal["movie", "series"]

UNKNOWN_QUALITY = "Unknown"


class StreamQuality(IntEnum):
    """Ranked quality tiers (higher value = better quality)."""

    UNKNOWN = 0
    SD_480P = 1
    HD_720P = 2
    HD_1080P = 3
    UHD_4K = 4

    @property
    def label(self) -> str:
        return _QUALITY_LABELS[self]


_QUALITY_LABELS: dict[StreamQuality, str] = {
    StreamQuality.UNKNOWN: UNKNOWN_QUALITY,
    StreamQuality.SD_480P: "480p",
    StreamQuality.HD_720P: "720p",
    StreamQuality.HD_1080P: "1080p",
    StreamQuality.UHD_4K: "4K",
}

_LABEL_TO_QUALITY: dict[str, StreamQuality] = {
    label: quality for quality, label in _QUALITY_LABELS.items()
}


def quality_rank(label: str | None) -> int:
    """Rank of a quality label; raw pass-through labels rank 0."""
    if not label:
        return 0
    return int(_LABEL_TO_QUALITY.get(label, StreamQuality.UNKNOWN))


@dataclass(frozen=True)
class UserContext:
    """Explicit per-request user context (replaces ambient client state)."""

    owner: str


@dataclass(frozen=True)
class AddonEndpoint:
    """A user-configured add-on endpoint (row of the persisted registry)."""

    addon_id: str
    name: str
    base_url: str
    enabled: bool = True
    owner: str = ""


@dataclass(frozen=True)
class ContentRequest:
    """What the user asked to play.

    ``external_id`` is an IMDb-style id (``tt1234567``); series episodes
    use the add-on convention ``tt1234567:1:5``.
    """

    content_type: ContentType
    external_id: str
    title: str = ""


@dataclass(frozen=True)
class StreamSource:
    """One playable candidate returned by an add-on or the legacy index."""

    title: str
    addon_name: str
    quality: str = UNKNOWN_QUALITY
    info_hash: str | None = None
    magnet_uri: str | None = None
    url: str | None = None
    seeders: int = 0
    file_index: int | None = None

    @property
    def is_playable(self) -> bool:
        """True when a magnet locator can be derived from this source."""
        return bool(
            self.info_hash
            or self.magnet_uri
            or (self.url and self.url.startswith("magnet:"))
        )

    @property
    def rank(self) -> int:
        return quality_rank(self.quality)


@dataclass(frozen=True)
class SubtitleSource:
    """A subtitle track offered by an add-on."""

    lang: str
    url: str
    addon_name: str
    label: str | None = None
