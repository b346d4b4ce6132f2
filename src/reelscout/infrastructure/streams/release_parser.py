"""Quality and seeder extraction from free-text add-on stream titles."""

from __future__ import annotations

import re

from reelscout.domain.entities.streams import UNKNOWN_QUALITY, StreamQuality

# --- Quality mappings ---

# Checked in order; first tier with any matching badge wins.
_QUALITY_BADGES: tuple[tuple[StreamQuality, tuple[str, ...]], ...] = (
    (StreamQuality.UHD_4K, ("2160P", "4K", "UHD")),
    (StreamQuality.HD_1080P, ("1080P",)),
    (StreamQuality.HD_720P, ("720P",)),
    (StreamQuality.SD_480P, ("480P",)),
)

# Torrentio-style seeder badge: "👤 123"
_SEEDERS_RE = re.compile(r"\U0001F464\s*(\d+)")


def _quality_from_text(text: str) -> StreamQuality:
    upper = text.upper()
    for quality, badges in _QUALITY_BADGES:
        if any(badge in upper for badge in badges):
            return quality
    return StreamQuality.UNKNOWN


# --- Public API ---


def parse_quality(text: str | None, *, raw_quality: str | None = None) -> str:
    """Normalize a stream's quality to a display label.

    Scans *text* (title/name) for the first matching tier. When nothing
    matches, the add-on's raw quality field passes through unchanged, and
    ``"Unknown"`` is the last resort.
    """
    if text:
        quality = _quality_from_text(text)
        if quality != StreamQuality.UNKNOWN:
            return quality.label
    if raw_quality and raw_quality.strip():
        return raw_quality.strip()
    return UNKNOWN_QUALITY


def parse_seeders(text: str | None, *, explicit: int | None = None) -> int:
    """Seeder count from an explicit field, else from the title badge."""
    if explicit is not None and explicit > 0:
        return explicit
    if not text:
        return 0
    m = _SEEDERS_RE.search(text)
    return int(m.group(1)) if m else 0
