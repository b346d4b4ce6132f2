"""Domain entities for the playback fallback chain."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from reelscout.domain.entities.streams import SubtitleSource


class PlaybackState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    AUTO_SELECTING = "auto_selecting"
    SELECTING = "selecting"
    PLAYING = "playing"
    PLAYING_FALLBACK = "playing_fallback"
    FAILED = "failed"


class PlaybackSignal(str, Enum):
    """Signals emitted by the peer-to-peer playback engine."""

    READY = "ready"
    PROGRESS = "progress"
    NO_COMPATIBLE_MEDIA = "no_compatible_media"
    NO_PEERS = "no_peers"
    DECODE_ERROR = "decode_error"
    ENGINE_ERROR = "engine_error"

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_SIGNALS


_FAILURE_SIGNALS = frozenset(
    {
        PlaybackSignal.NO_COMPATIBLE_MEDIA,
        PlaybackSignal.NO_PEERS,
        PlaybackSignal.DECODE_ERROR,
        PlaybackSignal.ENGINE_ERROR,
    }
)


class FailureReason(str, Enum):
    NO_SOURCES = "no_sources"
    PLAYBACK_ERROR = "playback_error"


@dataclass(frozen=True)
class PlaybackTarget:
    """Everything a player needs to start: magnet, title, subtitles."""

    magnet: str
    title: str
    subtitles: tuple[SubtitleSource, ...] = ()
    file_index: int | None = None
    addon_name: str = ""


@dataclass(frozen=True)
class EngineStats:
    """Latest transfer statistics reported by the engine."""

    peers: int = 0
    download_rate: float = 0.0  # bytes/s
    upload_rate: float = 0.0  # bytes/s
    buffered_fraction: float = 0.0  # 0.0 .. 1.0


@dataclass(frozen=True)
class FallbackEmbed:
    """Cloud-embedded player descriptor handed to the front-end."""

    url: str
    magnet: str
    title: str
    subtitles: tuple[SubtitleSource, ...] = ()


class PlaybackError(Exception):
    """Base error for the playback chain."""


class InvalidTransitionError(PlaybackError):
    """Operation not allowed in the chain's current state."""


class SourceSelectionError(PlaybackError):
    """No magnet locator could be derived from the selected source."""


class SessionNotFoundError(PlaybackError):
    pass
