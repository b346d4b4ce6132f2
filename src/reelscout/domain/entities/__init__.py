from .playback import (
    EngineStats,
    FailureReason,
    FallbackEmbed,
    InvalidTransitionError,
    PlaybackError,
    PlaybackSignal,
    PlaybackState,
    PlaybackTarget,
    SessionNotFoundError,
    SourceSelectionError,
)
from .streams import (
    AddonEndpoint,
    ContentRequest,
    ContentType,
    StreamQuality,
    StreamSource,
    SubtitleSource,
    UserContext,
)

__all__ = [
    "AddonEndpoint",
    "ContentRequest",
    "ContentType",
    "EngineStats",
    "FailureReason",
    "FallbackEmbed",
    "InvalidTransitionError",
    "PlaybackError",
    "PlaybackSignal",
    "PlaybackState",
    "PlaybackTarget",
    "SessionNotFoundError",
    "SourceSelectionError",
    "StreamQuality",
    "StreamSource",
    "SubtitleSource",
    "UserContext",
]
