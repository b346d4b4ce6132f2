from __future__ import annotations

from .addon_streams import AddonStreamsUseCase
from .playback_sessions import PlaybackSessionManager
from .source_search import SearchOutcome, SourceSearchUseCase

__all__ = [
    "AddonStreamsUseCase",
    "PlaybackSessionManager",
    "SearchOutcome",
    "SourceSearchUseCase",
]
