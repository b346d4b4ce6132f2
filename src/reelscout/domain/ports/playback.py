"""Ports for the two playback engines driven by the fallback chain."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelscout.domain.entities.playback import FallbackEmbed, PlaybackTarget


@runtime_checkable
class PlaybackHandle(Protocol):
    """A live peer-to-peer session attached to the video surface."""

    @property
    def session_id(self) -> str: ...

    async def destroy(self) -> None:
        """Tear the session down. Must be safe to call more than once."""
        ...


@runtime_checkable
class PlaybackEnginePort(Protocol):
    """Opaque peer-to-peer streaming capability."""

    async def attach(self, target: PlaybackTarget) -> PlaybackHandle: ...


@runtime_checkable
class FallbackPlayerPort(Protocol):
    """Cloud-embedded player used when the peer-to-peer engine fails."""

    def embed(self, target: PlaybackTarget) -> FallbackEmbed: ...
