"""Peer-to-peer engine boundary for an in-browser torrent client.

The transport itself runs in the browser. The service side hands out the
magnet plus announce list and keeps track of which sessions are attached,
so the fallback chain can enforce one engine per video surface.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from reelscout.domain.entities.playback import PlaybackTarget
from reelscout.infrastructure.streams.magnet import DEFAULT_TRACKERS

log = structlog.get_logger(__name__)


@dataclass
class BrowserTorrentHandle:
    """Attachment record returned to the front-end client."""

    target: PlaybackTarget
    announce: tuple[str, ...]
    session_id: str = field(default_factory=lambda: uuid4().hex)
    destroyed: bool = False
    _engine: BrowserTorrentEngine | None = field(default=None, repr=False)

    async def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        if self._engine is not None:
            self._engine._detach(self)
        log.info("p2p_session_destroyed", session_id=self.session_id)

    def to_dict(self) -> dict[str, object]:
        return {
            "session_id": self.session_id,
            "magnet": self.target.magnet,
            "announce": list(self.announce),
            "file_index": self.target.file_index,
            "destroyed": self.destroyed,
        }


class BrowserTorrentEngine:
    """Implements ``PlaybackEnginePort``."""

    def __init__(self, *, announce: Sequence[str] = DEFAULT_TRACKERS) -> None:
        self._announce = tuple(announce)
        self._active: dict[str, BrowserTorrentHandle] = {}

    @property
    def active_sessions(self) -> int:
        return len(self._active)

    async def attach(self, target: PlaybackTarget) -> BrowserTorrentHandle:
        handle = BrowserTorrentHandle(
            target=target, announce=self._announce, _engine=self
        )
        self._active[handle.session_id] = handle
        log.info(
            "p2p_session_attached",
            session_id=handle.session_id,
            title=target.title,
            file_index=target.file_index,
        )
        return handle

    def _detach(self, handle: BrowserTorrentHandle) -> None:
        self._active.pop(handle.session_id, None)
