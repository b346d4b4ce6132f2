"""Registry of live playback chains, keyed by session id."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from uuid import uuid4

import structlog

from reelscout.application.playback_chain import PlaybackChain
from reelscout.domain.entities.playback import SessionNotFoundError
from reelscout.domain.entities.streams import ContentRequest, UserContext

log = structlog.get_logger(__name__)

ChainFactory = Callable[[UserContext, ContentRequest, str], PlaybackChain]


class PlaybackSessionManager:
    """Owns every open PlaybackChain for the process.

    Lives on the application state; one instance per app.

    Sessions not touched (opened, read or signalled) for ``idle_ttl_seconds``
    are closed by ``evict_idle()``, which runs on every ``open()`` and from
    the background ``run_sweeper()`` loop. When ``max_sessions`` is reached,
    opening a new session closes the least recently used one.

    Args:
        chain_factory: Builds a chain for ``(ctx, request, session_id)``.
        idle_ttl_seconds: Idle lifetime; ``None`` keeps sessions until closed.
        max_sessions: Upper bound on live sessions; ``None`` means unbounded.
        clock: Monotonic time source.
    """

    def __init__(
        self,
        *,
        chain_factory: ChainFactory,
        idle_ttl_seconds: float | None = 1800.0,
        max_sessions: int | None = 100,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._chain_factory = chain_factory
        self._idle_ttl = idle_ttl_seconds
        self._max_sessions = max_sessions
        self._clock = clock
        self._sessions: dict[str, PlaybackChain] = {}
        self._last_seen: dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def _touch(self, session_id: str) -> None:
        # Re-insert so dict order stays least-recently-used first.
        self._last_seen.pop(session_id, None)
        self._last_seen[session_id] = self._clock()

    def _pop(self, session_id: str) -> PlaybackChain:
        self._last_seen.pop(session_id, None)
        return self._sessions.pop(session_id)

    async def open(self, ctx: UserContext, request: ContentRequest) -> PlaybackChain:
        """Create a chain and start its search in the background."""
        await self.evict_idle()
        if self._max_sessions is not None:
            while len(self._sessions) >= self._max_sessions:
                oldest = next(iter(self._last_seen))
                log.warning("playback_session_evicted_capacity", session_id=oldest)
                await self._pop(oldest).close()

        session_id = uuid4().hex
        chain = self._chain_factory(ctx, request, session_id)
        self._sessions[session_id] = chain
        self._touch(session_id)
        chain.start_search()
        log.info(
            "playback_session_opened",
            session_id=session_id,
            owner=ctx.owner,
            content_type=request.content_type,
            external_id=request.external_id,
        )
        return chain

    def get(self, session_id: str, *, owner: str | None = None) -> PlaybackChain:
        """Raises SessionNotFoundError for unknown ids or a foreign owner."""
        chain = self._sessions.get(session_id)
        if chain is None or (owner is not None and chain.ctx.owner != owner):
            raise SessionNotFoundError(session_id)
        self._touch(session_id)
        return chain

    async def close(self, session_id: str, *, owner: str | None = None) -> None:
        chain = self.get(session_id, owner=owner)
        self._pop(session_id)
        await chain.close()

    async def evict_idle(self) -> int:
        """Close sessions idle for longer than the TTL. Returns the count."""
        if self._idle_ttl is None:
            return 0
        deadline = self._clock() - self._idle_ttl
        expired = [sid for sid, seen in self._last_seen.items() if seen <= deadline]
        for sid in expired:
            await self._pop(sid).close()
        if expired:
            log.info("playback_sessions_expired", count=len(expired))
        return len(expired)

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Evict idle sessions every *interval_seconds* until cancelled."""
        log.info("playback_sweeper_started", interval=interval_seconds)
        try:
            while True:
                await asyncio.sleep(interval_seconds)
                try:
                    await self.evict_idle()
                except Exception:
                    log.error("playback_sweeper_error", exc_info=True)
        except asyncio.CancelledError:
            log.info("playback_sweeper_cancelled")
            raise

    async def close_all(self) -> None:
        chains = list(self._sessions.values())
        self._sessions.clear()
        self._last_seen.clear()
        await asyncio.gather(*(c.close() for c in chains))
        log.info("playback_sessions_closed", count=len(chains))
