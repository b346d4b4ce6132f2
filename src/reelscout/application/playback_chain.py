"""Fallback playback chain.

idle -> searching -> {auto_selecting | selecting} -> playing
     -> {playing_fallback | failed}

One chain drives one video surface: at most one peer-to-peer engine is
attached at a time, and the engine is destroyed before the cloud-embedded
player takes over.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Sequence
from dataclasses import asdict
from typing import Any, Protocol

import structlog

from reelscout.domain.entities.playback import (
    EngineStats,
    FailureReason,
    FallbackEmbed,
    InvalidTransitionError,
    PlaybackSignal,
    PlaybackState,
    PlaybackTarget,
    SourceSelectionError,
)
from reelscout.domain.entities.streams import (
    ContentRequest,
    StreamSource,
    SubtitleSource,
    UserContext,
)
from reelscout.domain.ports.playback import (
    FallbackPlayerPort,
    PlaybackEnginePort,
    PlaybackHandle,
)
from reelscout.infrastructure.streams.magnet import DEFAULT_TRACKERS, resolve_magnet

log = structlog.get_logger(__name__)


class _SearchOutcome(Protocol):
    sources: list[StreamSource]
    subtitles: list[SubtitleSource]


class _SourceSearch(Protocol):
    async def search(
        self, ctx: UserContext, request: ContentRequest
    ) -> _SearchOutcome: ...


class PlaybackChain:
    """State machine for one playback request.

    Public operations validate the current state and raise
    ``InvalidTransitionError`` when they do not apply. Engine signals are
    events, not operations: signals arriving in a state that has no use for
    them are ignored.
    """

    def __init__(
        self,
        *,
        ctx: UserContext,
        request: ContentRequest,
        search: _SourceSearch,
        engine: PlaybackEnginePort,
        fallback_player: FallbackPlayerPort,
        session_id: str = "",
        trackers: Sequence[str] = DEFAULT_TRACKERS,
        fallback_enabled: bool = True,
        searching_hint_seconds: float = 8.0,
        auto_fallback_seconds: float | None = None,
    ) -> None:
        self.ctx = ctx
        self.request = request
        self.session_id = session_id
        self._search = search
        self._engine = engine
        self._fallback_player = fallback_player
        self._trackers = tuple(trackers)
        self._fallback_enabled = fallback_enabled
        self._hint_seconds = searching_hint_seconds
        self._auto_fallback_seconds = auto_fallback_seconds

        self.state = PlaybackState.IDLE
        self.history: list[PlaybackState] = [PlaybackState.IDLE]
        self.sources: list[StreamSource] = []
        self.subtitles: list[SubtitleSource] = []
        self.target: PlaybackTarget | None = None
        self.handle: PlaybackHandle | None = None
        self.embed: FallbackEmbed | None = None
        self.stats = EngineStats()
        self.failure_reason: FailureReason | None = None
        self.manual_fallback_available = False
        self.hint_visible = False
        self.engine_ready = False
        self.closed = False

        self._generation = 0
        self._pending_fallback = False
        self._falling_back = False
        self._hint_timer: asyncio.TimerHandle | None = None
        self._auto_fallback_timer: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, new_state: PlaybackState) -> None:
        old = self.state
        self.state = new_state
        self.history.append(new_state)
        self.hint_visible = False
        log.info(
            "playback_transition",
            session_id=self.session_id,
            from_state=old.value,
            to_state=new_state.value,
        )

    def _require(self, operation: str, *allowed: PlaybackState) -> None:
        if self.closed:
            raise InvalidTransitionError(f"{operation}: session is closed")
        if self.state not in allowed:
            raise InvalidTransitionError(
                f"{operation} not allowed in state {self.state.value!r}"
            )

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _start_hint_timer(self) -> None:
        self._cancel_hint_timer()
        loop = asyncio.get_running_loop()
        self._hint_timer = loop.call_later(self._hint_seconds, self._on_hint_timeout)

    def _cancel_hint_timer(self) -> None:
        if self._hint_timer is not None:
            self._hint_timer.cancel()
            self._hint_timer = None

    def _start_auto_fallback_timer(self) -> None:
        self._cancel_auto_fallback_timer()
        if self._auto_fallback_seconds is None:
            return
        loop = asyncio.get_running_loop()
        self._auto_fallback_timer = loop.call_later(
            self._auto_fallback_seconds, self._on_auto_fallback_timeout
        )

    def _cancel_auto_fallback_timer(self) -> None:
        if self._auto_fallback_timer is not None:
            self._auto_fallback_timer.cancel()
            self._auto_fallback_timer = None

    def _cancel_timers(self) -> None:
        self._cancel_hint_timer()
        self._cancel_auto_fallback_timer()

    def _on_hint_timeout(self) -> None:
        self._hint_timer = None
        if self.state in (PlaybackState.SEARCHING, PlaybackState.PLAYING):
            self.hint_visible = True
            log.info(
                "playback_hint_shown",
                session_id=self.session_id,
                state=self.state.value,
            )

    def _on_auto_fallback_timeout(self) -> None:
        self._auto_fallback_timer = None
        if self.state is PlaybackState.PLAYING and not self.engine_ready:
            log.info("playback_auto_fallback_timeout", session_id=self.session_id)
            self._spawn(self._enter_fallback(trigger="timeout"))

    def _fail(self, reason: FailureReason) -> None:
        self._cancel_timers()
        self.failure_reason = reason
        self._transition(PlaybackState.FAILED)

    def _build_target(self, source: StreamSource) -> PlaybackTarget:
        """Resolve *source* into a target. Raises SourceSelectionError."""
        title = self.request.title or source.title
        magnet = resolve_magnet(source, title, self._trackers)
        return PlaybackTarget(
            magnet=magnet,
            title=title,
            subtitles=tuple(self.subtitles),
            file_index=source.file_index,
            addon_name=source.addon_name,
        )

    async def _destroy_engine(self) -> None:
        handle, self.handle = self.handle, None
        if handle is None:
            return
        try:
            await handle.destroy()
        except Exception:
            log.warning(
                "playback_engine_destroy_failed",
                session_id=self.session_id,
                exc_info=True,
            )

    # ------------------------------------------------------------------
    # Searching
    # ------------------------------------------------------------------

    def start_search(self) -> asyncio.Task[None]:
        """Enter ``searching`` and run the source search in the background.

        Allowed from ``idle`` and ``failed``. The returned task completes when
        the search has settled into the next state.
        """
        self._require("search", PlaybackState.IDLE, PlaybackState.FAILED)
        self._generation += 1
        self.sources = []
        self.subtitles = []
        self.target = None
        self.embed = None
        self.failure_reason = None
        self.manual_fallback_available = False
        self._transition(PlaybackState.SEARCHING)
        self._start_hint_timer()
        return self._spawn(self._run_search(self._generation))

    def retry(self) -> asyncio.Task[None]:
        """Re-enter ``searching`` after a failure."""
        self._require("retry", PlaybackState.FAILED)
        return self.start_search()

    async def _run_search(self, generation: int) -> None:
        try:
            outcome = await self._search.search(self.ctx, self.request)
            sources, subtitles = list(outcome.sources), list(outcome.subtitles)
        except Exception:
            log.error(
                "playback_search_failed", session_id=self.session_id, exc_info=True
            )
            sources, subtitles = [], []

        if self.closed or generation != self._generation:
            log.info(
                "playback_search_discarded",
                session_id=self.session_id,
                sources=len(sources),
            )
            return

        self._cancel_hint_timer()
        self.sources = sources
        self.subtitles = subtitles
        pending_fallback, self._pending_fallback = self._pending_fallback, False

        log.info(
            "playback_search_settled",
            session_id=self.session_id,
            sources=len(sources),
            subtitles=len(subtitles),
        )

        if not sources:
            self._fail(FailureReason.NO_SOURCES)
            return

        if pending_fallback:
            try:
                self.target = self._build_target(sources[0])
            except SourceSelectionError:
                log.warning(
                    "playback_forced_fallback_unresolvable",
                    session_id=self.session_id,
                )
                self._transition(PlaybackState.SELECTING)
                return
            await self._enter_fallback(trigger="manual")
            return

        if len(sources) == 1:
            self._transition(PlaybackState.AUTO_SELECTING)
            try:
                await self._play(sources[0])
            except SourceSelectionError:
                log.warning(
                    "playback_auto_select_unresolvable",
                    session_id=self.session_id,
                    exc_info=True,
                )
                self._transition(PlaybackState.SELECTING)
            return

        self._transition(PlaybackState.SELECTING)

    # ------------------------------------------------------------------
    # Selecting / playing
    # ------------------------------------------------------------------

    async def select(self, index: int) -> None:
        """Operator picks a ranked source by index.

        Raises:
            InvalidTransitionError: not in ``selecting``.
            SourceSelectionError: index out of range or no magnet derivable;
                the chain stays in ``selecting``.
        """
        self._require("select", PlaybackState.SELECTING)
        if not 0 <= index < len(self.sources):
            raise SourceSelectionError(
                f"source index {index} out of range (0..{len(self.sources) - 1})"
            )
        await self._play(self.sources[index])

    async def _play(self, source: StreamSource) -> None:
        target = self._build_target(source)
        generation = self._generation
        self.target = target
        self.engine_ready = False
        self.stats = EngineStats()
        self._transition(PlaybackState.PLAYING)

        try:
            handle = await self._engine.attach(target)
        except Exception:
            log.warning(
                "playback_engine_attach_failed",
                session_id=self.session_id,
                exc_info=True,
            )
            await self._enter_fallback(trigger=PlaybackSignal.ENGINE_ERROR.value)
            return

        if (
            self.closed
            or generation != self._generation
            or self.state is not PlaybackState.PLAYING
        ):
            await handle.destroy()
            return

        self.handle = handle
        self._start_hint_timer()
        self._start_auto_fallback_timer()
        log.info(
            "playback_engine_attached",
            session_id=self.session_id,
            engine_session=handle.session_id,
            addon=source.addon_name,
            quality=source.quality,
        )

    async def handle_signal(
        self, signal: PlaybackSignal, stats: EngineStats | None = None
    ) -> bool:
        """Apply an engine signal. Returns False when the signal was ignored."""
        if self.closed or self.state is not PlaybackState.PLAYING:
            log.debug(
                "playback_signal_ignored",
                session_id=self.session_id,
                signal=signal.value,
                state=self.state.value,
            )
            return False

        if signal.is_failure:
            await self._enter_fallback(trigger=signal.value)
            return True

        if stats is not None:
            self.stats = stats
            if stats.peers > 0:
                self.hint_visible = False
        if signal is PlaybackSignal.READY:
            self.engine_ready = True
            self.hint_visible = False
            self._cancel_timers()
            log.info("playback_engine_ready", session_id=self.session_id)
        return True

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    async def _enter_fallback(self, *, trigger: str) -> None:
        if self._falling_back or self.state is PlaybackState.PLAYING_FALLBACK:
            return
        if self.target is None:
            return
        self._falling_back = True
        try:
            self._cancel_timers()
            await self._destroy_engine()
            if self.closed:
                return

            if not self._fallback_enabled and trigger != "manual":
                self.manual_fallback_available = True
                log.warning(
                    "playback_engine_failed",
                    session_id=self.session_id,
                    trigger=trigger,
                )
                self._fail(FailureReason.PLAYBACK_ERROR)
                return

            self.embed = self._fallback_player.embed(self.target)
            self.failure_reason = None
            self.manual_fallback_available = False
            self._transition(PlaybackState.PLAYING_FALLBACK)
            log.info(
                "playback_fallback_entered",
                session_id=self.session_id,
                trigger=trigger,
            )
        finally:
            self._falling_back = False

    async def force_fallback(self) -> None:
        """Manual switch to the cloud-embedded player.

        From ``searching`` the request is remembered and honoured once the
        search settles. From ``selecting`` the first ranked source is used.
        """
        if self.state is PlaybackState.PLAYING_FALLBACK and not self.closed:
            return
        self._require(
            "force_fallback",
            PlaybackState.SEARCHING,
            PlaybackState.SELECTING,
            PlaybackState.PLAYING,
            PlaybackState.FAILED,
        )

        if self.state is PlaybackState.SEARCHING:
            self._pending_fallback = True
            log.info("playback_fallback_pending", session_id=self.session_id)
            return

        if self.state is PlaybackState.SELECTING:
            self.target = self._build_target(self.sources[0])
        elif self.state is PlaybackState.FAILED and self.target is None:
            raise InvalidTransitionError(
                "force_fallback: nothing to play, search again first"
            )

        await self._enter_fallback(trigger="manual")

    # ------------------------------------------------------------------
    # Cancel / close
    # ------------------------------------------------------------------

    async def cancel(self) -> None:
        """Return to ``idle`` from searching, selecting or failed."""
        self._require(
            "cancel",
            PlaybackState.SEARCHING,
            PlaybackState.SELECTING,
            PlaybackState.FAILED,
        )
        self._generation += 1
        self._pending_fallback = False
        self._cancel_timers()
        self.sources = []
        self.target = None
        self.failure_reason = None
        self.manual_fallback_available = False
        self._transition(PlaybackState.IDLE)

    async def close(self) -> None:
        """Release timers and the engine. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self._generation += 1
        self._cancel_timers()
        await self._destroy_engine()
        log.info("playback_session_closed", session_id=self.session_id)

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "content": asdict(self.request),
            "sources": [asdict(s) for s in self.sources],
            "subtitles": [asdict(s) for s in self.subtitles],
            "target": asdict(self.target) if self.target else None,
            "engine_session": self.handle.session_id if self.handle else None,
            "engine_ready": self.engine_ready,
            "stats": asdict(self.stats),
            "fallback": asdict(self.embed) if self.embed else None,
            "failure_reason": (
                self.failure_reason.value if self.failure_reason else None
            ),
            "manual_fallback_available": self.manual_fallback_available,
            "fallback_pending": self._pending_fallback,
            "hint_visible": self.hint_visible,
            "history": [s.value for s in self.history],
            "closed": self.closed,
        }
