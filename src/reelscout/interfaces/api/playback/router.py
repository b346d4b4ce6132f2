"""Playback session endpoints driving the fallback chain."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Literal

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field

from reelscout.application.playback_chain import PlaybackChain
from reelscout.domain.entities.playback import (
    EngineStats,
    InvalidTransitionError,
    PlaybackSignal,
    SessionNotFoundError,
    SourceSelectionError,
)
from reelscout.domain.entities.streams import ContentRequest
from reelscout.interfaces.api.deps import app_state, user_context

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/playback", tags=["playback"])


class PlaybackOpen(BaseModel):
    content_type: Literal["movie", "series"]
    external_id: str = Field(..., min_length=1)
    title: str = ""


class PlaybackSelect(BaseModel):
    index: int = Field(..., ge=0)


class PlaybackSignalBody(BaseModel):
    signal: PlaybackSignal
    peers: int | None = Field(default=None, ge=0)
    download_rate: float | None = Field(default=None, ge=0)
    upload_rate: float | None = Field(default=None, ge=0)
    buffered_fraction: float | None = Field(default=None, ge=0, le=1)

    def stats(self) -> EngineStats | None:
        values = {
            "peers": self.peers,
            "download_rate": self.download_rate,
            "upload_rate": self.upload_rate,
            "buffered_fraction": self.buffered_fraction,
        }
        provided = {k: v for k, v in values.items() if v is not None}
        if not provided:
            return None
        return EngineStats(**provided)


@contextmanager
def _playback_errors(session_id: str) -> Iterator[None]:
    """Map chain errors to HTTP status codes."""
    try:
        yield
    except SessionNotFoundError as e:
        raise HTTPException(
            status_code=404, detail=f"Playback session not found: {session_id}"
        ) from e
    except SourceSelectionError as e:
        log.warning("playback_selection_rejected", session_id=session_id, error=str(e))
        raise HTTPException(status_code=422, detail=str(e)) from e
    except InvalidTransitionError as e:
        log.info("playback_transition_rejected", session_id=session_id, error=str(e))
        raise HTTPException(status_code=409, detail=str(e)) from e


def _chain(request: Request, session_id: str) -> PlaybackChain:
    owner = user_context(request).owner
    with _playback_errors(session_id):
        return app_state(request).playback_sessions.get(session_id, owner=owner)


@router.post("", status_code=status.HTTP_201_CREATED)
async def open_playback(request: Request, body: PlaybackOpen) -> dict[str, Any]:
    """Open a session and start searching for sources."""
    chain = await app_state(request).playback_sessions.open(
        user_context(request),
        ContentRequest(
            content_type=body.content_type,
            external_id=body.external_id,
            title=body.title,
        ),
    )
    return chain.to_dict()


@router.get("/{session_id}")
async def get_playback(request: Request, session_id: str) -> dict[str, Any]:
    return _chain(request, session_id).to_dict()


@router.post("/{session_id}/select")
async def select_source(
    request: Request, session_id: str, body: PlaybackSelect
) -> dict[str, Any]:
    chain = _chain(request, session_id)
    with _playback_errors(session_id):
        await chain.select(body.index)
    return chain.to_dict()


@router.post("/{session_id}/signal")
async def engine_signal(
    request: Request, session_id: str, body: PlaybackSignalBody
) -> dict[str, Any]:
    """Engine event from the front-end player (ready/progress/failures)."""
    chain = _chain(request, session_id)
    applied = await chain.handle_signal(body.signal, body.stats())
    return {**chain.to_dict(), "applied": applied}


@router.post("/{session_id}/fallback")
async def force_fallback(request: Request, session_id: str) -> dict[str, Any]:
    chain = _chain(request, session_id)
    with _playback_errors(session_id):
        await chain.force_fallback()
    return chain.to_dict()


@router.post("/{session_id}/retry")
async def retry_search(request: Request, session_id: str) -> dict[str, Any]:
    chain = _chain(request, session_id)
    with _playback_errors(session_id):
        chain.retry()
    return chain.to_dict()


@router.post("/{session_id}/cancel")
async def cancel_playback(request: Request, session_id: str) -> dict[str, Any]:
    chain = _chain(request, session_id)
    with _playback_errors(session_id):
        await chain.cancel()
    return chain.to_dict()


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_playback(request: Request, session_id: str) -> Response:
    owner = user_context(request).owner
    with _playback_errors(session_id):
        await app_state(request).playback_sessions.close(session_id, owner=owner)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
