"""Stream, subtitle and magnet endpoints."""

from __future__ import annotations

from dataclasses import asdict
from typing import cast

import httpx
import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import Response

from reelscout.domain.entities.streams import ContentType
from reelscout.infrastructure.streams.magnet import generate_magnet_from_hash
from reelscout.infrastructure.subtitles.fetch import (
    SubtitleFetchError,
    SubtitleUrlRejected,
)
from reelscout.infrastructure.subtitles.srt import VTT_MEDIA_TYPE, srt_to_vtt
from reelscout.interfaces.api.deps import app_state, user_context

log = structlog.get_logger(__name__)

router = APIRouter(tags=["streams"])

_CONTENT_TYPES = ("movie", "series")


def _content_type(raw: str) -> ContentType:
    if raw not in _CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported content type: {raw!r}",
        )
    return cast(ContentType, raw)


@router.get("/streams/{content_type}/{external_id}.json")
async def get_streams(
    request: Request, content_type: str, external_id: str
) -> dict[str, list[dict]]:
    """Ranked streams from every enabled add-on of the caller."""
    ct = _content_type(content_type)
    state = app_state(request)
    sources = await state.addon_streams_uc.fetch_streams(
        user_context(request), ct, external_id
    )
    return {"streams": [asdict(s) for s in sources]}


@router.get("/subtitles/vtt")
async def get_subtitle_vtt(
    request: Request, url: str = Query(..., min_length=1)
) -> Response:
    """Fetch a subtitle file from a public host and serve it as WebVTT."""
    state = app_state(request)
    try:
        raw = await state.subtitle_fetcher.fetch_text(url)
    except SubtitleUrlRejected as e:
        log.warning("subtitle_url_rejected", url=url, error=str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (httpx.HTTPError, SubtitleFetchError) as e:
        log.warning("subtitle_fetch_failed", url=url, error=str(e))
        raise HTTPException(
            status_code=502,
            detail="Failed to fetch subtitle file",
        ) from e

    text = raw.lstrip("\ufeff")
    if not text.startswith("WEBVTT"):
        text = srt_to_vtt(text)
    return Response(content=text, media_type=VTT_MEDIA_TYPE)


@router.get("/subtitles/{content_type}/{external_id}.json")
async def get_subtitles(
    request: Request, content_type: str, external_id: str
) -> dict[str, list[dict]]:
    ct = _content_type(content_type)
    state = app_state(request)
    subtitles = await state.addon_streams_uc.fetch_subtitles(
        user_context(request), ct, external_id
    )
    return {"subtitles": [asdict(s) for s in subtitles]}


@router.get("/magnet")
async def get_magnet(
    request: Request,
    hash: str = Query(..., min_length=1),
    name: str = Query(""),
) -> dict[str, str]:
    """Magnet link for a bare info-hash with the configured trackers."""
    trackers = app_state(request).config.playback.trackers
    return {"magnet": generate_magnet_from_hash(hash, name or hash, trackers)}
