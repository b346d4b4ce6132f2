"""YTS index client: last-resort movie torrents by IMDb id."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from reelscout.domain.entities.streams import StreamSource
from reelscout.infrastructure.streams.release_parser import parse_quality

log = structlog.get_logger(__name__)

_DEFAULT_BASE_URL = "https://yts.mx/api/v2"
_ADDON_NAME = "YTS"


class HttpxYtsClient:
    """Implements ``LegacyIndexPort`` against the public YTS list API."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        base_url: str = _DEFAULT_BASE_URL,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def _first_movie(self, external_id: str) -> dict[str, Any] | None:
        url = f"{self._base_url}/list_movies.json"
        try:
            resp = await self._http.get(url, params={"query_term": external_id})
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("yts_http_error", imdb_id=external_id, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("yts_network_error", imdb_id=external_id, exc_info=True)
            return None
        except ValueError:
            log.warning("yts_invalid_json", imdb_id=external_id)
            return None

        if not isinstance(data, dict) or data.get("status") != "ok":
            return None
        payload = data.get("data")
        if not isinstance(payload, dict):
            return None
        movies = payload.get("movies")
        if not isinstance(movies, list) or not movies:
            return None
        if not isinstance(movies[0], dict):
            return None
        return movies[0]

    async def search_by_external_id(
        self, external_id: str, *, title: str = ""
    ) -> list[StreamSource]:
        """Map every torrent of the first matching movie to a StreamSource."""
        movie = await self._first_movie(external_id)
        if movie is None:
            return []

        name = title or movie.get("title") or external_id
        sources: list[StreamSource] = []
        for torrent in movie.get("torrents") or []:
            if not isinstance(torrent, dict) or not torrent.get("hash"):
                continue
            raw_quality = str(torrent.get("quality") or "")
            sources.append(
                StreamSource(
                    title=f"{name} - {raw_quality}" if raw_quality else name,
                    addon_name=_ADDON_NAME,
                    quality=parse_quality(raw_quality, raw_quality=raw_quality),
                    info_hash=str(torrent["hash"]),
                    seeders=_int_or_zero(torrent.get("seeds")),
                )
            )
        log.debug("yts_torrents_found", imdb_id=external_id, count=len(sources))
        return sources


def _int_or_zero(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0
