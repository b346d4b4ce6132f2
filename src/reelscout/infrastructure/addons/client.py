"""Add-on client: async httpx implementation of the Stremio add-on protocol."""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog

from reelscout.domain.entities.streams import (
    AddonEndpoint,
    ContentType,
    StreamSource,
    SubtitleSource,
)
from reelscout.infrastructure.streams.magnet import encode_uri_component
from reelscout.infrastructure.streams.stream_converter import (
    convert_stream_payload,
    convert_subtitle_payload,
)

log = structlog.get_logger(__name__)

_MANIFEST_SUFFIX_RE = re.compile(r"/manifest(\.json)?$", re.IGNORECASE)


def normalize_addon_url(url: str) -> str:
    """Strip a trailing ``/manifest(.json)`` and trailing slash.

    Examples:
        "https://addon.example/manifest.json" -> "https://addon.example"
        "https://addon.example/cfg/manifest"  -> "https://addon.example/cfg"
        "https://addon.example/"              -> "https://addon.example"
    """
    base = _MANIFEST_SUFFIX_RE.sub("", url.strip())
    if base.endswith("/"):
        base = base[:-1]
    return base


def resource_url(
    base_url: str, resource: str, content_type: ContentType, external_id: str
) -> str:
    """``{base}/{resource}/{type}/{id}.json`` with the id URI-encoded."""
    return (
        f"{normalize_addon_url(base_url)}/{resource}/{content_type}/"
        f"{encode_uri_component(external_id)}.json"
    )


class HttpxAddonClient:
    """Queries one add-on at a time; never raises.

    Implements ``AddonClientPort`` from domain.ports.addon_client.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        timeout_seconds: float | None = None,
    ) -> None:
        self._http = http_client
        self._timeout = timeout_seconds

    async def _get_json(self, url: str, addon_name: str) -> Any | None:
        """GET *url*; parsed JSON body or None on any failure."""
        kwargs: dict[str, Any] = {"headers": {"Accept": "application/json"}}
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        try:
            resp = await self._http.get(url, **kwargs)
            if not resp.is_success:
                log.warning(
                    "addon_bad_status",
                    addon=addon_name,
                    url=url,
                    status=resp.status_code,
                )
                return None
            return resp.json()
        except (httpx.HTTPError, httpx.InvalidURL):
            log.warning("addon_network_error", addon=addon_name, url=url, exc_info=True)
            return None
        except ValueError:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
            log.warning("addon_invalid_json", addon=addon_name, url=url)
            return None

    async def fetch_streams(
        self,
        addon: AddonEndpoint,
        content_type: ContentType,
        external_id: str,
    ) -> list[StreamSource]:
        url = resource_url(addon.base_url, "stream", content_type, external_id)
        data = await self._get_json(url, addon.name)
        if data is None:
            return []
        streams = convert_stream_payload(data, addon.name)
        log.debug("addon_streams_fetched", addon=addon.name, count=len(streams))
        return streams

    async def fetch_subtitles(
        self,
        addon: AddonEndpoint,
        content_type: ContentType,
        external_id: str,
    ) -> list[SubtitleSource]:
        url = resource_url(addon.base_url, "subtitles", content_type, external_id)
        data = await self._get_json(url, addon.name)
        if data is None:
            return []
        subtitles = convert_subtitle_payload(data, addon.name)
        log.debug("addon_subtitles_fetched", addon=addon.name, count=len(subtitles))
        return subtitles
