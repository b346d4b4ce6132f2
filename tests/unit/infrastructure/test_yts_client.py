"""Tests for HttpxYtsClient (legacy torrent index)."""

from __future__ import annotations

import httpx
import pytest
import respx

from reelscout.infrastructure.legacy.yts_client import HttpxYtsClient

_BASE = "https://yts.test/api/v2"
_URL = f"{_BASE}/list_movies.json"

_RESPONSE = {
    "status": "ok",
    "data": {
        "movies": [
            {
                "title": "The Matrix",
                "torrents": [
                    {"quality": "1080p", "hash": "H1080", "type": "bluray", "seeds": 80},
                    {"quality": "2160p", "hash": "H2160", "type": "web", "seeds": "12"},
                    {"quality": "720p", "type": "web"},
                ],
            }
        ]
    },
}


@pytest.fixture()
def client() -> HttpxYtsClient:
    return HttpxYtsClient(http_client=httpx.AsyncClient(), base_url=_BASE + "/")


class TestHttpxYtsClient:
    @respx.mock
    @pytest.mark.asyncio()
    async def test_maps_torrents(self, client: HttpxYtsClient) -> None:
        route = respx.get(_URL).respond(json=_RESPONSE)
        sources = await client.search_by_external_id("tt0133093")

        assert route.calls.last.request.url.params["query_term"] == "tt0133093"
        assert [(s.title, s.quality, s.info_hash, s.seeders) for s in sources] == [
            ("The Matrix - 1080p", "1080p", "H1080", 80),
            ("The Matrix - 2160p", "4K", "H2160", 12),
        ]
        assert all(s.addon_name == "YTS" for s in sources)

    @respx.mock
    @pytest.mark.asyncio()
    async def test_title_override(self, client: HttpxYtsClient) -> None:
        respx.get(_URL).respond(json=_RESPONSE)
        sources = await client.search_by_external_id("tt0133093", title="Matrix")
        assert sources[0].title == "Matrix - 1080p"

    @respx.mock
    @pytest.mark.asyncio()
    async def test_no_movies(self, client: HttpxYtsClient) -> None:
        respx.get(_URL).respond(json={"status": "ok", "data": {"movie_count": 0}})
        assert await client.search_by_external_id("tt0") == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_error_status(self, client: HttpxYtsClient) -> None:
        respx.get(_URL).respond(json={"status": "error", "status_message": "bad"})
        assert await client.search_by_external_id("tt0") == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_http_failure(self, client: HttpxYtsClient) -> None:
        respx.get(_URL).respond(status_code=502)
        assert await client.search_by_external_id("tt0") == []

    @respx.mock
    @pytest.mark.asyncio()
    async def test_network_failure(self, client: HttpxYtsClient) -> None:
        respx.get(_URL).mock(side_effect=httpx.ConnectError("down"))
        assert await client.search_by_external_id("tt0") == []

    @pytest.mark.parametrize(
        "body",
        [
            {"status": "ok", "data": [{"movies": []}]},
            {"status": "ok", "data": "none"},
            {"status": "ok", "data": {"movies": {"title": "The Matrix"}}},
            {"status": "ok", "data": {"movies": "The Matrix"}},
            {"status": "ok", "data": {"movies": ["The Matrix"]}},
        ],
    )
    @respx.mock
    @pytest.mark.asyncio()
    async def test_unexpected_payload_shapes(
        self, client: HttpxYtsClient, body: dict
    ) -> None:
        respx.get(_URL).respond(json=body)
        assert await client.search_by_external_id("tt0") == []
