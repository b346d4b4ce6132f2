"""Tests for the guarded subtitle downloader."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import respx

from reelscout.infrastructure.subtitles.fetch import (
    SubtitleFetcher,
    SubtitleFetchError,
    SubtitleTooLarge,
    SubtitleUrlRejected,
    check_public_url,
)

_HOSTS = {
    "subs.example": ["93.184.216.34"],
    "intranet.example": ["192.168.1.20"],
    "mixed.example": ["93.184.216.34", "127.0.0.1"],
    "mapped.example": ["::ffff:10.0.0.1"],
}


async def _resolve(host: str) -> list[str]:
    return _HOSTS.get(host, [])


@pytest.fixture()
def fetcher() -> SubtitleFetcher:
    return SubtitleFetcher(
        http_client=httpx.AsyncClient(),
        max_bytes=1000,
        max_redirects=2,
        resolver=_resolve,
    )


class TestCheckPublicUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://subs.example/a.srt",
            "http://93.184.216.34/a.srt",
            "https://unresolvable.example/a.srt",
        ],
    )
    async def test_accepted(self, url: str) -> None:
        await check_public_url(url, resolver=_resolve)

    @pytest.mark.parametrize(
        "url",
        [
            "file:///etc/passwd",
            "gopher://subs.example/a",
            "http://localhost:9000/a.srt",
            "http://api.localhost/a.srt",
            "http://127.0.0.1/a.srt",
            "http://0.0.0.0/a.srt",
            "http://[::1]/a.srt",
            "http://[fd00::1]/a.srt",
            "http://172.16.0.4/a.srt",
            "https://intranet.example/a.srt",
            "https://mixed.example/a.srt",
            "https://mapped.example/a.srt",
        ],
    )
    async def test_rejected(self, url: str) -> None:
        with pytest.raises(SubtitleUrlRejected):
            await check_public_url(url, resolver=_resolve)


class TestSubtitleFetcher:
    @respx.mock
    async def test_returns_body(self, fetcher: SubtitleFetcher) -> None:
        respx.get("https://subs.example/a.srt").respond(text="1\nhello\n")
        assert await fetcher.fetch_text("https://subs.example/a.srt") == "1\nhello\n"

    @respx.mock
    async def test_follows_public_redirect(self, fetcher: SubtitleFetcher) -> None:
        respx.get("https://subs.example/old.srt").respond(
            status_code=302, headers={"Location": "/new.srt"}
        )
        respx.get("https://subs.example/new.srt").respond(text="moved")
        assert await fetcher.fetch_text("https://subs.example/old.srt") == "moved"

    @respx.mock
    async def test_redirect_to_private_address_rejected(
        self, fetcher: SubtitleFetcher
    ) -> None:
        respx.get("https://subs.example/a.srt").respond(
            status_code=307, headers={"Location": "https://intranet.example/a.srt"}
        )
        internal = respx.get("https://intranet.example/a.srt").respond(text="x")
        with pytest.raises(SubtitleUrlRejected):
            await fetcher.fetch_text("https://subs.example/a.srt")
        assert not internal.called

    @respx.mock
    async def test_too_many_redirects(self, fetcher: SubtitleFetcher) -> None:
        respx.get("https://subs.example/loop.srt").respond(
            status_code=302, headers={"Location": "/loop.srt"}
        )
        with pytest.raises(SubtitleFetchError):
            await fetcher.fetch_text("https://subs.example/loop.srt")

    @respx.mock
    async def test_http_error_propagates(self, fetcher: SubtitleFetcher) -> None:
        respx.get("https://subs.example/gone.srt").respond(status_code=404)
        with pytest.raises(httpx.HTTPStatusError):
            await fetcher.fetch_text("https://subs.example/gone.srt")

    @respx.mock
    async def test_declared_size_over_cap(self, fetcher: SubtitleFetcher) -> None:
        respx.get("https://subs.example/big.srt").respond(text="x" * 1001)
        with pytest.raises(SubtitleTooLarge):
            await fetcher.fetch_text("https://subs.example/big.srt")

    @respx.mock
    async def test_streamed_body_over_cap(self, fetcher: SubtitleFetcher) -> None:
        async def chunks() -> AsyncIterator[bytes]:
            for _ in range(3):
                yield b"x" * 400

        respx.get("https://subs.example/chunked.srt").mock(
            side_effect=lambda request: httpx.Response(200, content=chunks())
        )
        with pytest.raises(SubtitleTooLarge):
            await fetcher.fetch_text("https://subs.example/chunked.srt")

    @respx.mock
    async def test_body_at_cap_accepted(self, fetcher: SubtitleFetcher) -> None:
        respx.get("https://subs.example/edge.srt").respond(text="y" * 1000)
        assert len(await fetcher.fetch_text("https://subs.example/edge.srt")) == 1000
