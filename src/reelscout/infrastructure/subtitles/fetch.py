"""Guarded subtitle download for the VTT endpoint.

Only public http(s) hosts are fetched. Redirects are followed by hand so
every hop is checked again, and the body is streamed with a size cap.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from collections.abc import Awaitable, Callable

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_MAX_BYTES = 2 * 1024 * 1024
DEFAULT_MAX_REDIRECTS = 3

Resolver = Callable[[str], Awaitable[list[str]]]


class SubtitleFetchError(Exception):
    """The subtitle file could not be fetched."""


class SubtitleUrlRejected(SubtitleFetchError):
    """URL is not http(s) or points at a non-public address."""


class SubtitleTooLarge(SubtitleFetchError):
    """Body exceeds the configured size cap."""


async def resolve_host(host: str) -> list[str]:
    """Addresses *host* resolves to; empty when resolution fails."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except socket.gaierror:
        return []
    return [str(info[4][0]) for info in infos]


def _is_public(address: str) -> bool:
    ip = ipaddress.ip_address(address.split("%", 1)[0])
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return ip.is_global


async def check_public_url(url: str, *, resolver: Resolver | None = None) -> None:
    """Raise SubtitleUrlRejected unless *url* targets a public http(s) host.

    Hosts that do not resolve are let through; the fetch itself fails.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise SubtitleUrlRejected(f"invalid url: {url!r}") from e

    if parsed.scheme not in ("http", "https"):
        raise SubtitleUrlRejected(f"unsupported scheme: {parsed.scheme!r}")
    host = parsed.host.lower().rstrip(".")
    if not host:
        raise SubtitleUrlRejected("url has no host")
    if host == "localhost" or host.endswith(".localhost"):
        raise SubtitleUrlRejected(f"non-public host: {host!r}")

    try:
        addresses = [str(ipaddress.ip_address(host))]
    except ValueError:
        addresses = await (resolver or resolve_host)(host)

    for address in addresses:
        if not _is_public(address):
            raise SubtitleUrlRejected(f"non-public address for {host!r}")


class SubtitleFetcher:
    """Downloads subtitle text through the shared httpx client."""

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        resolver: Resolver | None = None,
    ) -> None:
        self._http = http_client
        self._max_bytes = max_bytes
        self._max_redirects = max_redirects
        self._resolver = resolver

    async def fetch_text(self, url: str) -> str:
        """Return the decoded body of *url*.

        Raises:
            SubtitleUrlRejected: a hop targets a non-public or non-http host.
            SubtitleTooLarge: the body exceeds ``max_bytes``.
            SubtitleFetchError: too many redirects.
            httpx.HTTPError: network failure or non-2xx status.
        """
        current = url
        for _ in range(self._max_redirects + 1):
            await check_public_url(current, resolver=self._resolver)
            resp = await self._http.send(
                self._http.build_request("GET", current),
                stream=True,
                follow_redirects=False,
            )
            try:
                if resp.is_redirect:
                    current = str(resp.url.join(resp.headers["location"]))
                    continue
                resp.raise_for_status()
                body = await self._read_capped(resp)
                return body.decode(resp.encoding or "utf-8", errors="replace")
            finally:
                await resp.aclose()

        raise SubtitleFetchError(f"too many redirects for {url!r}")

    async def _read_capped(self, resp: httpx.Response) -> bytes:
        declared = resp.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self._max_bytes:
            raise SubtitleTooLarge(f"declared size {declared} bytes")

        body = bytearray()
        async for chunk in resp.aiter_bytes(chunk_size=65536):
            body.extend(chunk)
            if len(body) > self._max_bytes:
                log.warning("subtitle_too_large", url=str(resp.url))
                raise SubtitleTooLarge(f"body exceeds {self._max_bytes} bytes")
        return bytes(body)
