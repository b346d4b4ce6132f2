"""Tests for magnet synthesis."""

from __future__ import annotations

import pytest

from reelscout.domain.entities.playback import SourceSelectionError
from reelscout.domain.entities.streams import StreamSource
from reelscout.infrastructure.streams.magnet import (
    DEFAULT_TRACKERS,
    encode_uri_component,
    generate_magnet_from_hash,
    resolve_magnet,
)

_HASH = "0123456789abcdef0123456789abcdef01234567"


class TestGenerateMagnet:
    def test_exact_format(self) -> None:
        magnet = generate_magnet_from_hash(_HASH, "The Matrix", ["wss://t.example"])
        assert magnet == (
            f"magnet:?xt=urn:btih:{_HASH}&dn=The%20Matrix"
            "&tr=wss%3A%2F%2Ft.example"
        )

    def test_default_trackers_in_order(self) -> None:
        magnet = generate_magnet_from_hash(_HASH, "x")
        encoded = [encode_uri_component(t) for t in DEFAULT_TRACKERS]
        positions = [magnet.index(f"&tr={t}") for t in encoded]
        assert positions == sorted(positions)
        assert magnet.count("&tr=") == len(DEFAULT_TRACKERS)

    def test_deterministic(self) -> None:
        assert generate_magnet_from_hash(_HASH, "a b") == generate_magnet_from_hash(
            _HASH, "a b"
        )

    def test_no_trackers(self) -> None:
        assert generate_magnet_from_hash(_HASH, "n", ()) == (
            f"magnet:?xt=urn:btih:{_HASH}&dn=n"
        )


class TestEncodeUriComponent:
    def test_matches_javascript_unreserved_set(self) -> None:
        assert encode_uri_component("a-_.!~*'()b") == "a-_.!~*'()b"
        assert encode_uri_component("a b/c?d&e") == "a%20b%2Fc%3Fd%26e"


class TestResolveMagnet:
    def test_magnet_uri_wins(self) -> None:
        src = StreamSource(
            title="t", addon_name="a", magnet_uri="magnet:?explicit", info_hash=_HASH
        )
        assert resolve_magnet(src, "name") == "magnet:?explicit"

    def test_hash_synthesized_with_name(self) -> None:
        src = StreamSource(title="t", addon_name="a", info_hash=_HASH)
        assert resolve_magnet(src, "Movie", ()) == (
            f"magnet:?xt=urn:btih:{_HASH}&dn=Movie"
        )

    def test_hash_falls_back_to_source_title(self) -> None:
        src = StreamSource(title="Release", addon_name="a", info_hash=_HASH)
        assert "&dn=Release" in resolve_magnet(src, "", ())

    def test_magnet_url(self) -> None:
        src = StreamSource(title="t", addon_name="a", url="magnet:?xt=urn:btih:z")
        assert resolve_magnet(src, "n") == "magnet:?xt=urn:btih:z"

    def test_no_locator_raises(self) -> None:
        src = StreamSource(title="t", addon_name="a", url="https://cdn/x.mp4")
        with pytest.raises(SourceSelectionError):
            resolve_magnet(src, "n")
