"""Tests for the cloud-embedded fallback player."""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

from reelscout.domain.entities.playback import PlaybackTarget
from reelscout.domain.entities.streams import SubtitleSource
from reelscout.infrastructure.playback.webtor import (
    WebtorFallbackPlayer,
    build_embed_url,
)

_MAGNET = "magnet:?xt=urn:btih:abc&dn=The%20Matrix"


def _target(*subs: SubtitleSource) -> PlaybackTarget:
    return PlaybackTarget(magnet=_MAGNET, title="The Matrix", subtitles=subs)


class TestBuildEmbedUrl:
    def test_magnet_in_path_and_query(self) -> None:
        url = build_embed_url(_target(), base_url="https://embed.test/embed/")
        parts = urlsplit(url)
        assert url.startswith("https://embed.test/embed/magnet%3A%3Fxt%3D")
        params = parse_qs(parts.query)
        assert params["magnet"] == [_MAGNET]
        assert params["title"] == ["The Matrix"]
        assert params["poster-mode"] == ["false"]

    def test_subtitle_tracks_are_numbered(self) -> None:
        subs = (
            SubtitleSource(lang="en", url="https://s/en.vtt", addon_name="a", label="English"),
            SubtitleSource(lang="de", url="https://s/de.vtt", addon_name="a"),
        )
        params = parse_qs(urlsplit(build_embed_url(_target(*subs))).query)
        assert params["subtitle-0"] == ["https://s/en.vtt"]
        assert params["subtitle-0-label"] == ["English"]
        assert params["subtitle-0-lang"] == ["en"]
        assert params["subtitle-1-label"] == ["DE"]
        assert "subtitle-2" not in params


class TestWebtorFallbackPlayer:
    def test_embed_carries_same_target(self, subtitle_en: SubtitleSource) -> None:
        target = _target(subtitle_en)
        embed = WebtorFallbackPlayer(base_url="https://embed.test").embed(target)
        assert embed.magnet == _MAGNET
        assert embed.title == "The Matrix"
        assert embed.subtitles == (subtitle_en,)
        assert embed.url.startswith("https://embed.test/")
