"""Cloud-embedded fallback player (webtor.io embed)."""

from __future__ import annotations

from urllib.parse import urlencode

from reelscout.domain.entities.playback import FallbackEmbed, PlaybackTarget
from reelscout.infrastructure.streams.magnet import encode_uri_component

_DEFAULT_EMBED_BASE = "https://webtor.io/embed"


def build_embed_url(
    target: PlaybackTarget,
    *,
    base_url: str = _DEFAULT_EMBED_BASE,
    imdb_id: str = "",
) -> str:
    """Embed URL carrying the magnet, title and every subtitle track.

    Subtitle tracks are numbered ``subtitle-{i}``, ``subtitle-{i}-label``
    and ``subtitle-{i}-lang`` in the order given.
    """
    params: list[tuple[str, str]] = [
        ("magnet", target.magnet),
        ("title", target.title),
        ("poster-mode", "false"),
        ("imdb-id", imdb_id),
    ]
    for idx, sub in enumerate(target.subtitles):
        params.append((f"subtitle-{idx}", sub.url))
        params.append((f"subtitle-{idx}-label", sub.label or sub.lang.upper()))
        params.append((f"subtitle-{idx}-lang", sub.lang))

    return (
        f"{base_url.rstrip('/')}/{encode_uri_component(target.magnet)}"
        f"?{urlencode(params)}"
    )


class WebtorFallbackPlayer:
    """Implements ``FallbackPlayerPort``."""

    def __init__(self, *, base_url: str = _DEFAULT_EMBED_BASE) -> None:
        self._base_url = base_url

    def embed(self, target: PlaybackTarget) -> FallbackEmbed:
        return FallbackEmbed(
            url=build_embed_url(target, base_url=self._base_url),
            magnet=target.magnet,
            title=target.title,
            subtitles=target.subtitles,
        )
