"""Magnet URI synthesis from bare info-hashes.

Pure functions: no I/O, deterministic for a given tracker list.
"""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import quote

from reelscout.domain.entities.playback import SourceSelectionError
from reelscout.domain.entities.streams import StreamSource

# WebSocket trackers: the only kind an in-browser peer-to-peer client
# can announce to. Order is part of the magnet string.
DEFAULT_TRACKERS: tuple[str, ...] = (
    "wss://tracker.openwebtorrent.com",
    "wss://tracker.btorrent.xyz",
    "wss://tracker.fastcast.nz",
    "wss://tracker.webtorrent.dev",
)

# Same unreserved set as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def generate_magnet_from_hash(
    info_hash: str,
    name: str,
    trackers: Sequence[str] = DEFAULT_TRACKERS,
) -> str:
    """Build ``magnet:?xt=urn:btih:<hash>&dn=<name>(&tr=<tracker>)*``."""
    tracker_params = "".join(f"&tr={encode_uri_component(t)}" for t in trackers)
    return (
        f"magnet:?xt=urn:btih:{info_hash}"
        f"&dn={encode_uri_component(name)}{tracker_params}"
    )


def resolve_magnet(
    source: StreamSource,
    name: str,
    trackers: Sequence[str] = DEFAULT_TRACKERS,
) -> str:
    """Derive the magnet link to play for *source*.

    Priority: explicit magnetUri > synthesized from infoHash > magnet url.

    Raises:
        SourceSelectionError: when no locator can be derived.
    """
    if source.magnet_uri:
        return source.magnet_uri
    if source.info_hash:
        return generate_magnet_from_hash(
            source.info_hash, name or source.title, trackers
        )
    if source.url and source.url.startswith("magnet:"):
        return source.url
    raise SourceSelectionError(
        f"source {source.title!r} from {source.addon_name!r} has no magnet locator"
    )
