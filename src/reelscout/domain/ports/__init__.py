from .addon_client import AddonClientPort
from .addon_registry import AddonRegistryPort
from .cache import CachePort
from .legacy_index import LegacyIndexPort
from .playback import FallbackPlayerPort, PlaybackEnginePort, PlaybackHandle

__all__ = [
    "AddonClientPort",
    "AddonRegistryPort",
    "CachePort",
    "FallbackPlayerPort",
    "LegacyIndexPort",
    "PlaybackEnginePort",
    "PlaybackHandle",
]
