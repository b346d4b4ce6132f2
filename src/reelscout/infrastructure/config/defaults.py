"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

from reelscout.infrastructure.streams.magnet import DEFAULT_TRACKERS

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "reelscout",
    "environment": "dev",
    "http": {
        "timeout_seconds": 30.0,
        "user_agent": "reelscout/0.1.0",
        "subtitle_max_bytes": 2097152,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
    "cache": {
        "dir": "./.cache/reelscout",
        "backend": "diskcache",
        "ttl_seconds": 3600,
    },
    "addons": {
        "default_owner": "local",
        "defaults": [],
        "fetch_timeout_seconds": 15.0,
    },
    "playback": {
        "trackers": list(DEFAULT_TRACKERS),
        "fallback_enabled": True,
        "searching_hint_seconds": 8.0,
        "auto_fallback_seconds": None,
        "embed_base_url": "https://webtor.io/embed",
        "session_idle_ttl_seconds": 1800.0,
        "max_sessions": 100,
        "session_sweep_interval_seconds": 60.0,
    },
    "legacy": {
        "policy": "when_empty",
        "base_url": "https://yts.mx/api/v2",
    },
}
