"""Shared fixtures for end-to-end API tests.

The full app is built with create_app() and its real lifespan: diskcache in
tmp_path, real use cases, add-on HTTP traffic intercepted by respx.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest
import respx
from fastapi.testclient import TestClient

from reelscout.infrastructure.config.load import load_config
from reelscout.infrastructure.subtitles import fetch as subtitle_fetch
from reelscout.interfaces.app import create_app

API = "/api/v1"
ADDON_A = "https://addon-a.example"
ADDON_B = "https://addon-b.example"
SUBTITLE_MAX_BYTES = 4096

# Hostnames the fake resolver maps to private addresses.
PRIVATE_HOSTS = {"internal.example": "10.0.0.7", "metadata.example": "169.254.169.254"}


@pytest.fixture()
def respx_mock() -> Iterator[respx.MockRouter]:
    with respx.mock(assert_all_called=False) as router:
        yield router


@pytest.fixture()
def client(
    tmp_path: Path,
    respx_mock: respx.MockRouter,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[TestClient]:
    async def fake_resolve(host: str) -> list[str]:
        return [PRIVATE_HOSTS.get(host, "93.184.216.34")]

    monkeypatch.setattr(subtitle_fetch, "resolve_host", fake_resolve)
    config = load_config(
        cli_overrides={
            "environment": "test",
            "http_subtitle_max_bytes": SUBTITLE_MAX_BYTES,
            "cache_dir": str(tmp_path / "cache"),
            "addons": {
                "default_owner": "local",
                "defaults": [
                    {"name": "Addon A", "url": f"{ADDON_A}/manifest.json"},
                    {"name": "Addon B", "url": ADDON_B},
                ],
            },
            "legacy_policy": "disabled",
            "playback": {"trackers": [], "searching_hint_seconds": 30},
        }
    )
    with TestClient(create_app(config)) as test_client:
        yield test_client


@pytest.fixture()
def wait_for_state(client: TestClient) -> Callable[..., dict[str, Any]]:
    """Poll a playback session until it has left the given state."""

    def _wait(session_id: str, *, leave: str = "searching") -> dict[str, Any]:
        view: dict[str, Any] = {}
        for _ in range(200):
            view = client.get(f"{API}/playback/{session_id}").json()
            if view["state"] != leave:
                return view
            time.sleep(0.01)
        return view

    return _wait
