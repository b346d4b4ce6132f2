"""Request-scoped helpers shared by the routers."""

from __future__ import annotations

from typing import cast

from fastapi import Request

from reelscout.domain.entities.streams import UserContext
from reelscout.interfaces.app_state import AppState

USER_HEADER = "X-Reelscout-User"


def app_state(request: Request) -> AppState:
    return cast(AppState, request.app.state)


def user_context(request: Request) -> UserContext:
    """Owner from the user header, else the configured default owner."""
    owner = (request.headers.get(USER_HEADER) or "").strip()
    if not owner:
        owner = app_state(request).config.addons.default_owner
    return UserContext(owner=owner)
