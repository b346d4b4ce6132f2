"""Add-on registry management endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import Response
from pydantic import BaseModel, Field, field_validator

from reelscout.domain.entities.streams import AddonEndpoint
from reelscout.infrastructure.addons.client import normalize_addon_url
from reelscout.interfaces.api.deps import app_state, user_context

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/addons", tags=["addons"])


class AddonCreate(BaseModel):
    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("add-on url must start with http:// or https://")
        return normalize_addon_url(v)


class AddonUpdate(BaseModel):
    enabled: bool


def _addon_to_dict(addon: AddonEndpoint) -> dict[str, str | bool]:
    return {
        "id": addon.addon_id,
        "name": addon.name,
        "url": addon.base_url,
        "enabled": addon.enabled,
    }


@router.get("")
async def list_addons(request: Request) -> dict[str, list[dict]]:
    ctx = user_context(request)
    addons = await app_state(request).addon_registry.list_all(ctx.owner)
    return {"addons": [_addon_to_dict(a) for a in addons]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_addon(request: Request, body: AddonCreate) -> dict[str, str | bool]:
    ctx = user_context(request)
    addon = await app_state(request).addon_registry.add(ctx.owner, body.name, body.url)
    return _addon_to_dict(addon)


@router.patch("/{addon_id}")
async def update_addon(
    request: Request, addon_id: str, body: AddonUpdate
) -> dict[str, str | bool]:
    ctx = user_context(request)
    addon = await app_state(request).addon_registry.set_enabled(
        ctx.owner, addon_id, body.enabled
    )
    if addon is None:
        log.warning("addon_not_found", owner=ctx.owner, addon_id=addon_id)
        raise HTTPException(status_code=404, detail=f"Add-on not found: {addon_id}")
    return _addon_to_dict(addon)


@router.delete("/{addon_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_addon(request: Request, addon_id: str) -> Response:
    ctx = user_context(request)
    removed = await app_state(request).addon_registry.remove(ctx.owner, addon_id)
    if not removed:
        log.warning("addon_not_found", owner=ctx.owner, addon_id=addon_id)
        raise HTTPException(status_code=404, detail=f"Add-on not found: {addon_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
