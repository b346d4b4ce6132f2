"""Add-on registry backed by CachePort (diskcache/redis)."""

from __future__ import annotations

import asyncio
import json
from dataclasses import replace
from uuid import uuid4

import structlog

from reelscout.domain.entities.streams import AddonEndpoint
from reelscout.domain.ports.cache import CachePort

log = structlog.get_logger(__name__)

# Registry rows never expire.
_NO_EXPIRY = 0


def _key(owner: str) -> str:
    return f"addons:{owner}"


def _serialize_rows(rows: list[AddonEndpoint]) -> str:
    return json.dumps(
        [
            {
                "id": r.addon_id,
                "name": r.name,
                "url": r.base_url,
                "enabled": r.enabled,
                "owner": r.owner,
            }
            for r in rows
        ]
    )


def _deserialize_rows(data: str) -> list[AddonEndpoint]:
    return [
        AddonEndpoint(
            addon_id=d["id"],
            name=d["name"],
            base_url=d["url"],
            enabled=bool(d.get("enabled", True)),
            owner=d.get("owner", ""),
        )
        for d in json.loads(data)
    ]


class CacheAddonRegistry:
    """Stores each owner's add-on rows as one JSON document.

    Implements ``AddonRegistryPort``. Read errors on a corrupt document are
    logged and treated as an empty registry. Writes for one owner are
    serialized so concurrent load-modify-save cycles never drop rows.
    """

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, owner: str) -> asyncio.Lock:
        lock = self._locks.get(owner)
        if lock is None:
            lock = self._locks[owner] = asyncio.Lock()
        return lock

    async def _load(self, owner: str) -> list[AddonEndpoint]:
        data = await self.cache.get(_key(owner))
        if data is None:
            return []
        try:
            return _deserialize_rows(data)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            log.error("addon_registry_deserialize_error", owner=owner, error=str(e))
            return []

    async def _save(self, owner: str, rows: list[AddonEndpoint]) -> None:
        await self.cache.set(_key(owner), _serialize_rows(rows), ttl=_NO_EXPIRY)

    async def list_all(self, owner: str) -> list[AddonEndpoint]:
        return await self._load(owner)

    async def list_enabled(self, owner: str) -> list[AddonEndpoint]:
        return [r for r in await self._load(owner) if r.enabled]

    async def add(self, owner: str, name: str, url: str) -> AddonEndpoint:
        row = AddonEndpoint(
            addon_id=uuid4().hex,
            name=name.strip(),
            base_url=url.strip(),
            enabled=True,
            owner=owner,
        )
        async with self._lock(owner):
            rows = await self._load(owner)
            rows.append(row)
            await self._save(owner, rows)
        log.info("addon_added", owner=owner, addon=row.name, addon_id=row.addon_id)
        return row

    async def set_enabled(
        self, owner: str, addon_id: str, enabled: bool
    ) -> AddonEndpoint | None:
        async with self._lock(owner):
            rows = await self._load(owner)
            for i, row in enumerate(rows):
                if row.addon_id == addon_id:
                    rows[i] = replace(row, enabled=enabled)
                    await self._save(owner, rows)
                    log.info(
                        "addon_toggled",
                        owner=owner,
                        addon_id=addon_id,
                        enabled=enabled,
                    )
                    return rows[i]
        return None

    async def remove(self, owner: str, addon_id: str) -> bool:
        async with self._lock(owner):
            rows = await self._load(owner)
            kept = [r for r in rows if r.addon_id != addon_id]
            if len(kept) == len(rows):
                return False
            await self._save(owner, kept)
        log.info("addon_removed", owner=owner, addon_id=addon_id)
        return True

    async def seed(self, owner: str, defaults: list[tuple[str, str]]) -> int:
        """Insert *defaults* for an owner that has no rows yet.

        Returns the number of rows inserted.
        """
        if not defaults:
            return 0
        async with self._lock(owner):
            if await self._load(owner):
                return 0
            rows = [
                AddonEndpoint(
                    addon_id=uuid4().hex,
                    name=name,
                    base_url=url,
                    enabled=True,
                    owner=owner,
                )
                for name, url in defaults
            ]
            await self._save(owner, rows)
        log.info("addon_registry_seeded", owner=owner, count=len(rows))
        return len(rows)
