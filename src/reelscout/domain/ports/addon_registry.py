"""Port for the persisted add-on registry."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from reelscout.domain.entities.streams import AddonEndpoint


@runtime_checkable
class AddonRegistryPort(Protocol):
    """Async interface for reading and managing a user's add-ons."""

    async def list_enabled(self, owner: str) -> list[AddonEndpoint]:
        """Enabled add-ons for *owner*, in insertion order."""
        ...

    async def list_all(self, owner: str) -> list[AddonEndpoint]: ...

    async def add(self, owner: str, name: str, url: str) -> AddonEndpoint: ...

    async def set_enabled(
        self, owner: str, addon_id: str, enabled: bool
    ) -> AddonEndpoint | None:
        """Toggle an add-on. None if *addon_id* is unknown."""
        ...

    async def remove(self, owner: str, addon_id: str) -> bool: ...
