from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from site_controller.models import ObjectState, ServiceState, UnitKind, UnitState


class TransitionRejected(Exception):
    """The platform refused a start or stop, e.g. right after the opposite transition."""


class InventoryError(Exception):
    """The platform inventory could not be listed."""


class UnitHandle(Protocol):
    name: str

    @property
    def state(self) -> UnitState: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...


class PoolHandle(UnitHandle, Protocol):
    @property
    def state(self) -> ObjectState: ...


class SiteHandle(UnitHandle, Protocol):
    @property
    def state(self) -> ObjectState: ...


class ServiceHandle(UnitHandle, Protocol):
    @property
    def state(self) -> ServiceState: ...


class PoolInventory(Protocol):
    async def lookup(self, name: str) -> PoolHandle | None: ...


class SiteInventory(Protocol):
    async def lookup(self, name: str) -> SiteHandle | None: ...


class ServiceInventory(Protocol):
    async def lookup(self, name: str) -> ServiceHandle | None:
        """Find a service by name, ignoring case."""
        ...


@dataclass
class Inventories:
    pools: PoolInventory
    sites: SiteInventory
    services: ServiceInventory

    def for_kind(self, kind: UnitKind):
        return {
            UnitKind.APP_POOL: self.pools,
            UnitKind.WEBSITE: self.sites,
            UnitKind.SERVICE: self.services,
        }[kind]
