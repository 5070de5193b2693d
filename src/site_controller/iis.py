from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET

from site_controller.inventory import InventoryError, TransitionRejected
from site_controller.models import ObjectState
from site_controller.runner import CommandRunner

log = logging.getLogger(__name__)


DEFAULT_APPCMD = r"%windir%\system32\inetsrv\appcmd.exe"

APPPOOL = "apppool"
SITE = "site"


def default_appcmd() -> str:
    return os.environ.get("SITE_CONTROLLER_APPCMD") or DEFAULT_APPCMD


def parse_state(value: str | None) -> ObjectState:
    for state in ObjectState:
        if value and state.value.lower() == value.lower():
            return state
    return ObjectState.UNKNOWN


def parse_appcmd_list(xml_text: str, object_type: str) -> dict[str, ObjectState]:
    """Parse `appcmd list <type> /xml` output into {name: state}, in listing order.

    appcmd emits one element per object, e.g.
    <APPPOOL APPPOOL.NAME="DefaultAppPool" state="Started" />
    """
    tag = object_type.upper()
    try:
        root = ET.fromstring(xml_text.strip())
    except ET.ParseError as exc:
        raise InventoryError(f"Unreadable appcmd output for {object_type}: {exc}") from exc
    objects = {}
    for element in root.iter(tag):
        name = element.get(f"{tag}.NAME")
        if name is None:
            continue
        objects[name] = parse_state(element.get("state"))
    return objects


class AppcmdObject:
    """An app pool or website as seen by one appcmd listing."""

    def __init__(self, inventory: AppcmdInventory, name: str, state: ObjectState):
        self._inventory = inventory
        self.name = name
        self.state = state

    async def start(self) -> None:
        await self._inventory.transition("start", self.name)

    async def stop(self) -> None:
        await self._inventory.transition("stop", self.name)

    def __repr__(self) -> str:
        return f"<{self._inventory.object_type} {self.name!r} {self.state}>"


class AppcmdInventory:
    """Pool or website inventory backed by IIS's appcmd tool."""

    def __init__(self, runner: CommandRunner, object_type: str, appcmd: str | None = None):
        if object_type not in (APPPOOL, SITE):
            raise ValueError(f"Unsupported appcmd object type: {object_type}")
        self.runner = runner
        self.object_type = object_type
        self.appcmd = appcmd or default_appcmd()

    async def list_objects(self) -> dict[str, ObjectState]:
        result = await self.runner.run([self.appcmd, "list", self.object_type, "/xml"])
        if not result.ok:
            raise InventoryError(
                f"appcmd list {self.object_type} failed (exit {result.exit_status}): {result.output}"
            )
        return parse_appcmd_list(result.stdout, self.object_type)

    async def lookup(self, name: str) -> AppcmdObject | None:
        objects = await self.list_objects()
        if name not in objects:
            log.debug("No %s named %r among %d listed", self.object_type, name, len(objects))
            return None
        return AppcmdObject(self, name, objects[name])

    async def transition(self, action: str, name: str) -> None:
        result = await self.runner.run(
            [self.appcmd, action, self.object_type, f"/{self.object_type}.name:{name}"]
        )
        if not result.ok:
            raise TransitionRejected(result.output or f"appcmd exited with {result.exit_status}")


def pool_inventory(runner: CommandRunner, appcmd: str | None = None) -> AppcmdInventory:
    return AppcmdInventory(runner, APPPOOL, appcmd)


def site_inventory(runner: CommandRunner, appcmd: str | None = None) -> AppcmdInventory:
    return AppcmdInventory(runner, SITE, appcmd)
