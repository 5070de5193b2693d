from __future__ import annotations

import logging
import re

from site_controller.inventory import InventoryError, TransitionRejected
from site_controller.models import ServiceState
from site_controller.runner import CommandRunner

log = logging.getLogger(__name__)


SC = "sc.exe"

_SC_STATES = {
    "STOPPED": ServiceState.STOPPED,
    "START_PENDING": ServiceState.START_PENDING,
    "STOP_PENDING": ServiceState.STOP_PENDING,
    "RUNNING": ServiceState.RUNNING,
    "CONTINUE_PENDING": ServiceState.CONTINUE_PENDING,
    "PAUSE_PENDING": ServiceState.PAUSE_PENDING,
    "PAUSED": ServiceState.PAUSED,
}

_NAME_RE = re.compile(r"^\s*SERVICE_NAME\s*:\s*(?P<name>.+?)\s*$")
# e.g. "        STATE              : 4  RUNNING"
_STATE_RE = re.compile(r"^\s*STATE\s*:\s*\d+\s+(?P<state>[A-Z_]+)")


def parse_sc_query(output: str) -> dict[str, ServiceState]:
    """Parse `sc query` output into {service name: state}, in listing order."""
    services: dict[str, ServiceState] = {}
    current = None
    for line in output.splitlines():
        name_match = _NAME_RE.match(line)
        if name_match:
            current = name_match.group("name")
            continue
        state_match = _STATE_RE.match(line)
        if state_match and current is not None:
            state = _SC_STATES.get(state_match.group("state"))
            if state is None:
                log.debug("Unrecognised state %r for service %s", state_match.group("state"), current)
            else:
                services[current] = state
            current = None
    return services


def find_service(name: str, available: dict[str, ServiceState]) -> str | None:
    """Return the canonical name of the service matching *name*, ignoring case."""
    wanted = name.casefold()
    for candidate in available:
        if candidate.casefold() == wanted:
            return candidate
    return None


class WindowsService:
    def __init__(self, inventory: ScServiceInventory, name: str, state: ServiceState):
        self._inventory = inventory
        self.name = name
        self.state = state

    async def start(self) -> None:
        await self._inventory.transition("start", self.name)

    async def stop(self) -> None:
        await self._inventory.transition("stop", self.name)

    def __repr__(self) -> str:
        return f"<service {self.name!r} {self.state}>"


class ScServiceInventory:
    """Windows service inventory backed by the service control manager's sc tool."""

    def __init__(self, runner: CommandRunner, sc: str = SC):
        self.runner = runner
        self.sc = sc

    async def list_services(self) -> dict[str, ServiceState]:
        result = await self.runner.run([self.sc, "query", "type=", "service", "state=", "all"])
        if not result.ok:
            raise InventoryError(f"sc query failed (exit {result.exit_status}): {result.output}")
        services = parse_sc_query(result.stdout)
        log.debug("Discovered %d services", len(services))
        return services

    async def lookup(self, name: str) -> WindowsService | None:
        services = await self.list_services()
        canonical = find_service(name, services)
        if canonical is None:
            return None
        return WindowsService(self, canonical, services[canonical])

    async def transition(self, action: str, name: str) -> None:
        result = await self.runner.run([self.sc, action, name])
        if not result.ok:
            # e.g. "[SC] StartService FAILED 1056: An instance of the service is already running."
            raise TransitionRejected(result.output or f"sc exited with {result.exit_status}")
