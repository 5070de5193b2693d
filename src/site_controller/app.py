from __future__ import annotations

import logging

from site_controller.iis import pool_inventory, site_inventory
from site_controller.models import SiteGroup
from site_controller.orchestrator import SiteOrchestrator
from site_controller.runner import CommandRunner
from site_controller.services import ScServiceInventory
from site_controller.warm import DEFAULT_GRACE_SECONDS, Warmer

log = logging.getLogger(__name__)


COMMANDS = ("status", "up", "down", "allup", "alldown")


class SiteControllerApp:
    def __init__(
        self,
        groups: list[SiteGroup],
        runner: CommandRunner,
        appcmd: str | None = None,
        warm_wait: float = DEFAULT_GRACE_SECONDS,
        orchestrator: SiteOrchestrator | None = None,
    ):
        self.groups = groups
        self.runner = runner
        self.warm_wait = warm_wait
        self.orchestrator = orchestrator or SiteOrchestrator(
            pools=pool_inventory(runner, appcmd),
            sites=site_inventory(runner, appcmd),
            services=ScServiceInventory(runner),
            warmer=Warmer(),
        )

    async def run(self, command: str, site: str | None = None) -> int:
        """Run one command and return the process exit code."""
        try:
            return await self._dispatch(command, site)
        finally:
            await self.orchestrator.warmer.drain(self.warm_wait)
            await self.runner.close()

    async def _dispatch(self, command: str, site: str | None) -> int:
        orchestrator = self.orchestrator
        if command == "status":
            await orchestrator.status(self.groups)
            return 0
        if command in ("up", "down"):
            if not site:
                raise ValueError(f"'{command}' needs a site name")
            report = await orchestrator.transition(self.groups, site, up=command == "up")
            return 0 if report.found else 1
        if command in ("allup", "alldown"):
            await orchestrator.transition_all(self.groups, up=command == "allup")
            return 0
        raise ValueError(f"Unknown command: {command}")
