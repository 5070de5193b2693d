from __future__ import annotations

import logging

from site_controller.inventory import (
    Inventories,
    PoolInventory,
    ServiceInventory,
    SiteInventory,
    TransitionRejected,
)
from site_controller.models import (
    DOWN_STATES,
    UP_STATES,
    GroupReport,
    Outcome,
    SiteGroup,
    UnitKind,
    UnitResult,
    UnitStatus,
)
from site_controller.runner import RunnerError
from site_controller.warm import Warmer

log = logging.getLogger(__name__)


_HINTS = {
    # (kind, up) -> why the platform usually refuses
    (UnitKind.APP_POOL, True): "Was this AppPool recently stopped?",
    (UnitKind.APP_POOL, False): "Was this AppPool recently started?",
    (UnitKind.WEBSITE, True): "Was this Website recently stopped?",
    (UnitKind.WEBSITE, False): "Was this Website recently started?",
    (UnitKind.SERVICE, True): "Was this service started already in this run?",
    (UnitKind.SERVICE, False): "Was this service stopped already in this run?",
}


def find_group(groups: list[SiteGroup], name: str) -> SiteGroup | None:
    """Exact, case-sensitive match on the group name."""
    for group in groups:
        if group.name == name:
            return group
    return None


class SiteOrchestrator:
    """Starts and stops site groups: pools, then websites, then services."""

    def __init__(
        self,
        pools: PoolInventory,
        sites: SiteInventory,
        services: ServiceInventory,
        warmer: Warmer | None = None,
    ):
        self.inventories = Inventories(pools=pools, sites=sites, services=services)
        self.warmer = warmer or Warmer()

    async def status(self, groups: list[SiteGroup]) -> list[UnitStatus]:
        statuses = []
        for group in groups:
            for kind, name in group.members():
                handle = await self.inventories.for_kind(kind).lookup(name)
                if handle is None:
                    log.warning("%s '%s': NOTFOUND", kind, name)
                    statuses.append(UnitStatus(kind, name))
                else:
                    log.info("%s '%s': %s", kind, handle.name, handle.state)
                    statuses.append(UnitStatus(kind, name, handle.name, handle.state))
        return statuses

    async def transition(self, groups: list[SiteGroup], name: str, up: bool) -> GroupReport:
        group = find_group(groups, name)
        if group is None:
            log.warning("Could not find configured site name '%s'.", name)
            return GroupReport(name=name, up=up, found=False)
        return await self._process(group, up)

    async def transition_all(self, groups: list[SiteGroup], up: bool) -> list[GroupReport]:
        reports = []
        for i, group in enumerate(groups):
            if i:
                # visual break between groups
                log.info("")
            reports.append(await self._process(group, up))
        return reports

    def warm(self, group: SiteGroup) -> list[str]:
        warmed = []
        for url in group.warm:
            if not url or not url.strip():
                continue
            self.warmer.dispatch(url)
            log.info("Warming url '%s'", url)
            warmed.append(url)
        return warmed

    async def _process(self, group: SiteGroup, up: bool) -> GroupReport:
        report = GroupReport(name=group.name, up=up)
        for kind, name in group.members():
            report.units.append(await self._transition_unit(kind, name, up))
        if up:
            report.warmed = self.warm(group)
        return report

    async def _transition_unit(self, kind: UnitKind, name: str, up: bool) -> UnitResult:
        handle = await self.inventories.for_kind(kind).lookup(name)
        if handle is None:
            log.warning("%s '%s': NOTFOUND, skipping", kind, name)
            return UnitResult(kind, name, Outcome.NOT_FOUND)

        state = handle.state
        desired = UP_STATES[kind] if up else DOWN_STATES[kind]
        if state in desired:
            log.info("%s '%s' is already %s.", kind, handle.name, state)
            return UnitResult(kind, name, Outcome.UNCHANGED, state)

        try:
            if up:
                await handle.start()
            else:
                await handle.stop()
        except (TransitionRejected, RunnerError) as exc:
            log.warning(
                "Cannot %s %s '%s': Reason: '%s'.\n\t--> %s",
                "start" if up else "stop", kind, handle.name, exc, _HINTS[kind, up],
            )
            return UnitResult(kind, name, Outcome.REJECTED, state, str(exc))

        log.info("%s %s '%s'.", "Starting" if up else "Stopping", kind, handle.name)
        return UnitResult(kind, name, Outcome.CHANGED, state)
