from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class UnitKind(Enum):
    APP_POOL = "AppPool"
    WEBSITE = "Website"
    SERVICE = "Service"

    def __str__(self) -> str:
        return self.value


class ObjectState(Enum):
    """State of an IIS application pool or website, as reported by IIS."""

    STARTING = "Starting"
    STARTED = "Started"
    STOPPING = "Stopping"
    STOPPED = "Stopped"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class ServiceState(Enum):
    """State of a Windows service, as reported by the service control manager."""

    STOPPED = "Stopped"
    START_PENDING = "StartPending"
    STOP_PENDING = "StopPending"
    RUNNING = "Running"
    CONTINUE_PENDING = "ContinuePending"
    PAUSE_PENDING = "PausePending"
    PAUSED = "Paused"

    def __str__(self) -> str:
        return self.value


UnitState = ObjectState | ServiceState

# Desired states per direction: a unit already in one of these is left alone.
UP_STATES: dict[UnitKind, frozenset] = {
    UnitKind.APP_POOL: frozenset({ObjectState.STARTED, ObjectState.STARTING}),
    UnitKind.WEBSITE: frozenset({ObjectState.STARTED, ObjectState.STARTING}),
    UnitKind.SERVICE: frozenset({ServiceState.RUNNING, ServiceState.START_PENDING}),
}

DOWN_STATES: dict[UnitKind, frozenset] = {
    UnitKind.APP_POOL: frozenset({ObjectState.STOPPING, ObjectState.STOPPED}),
    UnitKind.WEBSITE: frozenset({ObjectState.STOPPING, ObjectState.STOPPED}),
    UnitKind.SERVICE: frozenset({ServiceState.STOPPED, ServiceState.STOP_PENDING}),
}


@dataclass(frozen=True)
class SiteGroup:
    name: str
    app_pools: list[str] = field(default_factory=list)
    websites: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    warm: list[str] = field(default_factory=list)

    def members(self) -> list[tuple[UnitKind, str]]:
        """Members in processing order: pools, then websites, then services."""
        return (
            [(UnitKind.APP_POOL, n) for n in self.app_pools]
            + [(UnitKind.WEBSITE, n) for n in self.websites]
            + [(UnitKind.SERVICE, n) for n in self.services]
        )


class Outcome(Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"


@dataclass
class UnitResult:
    kind: UnitKind
    name: str
    outcome: Outcome
    state: UnitState | None = None
    reason: str = ""


@dataclass
class UnitStatus:
    kind: UnitKind
    name: str
    resolved_name: str | None = None
    state: UnitState | None = None

    @property
    def found(self) -> bool:
        return self.state is not None


@dataclass
class GroupReport:
    name: str
    up: bool
    found: bool = True
    units: list[UnitResult] = field(default_factory=list)
    warmed: list[str] = field(default_factory=list)

    def _with(self, outcome: Outcome) -> list[UnitResult]:
        return [u for u in self.units if u.outcome is outcome]

    @property
    def changed(self) -> list[UnitResult]:
        return self._with(Outcome.CHANGED)

    @property
    def unchanged(self) -> list[UnitResult]:
        return self._with(Outcome.UNCHANGED)

    @property
    def not_found(self) -> list[UnitResult]:
        return self._with(Outcome.NOT_FOUND)

    @property
    def rejected(self) -> list[UnitResult]:
        return self._with(Outcome.REJECTED)
