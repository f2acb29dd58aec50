from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TypedDict

from nicegui import binding

from switchboard.constants import INITIAL_STATUS_TEXT


class Lifecycle(str, Enum):
    UNKNOWN = "unknown"
    RUNNING = "running"
    STOPPED = "stopped"


class Connectivity(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"


# Backend container states that count as "stopped"
_STOPPED_STATES = frozenset({"exited", "stopped"})


def classify_state(state: str | None) -> Lifecycle:
    """Map a raw backend container state onto a Lifecycle."""
    if state == "running":
        return Lifecycle.RUNNING
    if state in _STOPPED_STATES:
        return Lifecycle.STOPPED
    return Lifecycle.UNKNOWN


@dataclass(frozen=True)
class ServiceDescriptor:
    name: str
    display_name: str


@dataclass
class ServiceState:
    name: str
    display_name: str
    lifecycle: Lifecycle = Lifecycle.UNKNOWN
    status_text: str = INITIAL_STATUS_TEXT
    toggle_in_flight: bool = False
    pending_lifecycle: Lifecycle | None = None  # optimistic value while in flight

    @property
    def is_on(self) -> bool:
        return self.lifecycle is Lifecycle.RUNNING


class StatusEntry(TypedDict):
    """One row of a status poll as returned by the StatusSource."""

    name: str
    status: str  # free-form, e.g. "Up 3 minutes"
    state: str  # raw backend state, e.g. "running" | "exited"


# Exactly one of "up"/"down" is present
TogglePayload = dict[str, str]


# Shared connectivity state for UI bindings (header status label)
@binding.bindable_dataclass
class SystemStatus:
    connectivity: Connectivity = Connectivity.ONLINE
    label: str = "ONLINE"
    is_error: bool = False
