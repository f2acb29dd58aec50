from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Iterable

from switchboard.errors import ConfigError, UnknownServiceError
from switchboard.state import Lifecycle, ServiceDescriptor, ServiceState

logger = logging.getLogger(__name__)

StateListener = Callable[[ServiceState], None]


class ServiceStateStore:
    """
    In-memory table of per-service state, keyed by service name.

    - Entries are created once by initialize() and never added or removed afterwards.
    - Every mutation notifies subscribers with a snapshot of the affected service.
    - begin_toggle() is the only mutual-exclusion primitive for toggles.
    """

    def __init__(self) -> None:
        self._states: dict[str, ServiceState] = {}
        self._listeners: list[StateListener] = []
        self._initialized = False

    # ---- lifecycle ----

    def initialize(self, descriptors: Iterable[ServiceDescriptor]) -> None:
        if self._initialized:
            raise RuntimeError("ServiceStateStore is already initialized")
        states: dict[str, ServiceState] = {}
        for d in descriptors:
            if not d.name:
                raise ConfigError("Service descriptor without a name")
            if d.name in states:
                raise ConfigError(f"Duplicate service name: {d.name!r}")
            states[d.name] = ServiceState(name=d.name, display_name=d.display_name)
        self._states = states
        self._initialized = True
        for name in self._states:
            self._emit(name)

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ---- queries ----

    def get(self, name: str) -> ServiceState | None:
        state = self._states.get(name)
        return dataclasses.replace(state) if state is not None else None

    def snapshot(self) -> list[ServiceState]:
        return [dataclasses.replace(s) for s in self._states.values()]

    def names(self) -> list[str]:
        return list(self._states)

    def __contains__(self, name: object) -> bool:
        return name in self._states

    def __len__(self) -> int:
        return len(self._states)

    # ---- mutations ----

    def apply_poll(self, name: str, lifecycle: Lifecycle, status_text: str) -> None:
        state = self._states.get(name)
        if state is None:
            # The backend may report services this panel does not track
            logger.debug("Ignoring poll result for untracked service %r", name)
            return
        state.lifecycle = lifecycle
        state.status_text = status_text
        self._emit(name)

    def begin_toggle(self, name: str) -> bool:
        state = self._require(name)
        if state.toggle_in_flight:
            return False
        state.toggle_in_flight = True
        self._emit(name)
        return True

    def commit_optimistic(self, name: str, lifecycle: Lifecycle) -> None:
        """Flip lifecycle ahead of backend confirmation (toggle in flight)."""
        state = self._require(name)
        state.pending_lifecycle = lifecycle
        state.lifecycle = lifecycle
        self._emit(name)

    def end_toggle(self, name: str, resulting_lifecycle: Lifecycle) -> None:
        state = self._require(name)
        state.toggle_in_flight = False
        state.pending_lifecycle = None
        state.lifecycle = resulting_lifecycle
        self._emit(name)

    # ---- notifications ----

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _require(self, name: str) -> ServiceState:
        try:
            return self._states[name]
        except KeyError:
            raise UnknownServiceError(name) from None

    def _emit(self, name: str) -> None:
        if not self._listeners:
            return
        snap = dataclasses.replace(self._states[name])
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("State listener failed for service %r", name)
