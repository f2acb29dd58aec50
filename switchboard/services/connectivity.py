from __future__ import annotations

import logging
from typing import Callable

from switchboard.state import Connectivity, SystemStatus

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[SystemStatus], None]

# Default header label per connectivity value
_LABELS = {
    Connectivity.ONLINE: "ONLINE",
    Connectivity.OFFLINE: "OFFLINE",
    Connectivity.ERROR: "ERROR",
}


class ConnectivityTracker:
    """Holds the process-wide connectivity value and notifies on change."""

    def __init__(self) -> None:
        self.status = SystemStatus()
        self._listeners: list[ConnectivityListener] = []

    @property
    def value(self) -> Connectivity:
        return self.status.connectivity

    def set(self, connectivity: Connectivity, label: str | None = None) -> None:
        label = label or _LABELS[connectivity]
        if self.status.connectivity == connectivity and self.status.label == label:
            return
        logger.debug("Connectivity %s -> %s (%s)", self.status.label, label, connectivity.value)
        self.status.connectivity = connectivity
        self.status.label = label
        self.status.is_error = connectivity is not Connectivity.ONLINE
        for listener in list(self._listeners):
            try:
                listener(self.status)
            except Exception:
                logger.exception("Connectivity listener failed")

    def subscribe(self, listener: ConnectivityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
