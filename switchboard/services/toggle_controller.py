from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from switchboard.constants import CONFIRM_POLL_DELAY_S, ERROR_RESET_DELAY_S
from switchboard.errors import UnknownServiceError
from switchboard.state import Connectivity, Lifecycle

if TYPE_CHECKING:
    from switchboard.services.connectivity import ConnectivityTracker
    from switchboard.services.contracts import ToggleRequester
    from switchboard.services.scheduler import TaskScheduler
    from switchboard.services.state_store import ServiceStateStore
    from switchboard.services.status_poller import StatusPoller
    from switchboard.state import TogglePayload

logger = logging.getLogger(__name__)

TOGGLE_ERROR_LABEL = "TOGGLE ERROR"


class ToggleController:
    """
    Turns a service on or off with an optimistic store update.

    The opposite lifecycle is committed before the command is sent. On success a
    confirmatory poll is scheduled; on failure the pre-toggle lifecycle is restored
    and connectivity shows a transient error. The in-flight flag is released on
    every exit path.
    """

    def __init__(
        self,
        store: ServiceStateStore,
        requester: ToggleRequester,
        poller: StatusPoller,
        connectivity: ConnectivityTracker,
        scheduler: TaskScheduler,
        confirm_delay_s: float = CONFIRM_POLL_DELAY_S,
        error_reset_delay_s: float = ERROR_RESET_DELAY_S,
    ) -> None:
        self._store = store
        self._requester = requester
        self._poller = poller
        self._connectivity = connectivity
        self._scheduler = scheduler
        self.confirm_delay_s = confirm_delay_s
        self.error_reset_delay_s = error_reset_delay_s

    async def toggle(self, name: str) -> bool:
        """
        Toggle one service.

        Returns:
            True if a command was issued (whatever its outcome), False if the call
            was coalesced because a toggle for the same service is still in flight.

        Raises:
            UnknownServiceError: the service is not tracked (nothing is mutated).
        """
        state = self._store.get(name)
        if state is None:
            raise UnknownServiceError(name)

        if not self._store.begin_toggle(name):
            logger.debug("Toggle for %s already in flight; ignoring", name)
            return False

        was_running = state.lifecycle is Lifecycle.RUNNING
        optimistic = Lifecycle.STOPPED if was_running else Lifecycle.RUNNING
        payload: TogglePayload = {("down" if was_running else "up"): name}
        # Rollback target unless the command succeeds
        resulting = Lifecycle.RUNNING if was_running else Lifecycle.STOPPED

        self._store.commit_optimistic(name, optimistic)
        try:
            await self._requester.send_toggle(payload)
        except Exception as e:
            logger.error("Failed to toggle service %s: %s", name, e)
            self._connectivity.set(Connectivity.ERROR, TOGGLE_ERROR_LABEL)
            self._scheduler.call_later(
                self.error_reset_delay_s, self._connectivity.set, Connectivity.ONLINE
            )
        else:
            resulting = optimistic
            logger.info("Sent %s", payload)
            self._scheduler.call_later(self.confirm_delay_s, self._poller.poll_once)
        finally:
            self._store.end_toggle(name, resulting)
        return True
