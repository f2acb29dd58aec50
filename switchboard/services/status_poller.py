from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from switchboard.common.logging_config import TRACE
from switchboard.constants import DEFAULT_POLL_INTERVAL_S
from switchboard.state import Connectivity, classify_state

if TYPE_CHECKING:
    from switchboard.services.connectivity import ConnectivityTracker
    from switchboard.services.contracts import StatusSource
    from switchboard.services.state_store import ServiceStateStore

logger = logging.getLogger(__name__)


class StatusPoller:
    """
    Periodically refreshes every tracked service from a StatusSource.

    Each tick spawns its own poll task, so stop() only cancels the schedule:
    a request already on the wire still lands and is applied.
    """

    def __init__(
        self,
        store: ServiceStateStore,
        source: StatusSource,
        connectivity: ConnectivityTracker,
    ) -> None:
        self._store = store
        self._source = source
        self._connectivity = connectivity
        self._loop_task: asyncio.Task | None = None
        self._polls: set[asyncio.Task] = set()
        self._interval_s = DEFAULT_POLL_INTERVAL_S

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def interval_s(self) -> float:
        return self._interval_s

    def start(self, interval_s: float | None = None) -> None:
        """Poll now, then every interval_s seconds. Restarts if already running."""
        self.stop()
        if not interval_s or interval_s <= 0:
            interval_s = DEFAULT_POLL_INTERVAL_S
        self._interval_s = float(interval_s)
        self._spawn_poll()
        self._loop_task = asyncio.create_task(self._run(self._interval_s))
        logger.info("Status polling started (every %.1fs)", self._interval_s)

    def stop(self) -> None:
        if self._loop_task is None:
            return
        self._loop_task.cancel()
        self._loop_task = None
        logger.info("Status polling stopped")

    async def wait_idle(self) -> None:
        """Wait for polls already issued to finish."""
        if self._polls:
            await asyncio.gather(*list(self._polls), return_exceptions=True)

    def _spawn_poll(self) -> None:
        task = asyncio.create_task(self.poll_once())
        self._polls.add(task)
        task.add_done_callback(self._polls.discard)

    async def _run(self, interval_s: float) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        with contextlib.suppress(asyncio.CancelledError):
            while True:
                # sleep until next_tick (avoid drift)
                next_tick += interval_s
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
                self._spawn_poll()

    async def poll_once(self) -> bool:
        """Fetch and apply status for all services. Returns False on failure."""
        try:
            entries = await self._source.fetch_status()
            updates = [
                (str(e["name"]), classify_state(e.get("state")), str(e.get("status", "")))
                for e in entries
            ]
        except Exception as e:
            logger.warning("Status poll failed: %s", e)
            self._connectivity.set(Connectivity.OFFLINE)
            return False

        for name, lifecycle, status_text in updates:
            self._store.apply_poll(name, lifecycle, status_text)
        self._connectivity.set(Connectivity.ONLINE)
        logger.log(TRACE, "Applied %d status entries", len(updates))
        return True
