from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Callable

from switchboard.constants import CONFIRM_POLL_DELAY_S, ERROR_RESET_DELAY_S
from switchboard.errors import ConfigError, UnknownServiceError
from switchboard.services.connectivity import ConnectivityListener, ConnectivityTracker
from switchboard.services.scheduler import TaskScheduler
from switchboard.services.state_store import ServiceStateStore, StateListener
from switchboard.services.status_poller import StatusPoller
from switchboard.services.toggle_controller import ToggleController
from switchboard.state import Connectivity, ServiceState, SystemStatus

if TYPE_CHECKING:
    from switchboard.config import PanelConfig
    from switchboard.services.contracts import ConfigSource, StatusSource, ToggleRequester

logger = logging.getLogger(__name__)


class SyncEngine:
    """
    Composition root for the panel: owns the store, poller, toggle controller
    and every timer they schedule. initialize() and shutdown() are the only
    lifecycle mutators.
    """

    def __init__(
        self,
        status_source: StatusSource,
        toggle_requester: ToggleRequester,
        confirm_delay_s: float = CONFIRM_POLL_DELAY_S,
        error_reset_delay_s: float = ERROR_RESET_DELAY_S,
    ) -> None:
        self.store = ServiceStateStore()
        self.connectivity = ConnectivityTracker()
        self.scheduler = TaskScheduler()
        self.poller = StatusPoller(self.store, status_source, self.connectivity)
        self.toggler = ToggleController(
            self.store,
            toggle_requester,
            self.poller,
            self.connectivity,
            self.scheduler,
            confirm_delay_s=confirm_delay_s,
            error_reset_delay_s=error_reset_delay_s,
        )
        self.config: PanelConfig | None = None
        self._toggles: set[asyncio.Task] = set()

    # ---- lifecycle ----

    async def initialize(self, config_source: ConfigSource) -> PanelConfig:
        if self.store.initialized:
            # Leaves the running engine untouched
            raise RuntimeError("SyncEngine is already initialized")
        try:
            config = await config_source.load_config()
            self.store.initialize(config.services)
        except Exception as e:
            logger.error("Failed to initialize: %s", e)
            self.connectivity.set(Connectivity.ERROR)
            if isinstance(e, ConfigError):
                raise
            raise ConfigError(str(e)) from e

        self.config = config
        self.poller.start(config.poll_interval_seconds)
        self.connectivity.set(Connectivity.ONLINE)
        return config

    async def shutdown(self) -> None:
        self.poller.stop()
        await self.scheduler.cancel_all()
        logger.info("Sync engine shut down")

    # ---- commands ----

    def toggle(self, name: str) -> asyncio.Task:
        """
        Fire-and-forget toggle. Unknown names raise UnknownServiceError right away;
        backend failures surface only through the connectivity stream.
        """
        if name not in self.store:
            raise UnknownServiceError(name)
        task = asyncio.create_task(self.toggler.toggle(name))
        self._toggles.add(task)
        task.add_done_callback(self._toggles.discard)
        return task

    async def refresh(self) -> bool:
        return await self.poller.poll_once()

    # ---- queries / subscriptions ----

    def get(self, name: str) -> ServiceState | None:
        return self.store.get(name)

    def snapshot(self) -> list[ServiceState]:
        return self.store.snapshot()

    @property
    def system_status(self) -> SystemStatus:
        return self.connectivity.status

    def on_state_change(self, listener: StateListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def on_connectivity_change(self, listener: ConnectivityListener) -> Callable[[], None]:
        return self.connectivity.subscribe(listener)
