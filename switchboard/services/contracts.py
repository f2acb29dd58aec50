from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from switchboard.config import PanelConfig
    from switchboard.state import StatusEntry, TogglePayload


class ConfigSource(Protocol):
    async def load_config(self) -> PanelConfig:
        """Return the panel configuration or raise ConfigError."""
        ...


class StatusSource(Protocol):
    async def fetch_status(self) -> list[StatusEntry]:
        """Return status for every known service or raise PollFailure."""
        ...


class ToggleRequester(Protocol):
    async def send_toggle(self, payload: TogglePayload) -> None:
        """Deliver ``{"up": name}`` or ``{"down": name}``; raise ToggleFailure."""
        ...
