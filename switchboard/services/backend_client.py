from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from switchboard.constants import HTTP_TIMEOUT_S
from switchboard.errors import PollFailure, ToggleFailure
from switchboard.services.docker_status import build_statuses, parse_containers

if TYPE_CHECKING:
    from switchboard.config import PanelConfig
    from switchboard.services.contracts import ConfigSource
    from switchboard.state import StatusEntry, TogglePayload

logger = logging.getLogger(__name__)

# Toggle endpoint answers 200 or 202 on success
_TOGGLE_OK = (httpx.codes.OK, httpx.codes.ACCEPTED)


class BackendClient:
    """
    HTTP client for the container backend.

    Wraps a ConfigSource so the docker status / toggle URLs and the service
    list come from the same configuration the sync engine was initialized with.
    """

    def __init__(
        self,
        config_source: ConfigSource,
        timeout: float = HTTP_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config_source = config_source
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.config: PanelConfig | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    def _require_config(self, exc_type: type[Exception]) -> PanelConfig:
        if self.config is None:
            raise exc_type("Backend client has no configuration loaded")
        return self.config

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # ---- ConfigSource ----

    async def load_config(self) -> PanelConfig:
        self.config = await self.config_source.load_config()
        return self.config

    # ---- StatusSource ----

    async def fetch_status(self) -> list[StatusEntry]:
        config = self._require_config(PollFailure)
        try:
            resp = await self._get_client().get(config.docker_status_url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise PollFailure(f"Failed to fetch service status: {e}") from e
        containers = parse_containers(resp.text)
        return build_statuses(config.services, containers)

    # ---- ToggleRequester ----

    async def send_toggle(self, payload: TogglePayload) -> None:
        config = self._require_config(ToggleFailure)
        validate_toggle_payload(payload)
        logger.debug("POST %s %s", config.toggle_service_url, payload)
        try:
            resp = await self._get_client().post(config.toggle_service_url, json=payload)
        except httpx.HTTPError as e:
            raise ToggleFailure(f"Failed to toggle service: {e}") from e
        if resp.status_code not in _TOGGLE_OK:
            raise ToggleFailure(
                f"Service toggle failed with status {resp.status_code}"
            )


def validate_toggle_payload(payload: object) -> None:
    """Exactly one of "up"/"down" must be present with a non-empty service name."""
    if not isinstance(payload, dict):
        raise ToggleFailure("Toggle payload must be an object")
    keys = set(payload)
    if len(keys) != 1 or not keys <= {"up", "down"}:
        raise ToggleFailure(f"Toggle payload needs exactly one of up/down, got {sorted(keys)}")
    (name,) = payload.values()
    if not isinstance(name, str) or not name:
        raise ToggleFailure("Toggle payload has an empty service name")

