from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from switchboard.constants import DEFAULT_POLL_INTERVAL_S
from switchboard.errors import ConfigError
from switchboard.state import ServiceDescriptor

logger = logging.getLogger(__name__)


def _resolve_interval(raw: Any) -> float:
    """Non-numeric, missing or non-positive intervals fall back to the default."""
    if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw <= 0:
        return DEFAULT_POLL_INTERVAL_S
    return float(raw)


def parse_services(raw: Any) -> list[ServiceDescriptor]:
    """Build descriptors from the ``services`` list of a config document."""
    if not isinstance(raw, list):
        raise ConfigError("'services' must be a list")
    descriptors: list[ServiceDescriptor] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ConfigError(f"services[{i}] must be an object")
        name = item.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"services[{i}] is missing a name")
        if name in seen:
            raise ConfigError(f"Duplicate service name: {name!r}")
        seen.add(name)
        display_name = item.get("displayName") or name
        descriptors.append(ServiceDescriptor(name=name, display_name=str(display_name)))
    return descriptors


@dataclass
class PanelConfig:
    """Runtime configuration for the control panel and its backend endpoints."""

    services: list[ServiceDescriptor] = field(default_factory=list)
    docker_status_url: str = ""
    toggle_service_url: str = ""
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_S

    @classmethod
    def from_dict(cls, data: Any) -> "PanelConfig":
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")
        services = parse_services(data.get("services", []))
        urls = {}
        for key in ("dockerStatusUrl", "toggleServiceUrl"):
            value = data.get(key)
            if not isinstance(value, str) or not value:
                raise ConfigError(f"Missing '{key}' in configuration")
            urls[key] = value
        return cls(
            services=services,
            docker_status_url=urls["dockerStatusUrl"],
            toggle_service_url=urls["toggleServiceUrl"],
            poll_interval_seconds=_resolve_interval(data.get("pollIntervalSeconds")),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "PanelConfig":
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to read config file {p}: {e}") from e
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse config file {p}: {e}") from e
        return cls.from_dict(data)

    def to_public_dict(self) -> dict[str, Any]:
        """Shape served to view clients: services and poll interval only."""
        return {
            "services": [
                {"name": s.name, "displayName": s.display_name} for s in self.services
            ],
            "pollIntervalSeconds": self.poll_interval_seconds,
        }


class FileConfigSource:
    """ConfigSource backed by a JSON file on disk."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def load_config(self) -> PanelConfig:
        config = PanelConfig.from_file(self.path)
        logger.info(
            "Loaded %d service(s) from %s (poll every %.1fs)",
            len(config.services),
            self.path,
            config.poll_interval_seconds,
        )
        return config
