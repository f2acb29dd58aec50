from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from switchboard.constants import COMPOSE_WORKDIR_LABEL, NOT_FOUND_STATUS_TEXT
from switchboard.state import ServiceDescriptor, StatusEntry

logger = logging.getLogger(__name__)


@dataclass
class DockerContainer:
    """Subset of one ``docker ps --format json`` record."""

    names: str = ""
    state: str = ""
    status: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "DockerContainer":
        return cls(
            names=str(record.get("Names") or ""),
            state=str(record.get("State") or ""),
            status=str(record.get("Status") or ""),
            labels=parse_labels(record.get("Labels")),
        )

    @property
    def service_name(self) -> str:
        """
        Compose project directory name if labelled, else the container name.

        The working_dir label is preferred because compose container names carry
        project/index suffixes (e.g. "innergate-innergate-1").
        """
        work_dir = self.labels.get(COMPOSE_WORKDIR_LABEL, "")
        if work_dir:
            last = work_dir.rstrip("/").rsplit("/", 1)[-1]
            if last:
                return last
        return self.names.lstrip("/")


def parse_labels(raw: Any) -> dict[str, str]:
    """
    Accept a label mapping or docker's ``k=v,k=v`` string form.

    The string form does not escape commas, so a segment without ``=`` is
    taken as the continuation of the previous value (compose writes
    ``config_files=/a/compose.yml,/a/override.yml``). Values whose later
    segments contain ``=`` are still split apart; docker gives no way to tell.
    """
    if isinstance(raw, dict):
        return {str(k): str(v) for k, v in raw.items()}
    if not isinstance(raw, str) or not raw:
        return {}
    labels: dict[str, str] = {}
    key: str | None = None
    for part in raw.split(","):
        if "=" in part:
            key, value = part.split("=", 1)
            key = key.strip()
            labels[key] = value
        elif key is not None:
            labels[key] += "," + part
    return labels


def parse_containers(text: str) -> dict[str, DockerContainer]:
    """Parse newline-delimited JSON into containers keyed by service name."""
    containers: dict[str, DockerContainer] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Error parsing container JSON: %s", e)
            continue
        if not isinstance(record, dict):
            logger.warning("Skipping non-object container record: %r", record)
            continue
        container = DockerContainer.from_record(record)
        containers[container.service_name] = container
    return containers


def build_statuses(
    services: Iterable[ServiceDescriptor], containers: dict[str, DockerContainer]
) -> list[StatusEntry]:
    """One entry per configured service, in configuration order."""
    statuses: list[StatusEntry] = []
    for svc in services:
        container = containers.get(svc.name)
        if container is None:
            statuses.append(
                {"name": svc.name, "status": NOT_FOUND_STATUS_TEXT, "state": "unknown"}
            )
        else:
            statuses.append(
                {"name": svc.name, "status": container.status, "state": container.state}
            )
    return statuses
