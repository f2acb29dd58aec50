from __future__ import annotations

import logging
import os

# Default panel configuration file
CONFIG_PATH: str = os.getenv("SWITCHBOARD_CONFIG", "config.json")

# Webserver bind (NiceGUI host/port)
SERVER_HOST: str = os.getenv("SWITCHBOARD_SERVER_IP", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SWITCHBOARD_SERVER_PORT", "8080"))

# Backend HTTP calls (docker status + toggle endpoints)
HTTP_TIMEOUT_S: float = float(os.getenv("SWITCHBOARD_HTTP_TIMEOUT", "10"))

# Polling and reconciliation timings
DEFAULT_POLL_INTERVAL_S: float = 5.0
CONFIRM_POLL_DELAY_S: float = 2.0
ERROR_RESET_DELAY_S: float = 3.0

# Placeholder status text until the first poll lands
INITIAL_STATUS_TEXT = "Checking status..."
NOT_FOUND_STATUS_TEXT = "Not found"

# docker compose label carrying the project directory
COMPOSE_WORKDIR_LABEL = "com.docker.compose.project.working_dir"


def _resolve_log_level() -> int:
    s = os.getenv("SWITCHBOARD_LOG_LEVEL")
    if not s:
        return logging.WARNING
    name = s.strip().upper()
    mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return mapping.get(name, logging.WARNING)


LOG_LEVEL: int = _resolve_log_level()
