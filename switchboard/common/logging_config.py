from __future__ import annotations

import logging
import sys
import threading
import weakref
from typing import IO

from nicegui import ui

# Per-poll chatter lives below DEBUG
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LEVEL_NAMES = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# SGR codes per level
_LEVEL_SGR = {
    TRACE: "32",
    logging.DEBUG: "36",
    logging.INFO: "37",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "41",
}

# Loggers whose records show up in the panel's Activity log
_ACTIVITY_PREFIXES = ("switchboard", "root")


def level_from_name(name: str) -> int:
    return TRACE if name.upper() == "TRACE" else getattr(logging, name.upper())


def short_logger_name(name: str) -> str:
    """'switchboard.services.toggle_controller' -> 'toggle_controller'; others unchanged."""
    if name.startswith("switchboard."):
        return name.rsplit(".", 1)[-1]
    return name


class ConsoleFormatter(logging.Formatter):
    """
    "HH:MM:SS LEVEL module: msg" lines for stderr.

    SwitchBoard modules are shown by their last dotted component. On a TTY the
    level is colored and the timestamp dimmed.
    """

    def __init__(self, colored: bool = True, stream: IO[str] | None = None) -> None:
        super().__init__(fmt="%(asctime)s %(levelname)s %(module_name)s: %(message)s", datefmt="%H:%M:%S")
        stream = stream if stream is not None else sys.stderr
        self.colored = colored and stream.isatty()

    def formatMessage(self, record: logging.LogRecord) -> str:
        record.module_name = short_logger_name(record.name)
        sgr = _LEVEL_SGR.get(record.levelno)
        if not self.colored or sgr is None:
            return super().formatMessage(record)
        plain = record.levelname
        record.levelname = f"\033[{sgr}m{plain}\033[0m"
        try:
            line = super().formatMessage(record)
        finally:
            record.levelname = plain
        ts, _, rest = line.partition(" ")
        return f"\033[2m{ts}\033[0m {rest}"


# ---- panel Activity log ----

_sinks: weakref.WeakSet[ui.log] = weakref.WeakSet()
_sinks_lock = threading.Lock()


class ActivityLogHandler(logging.Handler):
    """Push SwitchBoard records into the Activity ui.log of every open panel."""

    def __init__(self, level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s", "%H:%M:%S"))
        self.addFilter(lambda record: record.name.startswith(_ACTIVITY_PREFIXES))

    def emit(self, record: logging.LogRecord) -> None:
        if not _sinks:
            return
        line = self.format(record)
        with _sinks_lock:
            for widget in list(_sinks):
                try:
                    widget.push(line)
                except Exception:
                    # element deleted along with its client
                    _sinks.discard(widget)


def attach_ui_log(log_widget: ui.log) -> None:
    with _sinks_lock:
        _sinks.add(log_widget)


def detach_ui_log(log_widget: ui.log) -> None:
    with _sinks_lock:
        _sinks.discard(log_widget)


def configure_logging(
    level: int = logging.INFO, use_color: bool = True, add_ui_handler: bool = True
) -> logging.Logger:
    """
    Install the stderr console handler and, optionally, the Activity log
    handler on the root logger.

    Calling again does not duplicate handlers; it moves the installed ones to
    the new level. The Activity log never goes below INFO.
    """
    root = logging.getLogger()
    root.setLevel(level)

    console = next((h for h in root.handlers if isinstance(h.formatter, ConsoleFormatter)), None)
    if console is None:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setFormatter(ConsoleFormatter(colored=use_color))
        root.addHandler(console)
    console.setLevel(level)

    activity = next((h for h in root.handlers if isinstance(h, ActivityLogHandler)), None)
    if add_ui_handler:
        if activity is None:
            activity = ActivityLogHandler()
            root.addHandler(activity)
        activity.setLevel(max(level, logging.INFO))

    return root
