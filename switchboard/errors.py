from __future__ import annotations


class SwitchBoardError(Exception):
    """Base class for control panel errors."""


class ConfigError(SwitchBoardError):
    """Panel configuration is missing, unreadable or malformed."""


class UnknownServiceError(SwitchBoardError, KeyError):
    """A toggle was requested for a service the panel does not track."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown service: {self.name!r}"


class PollFailure(SwitchBoardError):
    """Fetching service status failed (transport error or bad response)."""


class ToggleFailure(SwitchBoardError):
    """The backend rejected or never received a toggle command."""
