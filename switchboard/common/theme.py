from __future__ import annotations

import logging
from typing import Literal, cast, get_args

from nicegui import app, ui

from switchboard.state import Lifecycle, ServiceState

ThemeMode = Literal["light", "dark", "system"]

# Status light colors, shared by both modes
LIGHT_COLORS: dict[Lifecycle, str] = {
    Lifecycle.RUNNING: "#21BA45",
    Lifecycle.STOPPED: "#DB2828",
    Lifecycle.UNKNOWN: "#9E9E9E",
}


def get_palette(mode: ThemeMode) -> dict[str, str]:
    """Return palette tokens for the given mode."""
    if mode == "dark":
        return {
            "primary": "#1F538D",
            "background": "#1A1A1A",
            "surface": "#212121",
            "text": "#D6D6D6",
            "muted": "#949A9F",
            "positive": "#21BA45",
            "negative": "#DB2828",
            "warning": "#F2C037",
        }
    return {
        "primary": "#3B8ED0",
        "background": "#EBEBEB",
        "surface": "#DBDBDB",
        "text": "#1A1A1A",
        "muted": "#A6A6A6",
        "positive": "#21BA45",
        "negative": "#DB2828",
        "warning": "#F2C037",
    }


def light_color(state: ServiceState) -> str:
    """Color of a service's status light; in-flight toggles show the optimistic value."""
    return LIGHT_COLORS[state.pending_lifecycle or state.lifecycle]


def apply_theme(mode: ThemeMode) -> None:
    choice = mode
    if mode == "system":
        choice = "dark" if ui.context.client.page.resolve_dark() else "light"
        logging.debug(f"System theme: {choice}")

    pal = get_palette(choice)
    ui.colors(
        primary=pal["primary"],
        positive=pal["positive"],
        negative=pal["negative"],
        warning=pal["warning"],
    )
    if choice == "dark":
        ui.dark_mode().enable()
    else:
        ui.dark_mode().disable()

    ui.add_css(
        f"""
:root {{
  --sb-bg: {pal["background"]};
  --sb-surface: {pal["surface"]};
  --sb-text: {pal["text"]};
  --sb-muted: {pal["muted"]};
}}
body, .q-page {{ background: var(--sb-bg); color: var(--sb-text); }}
.q-header, .q-card {{ background: var(--sb-surface); color: var(--sb-text); }}
"""
    )


def get_theme() -> ThemeMode:
    """Return the persisted mode ('light'/'dark'/'system')."""
    mode = app.storage.general.get("theme_mode", "system")
    if isinstance(mode, str) and mode in get_args(ThemeMode):
        return cast("ThemeMode", mode)
    return cast("ThemeMode", "system")


def set_theme(mode: ThemeMode) -> ThemeMode:
    app.storage.general["theme_mode"] = mode
    apply_theme(mode)
    return mode


def inject_panel_css() -> None:
    """Service row, status light and system status label styles."""
    ui.add_css(
        """
.service-row { width: 100%; align-items: center; justify-content: space-between; padding: 8px 12px; }
.service-name { font-weight: 600; }
.service-status { font-size: 0.8rem; color: var(--sb-muted); }
.status-light {
  width: 14px; height: 14px; border-radius: 50%;
  box-shadow: 0 0 6px currentColor;
  transition: background-color .2s ease;
}
.system-status { font-family: monospace; letter-spacing: .08em; }
.system-status.error { color: #DB2828; }
"""
    )
