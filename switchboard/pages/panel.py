from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from nicegui import ui

from switchboard.common.logging_config import attach_ui_log, detach_ui_log
from switchboard.common.theme import (
    ThemeMode,
    apply_theme,
    get_theme,
    inject_panel_css,
    light_color,
    set_theme,
)
from switchboard.errors import UnknownServiceError

if TYPE_CHECKING:
    from switchboard.services.sync_engine import SyncEngine
    from switchboard.state import ServiceState, SystemStatus


@dataclass
class ServiceRow:
    """Widgets for one service; apply() pushes a store snapshot into them."""

    status_label: ui.label
    light: ui.element
    switch: ui.switch
    syncing: bool = False

    def apply(self, state: ServiceState) -> None:
        self.status_label.text = state.status_text
        self.light.style(f"background-color: {light_color(state)}; color: {light_color(state)}")
        self.switch.set_enabled(not state.toggle_in_flight)
        if state.toggle_in_flight and state.pending_lifecycle is None:
            # toggle claimed but not yet committed; the click already moved the switch
            return
        # Programmatic value changes must not be mistaken for clicks
        self.syncing = True
        try:
            self.switch.value = state.is_on
        finally:
            self.syncing = False


class PanelPage:
    """The control panel: one row per service plus the system status label."""

    def __init__(self, engine: SyncEngine) -> None:
        self.engine = engine

    def _on_switch(self, row: ServiceRow, name: str, _e) -> None:
        if row.syncing:
            return
        try:
            self.engine.toggle(name)
        except UnknownServiceError as e:
            logging.error("Toggle rejected: %s", e)

    async def refresh(self) -> None:
        if not await self.engine.refresh():
            ui.notify("Status refresh failed", color="negative")

    def build(self) -> None:
        apply_theme(get_theme())
        inject_panel_css()
        rows: dict[str, ServiceRow] = {}

        with ui.header().classes("items-center justify-between px-4 py-2"):
            ui.label("SwitchBoard").classes("text-lg font-medium")
            with ui.row().classes("items-center gap-3"):
                status_label = (
                    ui.label()
                    .bind_text_from(self.engine.system_status, "label")
                    .classes("system-status")
                    .mark("system-status")
                )
                ui.button("Refresh", on_click=self.refresh).props("flat dense").mark("refresh")
                mode_toggle = ui.toggle(
                    options=["System", "Light", "Dark"], value=get_theme().capitalize()
                ).props("dense")

                def _on_mode() -> None:
                    mode: ThemeMode = (mode_toggle.value or "System").lower()  # type: ignore[assignment]
                    set_theme(mode)
                    logging.debug(f"Set theme to mode: {mode}")

                mode_toggle.on_value_change(lambda e: _on_mode())

        def _on_connectivity(status: SystemStatus) -> None:
            if status.is_error:
                status_label.classes(add="error")
            else:
                status_label.classes(remove="error")

        _on_connectivity(self.engine.system_status)

        with ui.card().classes("w-full max-w-2xl mx-auto mt-4"):
            services = self.engine.snapshot()
            if not services:
                ui.label("No services configured").classes("service-status")
            for svc in services:
                with ui.row().classes("service-row").mark(f"service-{svc.name}"):
                    with ui.column().classes("gap-0"):
                        ui.label(svc.display_name).classes("service-name")
                        status = ui.label(svc.status_text).classes("service-status").mark(
                            f"status-{svc.name}"
                        )
                    with ui.row().classes("items-center gap-3"):
                        light = ui.element("div").classes("status-light").mark(f"light-{svc.name}")
                        switch = ui.switch(value=svc.is_on).mark(f"switch-{svc.name}")
                row = ServiceRow(status_label=status, light=light, switch=switch)
                switch.on_value_change(partial(self._on_switch, row, svc.name))
                row.apply(svc)
                rows[svc.name] = row

        with ui.card().classes("w-full max-w-2xl mx-auto"):
            ui.label("Activity").classes("text-sm font-medium")
            activity = ui.log(max_lines=200).classes("w-full h-40")
            attach_ui_log(activity)

        def _on_state(state: ServiceState) -> None:
            row = rows.get(state.name)
            if row is not None:
                row.apply(state)

        unsubscribe = [
            self.engine.on_state_change(_on_state),
            self.engine.on_connectivity_change(_on_connectivity),
        ]

        def _cleanup() -> None:
            for fn in unsubscribe:
                fn()
            detach_ui_log(activity)

        # on_disconnect also fires on transient reconnects; only a deleted client is gone
        ui.context.client.on_delete(_cleanup)
