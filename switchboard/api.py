from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, HTTPException, Request

from switchboard.constants import CONFIRM_POLL_DELAY_S
from switchboard.errors import PollFailure, ToggleFailure
from switchboard.services.backend_client import validate_toggle_payload

if TYPE_CHECKING:
    from switchboard.services.backend_client import BackendClient
    from switchboard.services.sync_engine import SyncEngine

logger = logging.getLogger(__name__)


def register_api(app: FastAPI, engine: SyncEngine, client: BackendClient) -> None:
    """Mount the JSON API (/api/config, /api/status, /api/toggle) on app."""

    @app.get("/api/config")
    async def api_config() -> dict[str, Any]:
        if engine.config is None:
            raise HTTPException(status_code=503, detail="Configuration not loaded")
        return engine.config.to_public_dict()

    @app.get("/api/status")
    async def api_status() -> list[dict[str, str]]:
        try:
            entries = await client.fetch_status()
        except PollFailure as e:
            logger.error("Error fetching docker status: %s", e)
            raise HTTPException(status_code=500, detail="Failed to fetch service status") from e
        display = {s.name: s.display_name for s in client.config.services} if client.config else {}
        return [
            {
                "name": e["name"],
                "displayName": display.get(e["name"], e["name"]),
                "state": e["state"],
                "status": e["status"],
            }
            for e in entries
        ]

    @app.post("/api/toggle")
    async def api_toggle(request: Request) -> dict[str, str]:
        try:
            payload = await request.json()
            validate_toggle_payload(payload)
        except (ValueError, ToggleFailure) as e:
            raise HTTPException(status_code=400, detail="Invalid request body") from e
        try:
            await client.send_toggle(payload)
        except ToggleFailure as e:
            logger.error("Error toggling service: %s", e)
            raise HTTPException(status_code=502, detail=str(e)) from e
        if engine.config is not None:
            # let open panels reconcile with the externally triggered change
            engine.scheduler.call_later(CONFIRM_POLL_DELAY_S, engine.refresh)
        return {"status": "success"}
