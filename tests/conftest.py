from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from switchboard.services.state_store import ServiceStateStore
from switchboard.services.sync_engine import SyncEngine
from switchboard.state import ServiceDescriptor
from tests.utils.fakes import (
    CONFIRM_DELAY_S,
    ERROR_RESET_DELAY_S,
    FakeStatusSource,
    FakeToggleRequester,
    StaticConfigSource,
    make_config,
)

pytest_plugins = ["nicegui.testing.user_plugin"]

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def store() -> ServiceStateStore:
    s = ServiceStateStore()
    s.initialize(
        [
            ServiceDescriptor(name="web", display_name="Web"),
            ServiceDescriptor(name="db", display_name="Database"),
        ]
    )
    return s


@pytest.fixture
def status_source() -> FakeStatusSource:
    return FakeStatusSource(
        [
            {"name": "web", "status": "Exited (0) 1 minute ago", "state": "exited"},
            {"name": "db", "status": "Up 5 minutes", "state": "running"},
        ]
    )


@pytest.fixture
def requester() -> FakeToggleRequester:
    return FakeToggleRequester()


@pytest.fixture
async def engine(
    status_source: FakeStatusSource, requester: FakeToggleRequester
) -> AsyncIterator[SyncEngine]:
    """
    Initialized engine tracking "web" (stopped) and "db" (running).
    The poll interval is long so only the initial poll runs during a test.
    """
    eng = SyncEngine(
        status_source,
        requester,
        confirm_delay_s=CONFIRM_DELAY_S,
        error_reset_delay_s=ERROR_RESET_DELAY_S,
    )
    await eng.initialize(StaticConfigSource(make_config("web", "db", interval=60)))
    await eng.poller.wait_idle()
    try:
        yield eng
    finally:
        await eng.shutdown()
