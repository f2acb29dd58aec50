from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from switchboard.errors import ToggleFailure, UnknownServiceError
from switchboard.state import Connectivity, Lifecycle, ServiceState
from tests.utils.fakes import CONFIRM_DELAY_S, ERROR_RESET_DELAY_S

if TYPE_CHECKING:
    from switchboard.services.sync_engine import SyncEngine
    from tests.utils.fakes import FakeStatusSource, FakeToggleRequester


def _state(engine: SyncEngine, name: str) -> ServiceState:
    state = engine.get(name)
    assert state is not None
    return state


@pytest.mark.unit
async def test_toggle_stopped_service_sends_up_and_commits_running(
    engine: SyncEngine, requester: FakeToggleRequester
):
    assert _state(engine, "web").lifecycle is Lifecycle.STOPPED
    requester.gate = asyncio.Event()

    task = engine.toggle("web")
    await asyncio.sleep(0)

    # optimistic value visible while the command is on the wire
    web = _state(engine, "web")
    assert requester.payloads == [{"up": "web"}]
    assert web.lifecycle is Lifecycle.RUNNING
    assert web.pending_lifecycle is Lifecycle.RUNNING
    assert web.toggle_in_flight is True

    requester.gate.set()
    assert await task is True
    web = _state(engine, "web")
    assert web.lifecycle is Lifecycle.RUNNING
    assert web.toggle_in_flight is False
    assert web.pending_lifecycle is None


@pytest.mark.unit
async def test_toggle_running_service_sends_down(
    engine: SyncEngine, requester: FakeToggleRequester
):
    await engine.toggle("db")
    assert requester.payloads == [{"down": "db"}]
    assert _state(engine, "db").lifecycle is Lifecycle.STOPPED


@pytest.mark.unit
async def test_unknown_lifecycle_toggles_up(engine: SyncEngine, requester: FakeToggleRequester):
    engine.store.apply_poll("web", Lifecycle.UNKNOWN, "Not found")
    await engine.toggler.toggle("web")
    assert requester.payloads == [{"up": "web"}]


@pytest.mark.unit
async def test_optimistic_write_is_visible_before_command(
    engine: SyncEngine, requester: FakeToggleRequester
):
    seen_at_send: list[Lifecycle] = []
    original = requester.send_toggle

    async def _send(payload):
        seen_at_send.append(_state(engine, "web").lifecycle)
        await original(payload)

    requester.send_toggle = _send  # type: ignore[method-assign]
    await engine.toggle("web")
    assert seen_at_send == [Lifecycle.RUNNING]


@pytest.mark.unit
async def test_rapid_double_toggle_issues_one_command(
    engine: SyncEngine, requester: FakeToggleRequester
):
    requester.gate = asyncio.Event()
    first = engine.toggle("web")
    await asyncio.sleep(0)
    second = engine.toggle("web")
    await asyncio.sleep(0)

    assert await second is False
    requester.gate.set()
    assert await first is True
    assert requester.payloads == [{"up": "web"}]
    assert _state(engine, "web").toggle_in_flight is False


@pytest.mark.unit
async def test_in_flight_is_per_service(engine: SyncEngine, requester: FakeToggleRequester):
    requester.gate = asyncio.Event()
    a = engine.toggle("web")
    b = engine.toggle("db")
    await asyncio.sleep(0)
    assert requester.payloads == [{"up": "web"}, {"down": "db"}]
    requester.gate.set()
    await asyncio.gather(a, b)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("service", "before"),
    [("db", Lifecycle.RUNNING), ("web", Lifecycle.STOPPED)],
)
async def test_failed_toggle_rolls_back(
    engine: SyncEngine, requester: FakeToggleRequester, service: str, before: Lifecycle
):
    assert _state(engine, service).lifecycle is before
    requester.error = ToggleFailure("Service toggle failed with status 500")

    assert await engine.toggle(service) is True
    state = _state(engine, service)
    assert state.lifecycle is before
    assert state.toggle_in_flight is False
    assert state.pending_lifecycle is None


@pytest.mark.unit
async def test_failed_toggle_shows_transient_error(
    engine: SyncEngine, requester: FakeToggleRequester
):
    requester.error = ToggleFailure("connection refused")
    await engine.toggle("web")
    assert engine.connectivity.value is Connectivity.ERROR
    assert engine.system_status.label == "TOGGLE ERROR"
    assert engine.system_status.is_error

    await asyncio.sleep(ERROR_RESET_DELAY_S + 0.05)
    assert engine.connectivity.value is Connectivity.ONLINE
    assert engine.system_status.label == "ONLINE"


@pytest.mark.unit
async def test_unexpected_exception_is_absorbed_and_rolled_back(
    engine: SyncEngine, requester: FakeToggleRequester
):
    requester.error = RuntimeError("boom")
    assert await engine.toggle("db") is True
    db = _state(engine, "db")
    assert db.lifecycle is Lifecycle.RUNNING
    assert db.toggle_in_flight is False


@pytest.mark.unit
async def test_cancellation_releases_in_flight_flag(
    engine: SyncEngine, requester: FakeToggleRequester
):
    requester.gate = asyncio.Event()
    task = engine.toggle("web")
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    web = _state(engine, "web")
    assert web.toggle_in_flight is False
    assert web.lifecycle is Lifecycle.STOPPED


@pytest.mark.unit
async def test_success_schedules_confirmatory_poll(
    engine: SyncEngine, status_source: FakeStatusSource
):
    calls_before = status_source.calls
    # backend has not caught up yet when the confirmation lands
    status_source.entries = [{"name": "web", "status": "Up 1s", "state": "running"}]
    await engine.toggle("web")
    assert status_source.calls == calls_before

    await asyncio.sleep(CONFIRM_DELAY_S + 0.05)
    assert status_source.calls == calls_before + 1
    web = _state(engine, "web")
    assert (web.lifecycle, web.status_text) == (Lifecycle.RUNNING, "Up 1s")


@pytest.mark.unit
async def test_confirmatory_poll_reconciles_to_backend_truth(
    engine: SyncEngine, status_source: FakeStatusSource
):
    status_source.entries = [{"name": "web", "status": "Exited (1)", "state": "exited"}]
    await engine.toggle("web")
    assert _state(engine, "web").lifecycle is Lifecycle.RUNNING  # optimistic
    await asyncio.sleep(CONFIRM_DELAY_S + 0.05)
    assert _state(engine, "web").lifecycle is Lifecycle.STOPPED


@pytest.mark.unit
async def test_failure_does_not_schedule_confirmatory_poll(
    engine: SyncEngine, requester: FakeToggleRequester, status_source: FakeStatusSource
):
    requester.error = ToggleFailure("nope")
    calls_before = status_source.calls
    await engine.toggle("web")
    await asyncio.sleep(CONFIRM_DELAY_S + 0.05)
    assert status_source.calls == calls_before


@pytest.mark.unit
async def test_unknown_service_is_rejected_without_side_effects(
    engine: SyncEngine, requester: FakeToggleRequester
):
    before = engine.snapshot()
    events: list[ServiceState] = []
    engine.on_state_change(events.append)

    with pytest.raises(UnknownServiceError):
        engine.toggle("nonexistent")
    with pytest.raises(UnknownServiceError):
        await engine.toggler.toggle("nonexistent")

    assert requester.payloads == []
    assert events == []
    assert engine.snapshot() == before


@pytest.mark.unit
async def test_view_sees_in_flight_sequence(engine: SyncEngine):
    events: list[ServiceState] = []
    engine.on_state_change(lambda s: events.append(s) if s.name == "web" else None)
    await engine.toggle("web")
    assert [(e.lifecycle, e.toggle_in_flight) for e in events] == [
        (Lifecycle.STOPPED, True),  # begin_toggle
        (Lifecycle.RUNNING, True),  # optimistic commit
        (Lifecycle.RUNNING, False),  # end_toggle
    ]
