from __future__ import annotations

import json

import httpx
import pytest

from switchboard.errors import PollFailure, ToggleFailure
from switchboard.services.backend_client import BackendClient, validate_toggle_payload
from tests.utils.fakes import StaticConfigSource, make_config

_PS_OUTPUT = "\n".join(
    [
        json.dumps(
            {
                "Names": "/web-web-1",
                "State": "running",
                "Status": "Up 3 minutes",
                "Labels": "com.docker.compose.project.working_dir=/srv/web",
            }
        ),
        json.dumps({"Names": "/db", "State": "exited", "Status": "Exited (0) 1 hour ago"}),
    ]
)


class Backend:
    """MockTransport handler standing in for the docker status / toggle endpoints."""

    def __init__(self) -> None:
        self.status_code = 200
        self.toggle_code = 200
        self.requests: list[httpx.Request] = []
        self.fail_transport = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_transport:
            raise httpx.ConnectError("connection refused", request=request)
        if request.url.path == "/ps":
            return httpx.Response(self.status_code, text=_PS_OUTPUT)
        if request.url.path == "/toggle":
            return httpx.Response(self.toggle_code, json={"ok": True})
        return httpx.Response(404)


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest.fixture
async def client(backend: Backend):
    c = BackendClient(
        StaticConfigSource(make_config("web", "db", "cache")),
        transport=httpx.MockTransport(backend),
    )
    await c.load_config()
    try:
        yield c
    finally:
        await c.aclose()


@pytest.mark.unit
async def test_fetch_status_maps_containers_to_services(client: BackendClient):
    assert await client.fetch_status() == [
        {"name": "web", "status": "Up 3 minutes", "state": "running"},
        {"name": "db", "status": "Exited (0) 1 hour ago", "state": "exited"},
        {"name": "cache", "status": "Not found", "state": "unknown"},
    ]


@pytest.mark.unit
async def test_fetch_status_http_error_is_poll_failure(client: BackendClient, backend: Backend):
    backend.status_code = 500
    with pytest.raises(PollFailure):
        await client.fetch_status()


@pytest.mark.unit
async def test_fetch_status_transport_error_is_poll_failure(
    client: BackendClient, backend: Backend
):
    backend.fail_transport = True
    with pytest.raises(PollFailure, match="connection refused"):
        await client.fetch_status()


@pytest.mark.unit
async def test_fetch_status_requires_config():
    c = BackendClient(StaticConfigSource(make_config("web")))
    with pytest.raises(PollFailure):
        await c.fetch_status()


@pytest.mark.unit
@pytest.mark.parametrize("code", [200, 202])
async def test_send_toggle_posts_payload(client: BackendClient, backend: Backend, code: int):
    backend.toggle_code = code
    await client.send_toggle({"up": "web"})
    request = backend.requests[-1]
    assert request.method == "POST"
    assert str(request.url) == "http://backend.test/toggle"
    assert json.loads(request.content) == {"up": "web"}


@pytest.mark.unit
@pytest.mark.parametrize("code", [204, 400, 500, 503])
async def test_send_toggle_non_success_is_toggle_failure(
    client: BackendClient, backend: Backend, code: int
):
    backend.toggle_code = code
    with pytest.raises(ToggleFailure, match=str(code)):
        await client.send_toggle({"down": "db"})


@pytest.mark.unit
async def test_send_toggle_transport_error_is_toggle_failure(
    client: BackendClient, backend: Backend
):
    backend.fail_transport = True
    with pytest.raises(ToggleFailure):
        await client.send_toggle({"down": "db"})


@pytest.mark.unit
@pytest.mark.parametrize(
    "payload",
    [{}, {"up": "web", "down": "web"}, {"restart": "web"}, {"up": ""}, {"up": 3}, ["up", "web"]],
)
def test_invalid_toggle_payloads(payload):
    with pytest.raises(ToggleFailure):
        validate_toggle_payload(payload)


@pytest.mark.unit
async def test_invalid_payload_is_never_sent(client: BackendClient, backend: Backend):
    with pytest.raises(ToggleFailure):
        await client.send_toggle({"up": "web", "down": "db"})
    assert backend.requests == []
