"""Root conftest for all tests.

Shared fakes for the tracker backend: an in-memory backend for lifecycle and
stats tests, and an httpx.MockTransport-backed API client for wire tests.
"""

import asyncio
import json
from collections.abc import Callable

import httpx
import pytest

from app.api.client import TrackerApiClient
from app.api.errors import TrackerApiError
from app.api.schemas import StartSessionResponse, StatsResponse, StopSessionResponse
from app.sessions.models import Level

BASE_URL = "http://tracker.test"


def make_stats(**overrides: object) -> StatsResponse:
    payload: dict[str, object] = {
        "b1_plus_hours": 50.0,
        "b2_hours": 10.0,
        "total_hours": 60.0,
        "b1_plus_goal_hours": 200.0,
        "b2_goal_hours": 320.0,
        "daily_b1_plus": [{"date": "2025-03-01", "hours": 1.5}, {"date": "2025-03-02", "hours": 0.75}],
        "daily_b2": [],
    }
    payload.update(overrides)
    return StatsResponse.model_validate(payload)


class FakeBackend:
    """In-memory stand-in for TrackerApiClient.

    Each endpoint returns the configured response or raises the configured
    error. Setting a gate makes the call wait until the gate is set, which
    lets a test change state while a request is in flight.
    """

    def __init__(self) -> None:
        self.session_id = "s1"
        self.duration_minutes = 42
        self.stats = make_stats()
        self.start_error: TrackerApiError | None = None
        self.stop_error: TrackerApiError | None = None
        self.discard_error: TrackerApiError | None = None
        self.stats_error: TrackerApiError | None = None
        self.start_gate: asyncio.Event | None = None
        self.calls: list[tuple[str, object]] = []

    async def start_session(self, level: Level) -> StartSessionResponse:
        self.calls.append(("start", level))
        if self.start_gate is not None:
            await self.start_gate.wait()
        if self.start_error is not None:
            raise self.start_error
        return StartSessionResponse(session_id=self.session_id)

    async def stop_session(self, session_id: str) -> StopSessionResponse:
        self.calls.append(("stop", session_id))
        if self.stop_error is not None:
            raise self.stop_error
        return StopSessionResponse(duration_minutes=self.duration_minutes)

    async def discard_session(self, session_id: str) -> None:
        self.calls.append(("discard", session_id))
        if self.discard_error is not None:
            raise self.discard_error

    async def get_stats(self) -> StatsResponse:
        self.calls.append(("stats", None))
        if self.stats_error is not None:
            raise self.stats_error
        return self.stats

    def count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


class RecordingTransport:
    """Routes requests to a handler and records them."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def paths(self) -> list[str]:
        return [f"{r.method} {r.url.path}" for r in self.requests]


def default_backend_handler(request: httpx.Request) -> httpx.Response:
    """A well-behaved backend: s1 started, 42 minutes on stop, stats on GET."""
    path = request.url.path
    if request.method == "POST" and path == "/api/sessions/start":
        body = json.loads(request.content)
        if body.get("level") not in {"B1_PLUS", "B2"}:
            return httpx.Response(400, json={"error": "level must be B1_PLUS or B2"})
        return httpx.Response(201, json={"session_id": "s1"})
    if request.method == "POST" and path.startswith("/api/sessions/stop/"):
        return httpx.Response(200, json={"duration_minutes": 42})
    if request.method == "DELETE" and path.startswith("/api/sessions/"):
        return httpx.Response(204)
    if request.method == "GET" and path == "/api/stats":
        return httpx.Response(200, json=make_stats().model_dump(mode="json"))
    return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def make_api() -> Callable[..., tuple[TrackerApiClient, RecordingTransport]]:
    def _make(handler: Callable[[httpx.Request], httpx.Response] = default_backend_handler) -> tuple[TrackerApiClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(transport))
        return TrackerApiClient(BASE_URL, http_client=http_client), transport

    return _make
