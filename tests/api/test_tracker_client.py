"""Tests for the tracker backend HTTP client."""

import json

import httpx
import pytest

from app.api.errors import BackendResponseError, InvalidResponseError, TransportError
from app.sessions.models import Level


@pytest.mark.asyncio
async def test_start_session_posts_level(make_api):
    api, transport = make_api()

    response = await api.start_session(Level.B1_PLUS)

    assert response.session_id == "s1"
    request = transport.requests[0]
    assert (request.method, request.url.path) == ("POST", "/api/sessions/start")
    assert json.loads(request.content) == {"level": "B1_PLUS"}
    assert request.headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_stop_session_returns_duration(make_api):
    api, transport = make_api()

    response = await api.stop_session("abc-123")

    assert response.duration_minutes == 42
    assert transport.paths() == ["POST /api/sessions/stop/abc-123"]


@pytest.mark.asyncio
async def test_discard_session_handles_204(make_api):
    api, transport = make_api()

    assert await api.discard_session("abc-123") is None
    assert transport.paths() == ["DELETE /api/sessions/abc-123"]


@pytest.mark.asyncio
async def test_get_stats_parses_snapshot(make_api):
    api, _ = make_api()

    stats = await api.get_stats()

    assert stats.b1_plus_hours == 50.0
    assert stats.b1_plus_goal_hours == 200.0
    assert [p.hours for p in stats.daily_b1_plus] == [1.5, 0.75]
    assert stats.daily_b2 == []


@pytest.mark.asyncio
async def test_get_stats_without_daily_series(make_api):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "b1_plus_hours": 1.25,
                "b2_hours": 0.0,
                "total_hours": 1.25,
                "b1_plus_goal_hours": 200.0,
                "b2_goal_hours": 320.0,
            },
        )

    api, _ = make_api(handler)

    stats = await api.get_stats()

    assert stats.daily_b1_plus == []
    assert stats.daily_b2 == []


@pytest.mark.asyncio
async def test_non_2xx_carries_status_and_raw_body(make_api):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text='{"error":"session already stopped"}')

    api, _ = make_api(handler)

    with pytest.raises(BackendResponseError) as excinfo:
        await api.stop_session("s1")

    error = excinfo.value
    assert error.status_code == 400
    assert error.body == '{"error":"session already stopped"}'
    assert error.is_already_stopped
    assert not error.is_not_found
    assert "failed (400)" in str(error)


@pytest.mark.asyncio
async def test_not_found_is_flagged(make_api):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "session not found"})

    api, _ = make_api(handler)

    with pytest.raises(BackendResponseError) as excinfo:
        await api.discard_session("missing")

    assert excinfo.value.is_not_found
    assert not excinfo.value.is_already_stopped


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped(make_api):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api, _ = make_api(handler)

    with pytest.raises(TransportError, match="unreachable"):
        await api.get_stats()


@pytest.mark.asyncio
async def test_unexpected_payload_is_invalid_response(make_api):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json={"id": "s1"})

    api, _ = make_api(handler)

    with pytest.raises(InvalidResponseError):
        await api.start_session(Level.B2)


@pytest.mark.asyncio
async def test_non_json_success_body_is_invalid_response(make_api):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>proxy page</html>")

    api, _ = make_api(handler)

    with pytest.raises(InvalidResponseError, match="non-JSON"):
        await api.get_stats()
