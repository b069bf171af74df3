"""HTTP client for the study tracker backend.

Wraps the four endpoints the client needs:
- POST   /api/sessions/start
- POST   /api/sessions/stop/{session_id}
- DELETE /api/sessions/{session_id}
- GET    /api/stats
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from app.api.errors import BackendResponseError, InvalidResponseError, TransportError
from app.api.schemas import StartSessionRequest, StartSessionResponse, StatsResponse, StopSessionResponse
from app.config.settings import settings
from app.sessions.models import Level

API_PREFIX = "/api"

ModelT = TypeVar("ModelT", bound=BaseModel)


class TrackerApiClient:
    """Async client for the tracker backend.

    A caller may pass its own httpx.AsyncClient (tests inject one backed by
    httpx.MockTransport); otherwise one is created from settings and closed
    by aclose().
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.backend_url).rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.api_timeout_seconds,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> TrackerApiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> Any:
        """Send a request and return the decoded JSON body.

        Returns None for 204 responses.

        Raises:
            TransportError: Backend unreachable or the request timed out
            BackendResponseError: Non-2xx status, with the raw body attached
            InvalidResponseError: 2xx response whose body is not JSON
        """
        url = f"{API_PREFIX}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = await self._http.request(method, url, json=json)
        except httpx.RequestError as e:
            logger.warning(f"{method} {url} transport failure: {e!r}")
            raise TransportError(f"API {path} unreachable: {e}") from e

        if not response.is_success:
            logger.warning(f"{method} {url} -> {response.status_code}: {response.text}")
            raise BackendResponseError(path, response.status_code, response.text)

        if response.status_code == 204:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"API {path} returned non-JSON body: {response.text!r}") from e

    @staticmethod
    def _parse(model: type[ModelT], payload: Any, path: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InvalidResponseError(f"API {path} returned unexpected payload: {e}") from e

    async def start_session(self, level: Level) -> StartSessionResponse:
        body = StartSessionRequest(level=level).model_dump(mode="json")
        payload = await self._request("POST", "/sessions/start", json=body)
        return self._parse(StartSessionResponse, payload, "/sessions/start")

    async def stop_session(self, session_id: str) -> StopSessionResponse:
        path = f"/sessions/stop/{session_id}"
        payload = await self._request("POST", path)
        return self._parse(StopSessionResponse, payload, path)

    async def discard_session(self, session_id: str) -> None:
        await self._request("DELETE", f"/sessions/{session_id}")

    async def get_stats(self) -> StatsResponse:
        payload = await self._request("GET", "/stats")
        return self._parse(StatsResponse, payload, "/stats")
