"""Session lifecycle state machine.

IDLE -> CHOOSING_LEVEL -> RUNNING -> CONFIRMING -> IDLE

The stop call is where the backend persists the session. Confirming only
refreshes the stats; discarding deletes the session so it never counts.

Every backend call is tagged with the epoch of the state it was issued from.
A result that arrives after the state has moved on (for example a start
response after the user cancelled) is logged and dropped.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, cast

from loguru import logger

from app.api.errors import BackendResponseError, TrackerApiError
from app.api.schemas import StartSessionResponse, StopSessionResponse
from app.sessions.errors import ActionNotAvailableError
from app.sessions.models import (
    Action,
    ChoosingLevel,
    ClientSessionState,
    Confirming,
    Idle,
    Level,
    Phase,
    Running,
    SessionState,
)

_ACTIONS_BY_PHASE: dict[Phase, frozenset[Action]] = {
    Phase.IDLE: frozenset({Action.START}),
    Phase.CHOOSING_LEVEL: frozenset({Action.CHOOSE_LEVEL, Action.CANCEL}),
    Phase.RUNNING: frozenset({Action.STOP}),
    Phase.CONFIRMING: frozenset({Action.CONFIRM, Action.DISCARD}),
}


class SessionBackend(Protocol):
    async def start_session(self, level: Level) -> StartSessionResponse: ...

    async def stop_session(self, session_id: str) -> StopSessionResponse: ...

    async def discard_session(self, session_id: str) -> None: ...


@dataclass(frozen=True)
class _Request:
    action: Action
    epoch: int


def _utc_now() -> datetime:
    return datetime.now(UTC)


def estimate_minutes(started_at: datetime, now: datetime) -> int:
    """Whole minutes between two instants, half rounded up like the backend does."""
    seconds = max((now - started_at).total_seconds(), 0.0)
    return int(seconds / 60 + 0.5)


class SessionLifecycle:
    """Drives one study session at a time against the backend.

    Errors from the backend never escape the mutating methods: they are
    stored on last_error and the machine stays in the phase it was in, so the
    caller can retry or cancel. The methods return True when the transition
    happened.
    """

    def __init__(
        self,
        backend: SessionBackend,
        *,
        on_logged: Callable[[], Awaitable[None]] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._backend = backend
        self._on_logged = on_logged
        self._clock = clock
        self._state: SessionState = Idle()
        self._epoch = 0
        self._pending: _Request | None = None
        self.last_error: TrackerApiError | None = None

    # ----- Read side -----
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def pending(self) -> Action | None:
        """Mutating action currently awaiting the backend, if any."""
        return self._pending.action if self._pending else None

    def snapshot(self) -> ClientSessionState:
        return ClientSessionState.from_state(self._state)

    def available_actions(self) -> frozenset[Action]:
        """Controls the UI should offer right now.

        While a request is in flight only cancel (during level choice)
        stays usable.
        """
        actions = _ACTIONS_BY_PHASE[self.phase]
        if self._pending is not None:
            return actions & {Action.CANCEL}
        return actions

    def _require(self, action: Action) -> None:
        if action in self.available_actions():
            return
        raise ActionNotAvailableError(action, self.phase, in_flight=self.pending)

    # ----- Transitions -----
    def _transition(self, state: SessionState) -> None:
        previous = self._state
        self._state = state
        self._epoch += 1
        self.last_error = None
        logger.info(f"Session phase {previous.phase} -> {state.phase}")

    def _begin(self, action: Action) -> _Request:
        self._require(action)
        self.last_error = None
        request = _Request(action=action, epoch=self._epoch)
        self._pending = request
        return request

    def _finish(self, request: _Request) -> None:
        if self._pending is request:
            self._pending = None

    def _is_stale(self, request: _Request) -> bool:
        if request.epoch == self._epoch:
            return False
        logger.warning(f"Dropping stale '{request.action}' response; phase is now {self.phase}")
        return True

    def _fail(self, request: _Request, error: TrackerApiError) -> None:
        logger.warning(f"Session action '{request.action}' failed in phase {self.phase}: {error}")
        self.last_error = error

    def request_start(self) -> None:
        self._require(Action.START)
        self._transition(ChoosingLevel())

    def cancel(self) -> None:
        """Leave level selection. Abandons a start request still in flight."""
        self._require(Action.CANCEL)
        self._pending = None
        self._transition(Idle())

    async def choose_level(self, level: Level) -> bool:
        request = self._begin(Action.CHOOSE_LEVEL)
        try:
            response = await self._backend.start_session(level)
        except TrackerApiError as e:
            if not self._is_stale(request):
                self._fail(request, e)
            return False
        finally:
            self._finish(request)

        if self._is_stale(request):
            logger.warning(f"Session {response.session_id} was started after the level choice was cancelled")
            return False

        self._transition(Running(session_id=response.session_id, level=level, started_at=self._clock()))
        return True

    async def stop(self) -> bool:
        request = self._begin(Action.STOP)
        running = cast(Running, self._state)
        try:
            response = await self._backend.stop_session(running.session_id)
            minutes = response.duration_minutes
        except BackendResponseError as e:
            if self._is_stale(request):
                return False
            if not e.is_already_stopped:
                self._fail(request, e)
                return False
            # An earlier stop reached the backend but its response was lost.
            minutes = estimate_minutes(running.started_at, self._clock())
            logger.info(f"Session {running.session_id} already stopped; using local estimate of {minutes} min")
        except TrackerApiError as e:
            if not self._is_stale(request):
                self._fail(request, e)
            return False
        finally:
            self._finish(request)

        if self._is_stale(request):
            return False

        self._transition(Confirming(session_id=running.session_id, level=running.level, duration_minutes=minutes))
        return True

    async def confirm(self) -> bool:
        """Log the session. It was already persisted by the stop call."""
        self._require(Action.CONFIRM)
        confirming = cast(Confirming, self._state)
        logger.info(f"Logged session {confirming.session_id}: {confirming.duration_minutes} min of {confirming.level.label}")
        self._transition(Idle())
        if self._on_logged is not None:
            await self._on_logged()
        return True

    async def discard(self) -> bool:
        request = self._begin(Action.DISCARD)
        confirming = cast(Confirming, self._state)
        try:
            await self._backend.discard_session(confirming.session_id)
        except BackendResponseError as e:
            if self._is_stale(request):
                return False
            if not e.is_not_found:
                self._fail(request, e)
                return False
            # Already gone; an earlier discard went through.
            logger.info(f"Session {confirming.session_id} already discarded")
        except TrackerApiError as e:
            if not self._is_stale(request):
                self._fail(request, e)
            return False
        finally:
            self._finish(request)

        if self._is_stale(request):
            return False

        logger.info(f"Discarded session {confirming.session_id}")
        self._transition(Idle())
        return True
