"""Client-side session state.

The lifecycle is a tagged union: each phase is its own frozen dataclass and
only carries the fields that exist in that phase, so a session id can only
be present while a session is running or awaiting confirmation.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class Level(StrEnum):
    """Proficiency level a session counts toward."""

    B1_PLUS = "B1_PLUS"
    B2 = "B2"

    @property
    def label(self) -> str:
        return "B1+" if self is Level.B1_PLUS else "B2"


class Phase(StrEnum):
    IDLE = "idle"
    CHOOSING_LEVEL = "choosing-level"
    RUNNING = "running"
    CONFIRMING = "confirming"


class Action(StrEnum):
    """User-facing controls of the session panel."""

    START = "start"
    CANCEL = "cancel"
    CHOOSE_LEVEL = "choose_level"
    STOP = "stop"
    CONFIRM = "confirm"
    DISCARD = "discard"


@dataclass(frozen=True)
class Idle:
    phase = Phase.IDLE


@dataclass(frozen=True)
class ChoosingLevel:
    phase = Phase.CHOOSING_LEVEL


@dataclass(frozen=True)
class Running:
    session_id: str
    level: Level
    started_at: datetime

    phase = Phase.RUNNING


@dataclass(frozen=True)
class Confirming:
    session_id: str
    level: Level
    duration_minutes: int

    phase = Phase.CONFIRMING


SessionState = Idle | ChoosingLevel | Running | Confirming


@dataclass(frozen=True, slots=True)
class ClientSessionState:
    """Flat projection of the current state for rendering.

    Attributes:
        phase: Current lifecycle phase
        session_id: Backend session id (RUNNING and CONFIRMING only)
        duration_minutes: Duration returned by the stop call (CONFIRMING only)
        chosen_level: Level of the open session (RUNNING and CONFIRMING only)
    """

    phase: Phase
    session_id: str | None = None
    duration_minutes: int | None = None
    chosen_level: Level | None = None

    @classmethod
    def from_state(cls, state: SessionState) -> "ClientSessionState":
        match state:
            case Running(session_id=session_id, level=level):
                return cls(phase=Phase.RUNNING, session_id=session_id, chosen_level=level)
            case Confirming(session_id=session_id, level=level, duration_minutes=minutes):
                return cls(
                    phase=Phase.CONFIRMING,
                    session_id=session_id,
                    duration_minutes=minutes,
                    chosen_level=level,
                )
            case _:
                return cls(phase=state.phase)

    def check_invariants(self) -> None:
        """Raise AssertionError if the flat fields disagree with the phase."""
        has_session = self.phase in {Phase.RUNNING, Phase.CONFIRMING}
        if (self.session_id is not None) != has_session:
            raise AssertionError(f"session_id={self.session_id!r} invalid in phase {self.phase}")
        if (self.duration_minutes is not None) != (self.phase is Phase.CONFIRMING):
            raise AssertionError(f"duration_minutes={self.duration_minutes!r} invalid in phase {self.phase}")


def duration_label(minutes: int) -> str:
    """Human label for a stopped session's duration.

    Uses the backend's integer minute count as-is.
    """
    if minutes < 1:
        return "less than a minute"
    if minutes == 1:
        return "about 1 minute"
    return f"about {minutes} minutes"
