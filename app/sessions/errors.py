"""Error types for the session lifecycle."""

from app.sessions.models import Action, Phase


class ActionNotAvailableError(RuntimeError):
    """Raised when a control is used in a phase that does not offer it.

    Also raised while another mutating request is still in flight.

    Attributes:
        action: Action that was attempted
        phase: Phase the lifecycle was in
    """

    def __init__(self, action: Action, phase: Phase, *, in_flight: Action | None = None) -> None:
        self.action = action
        self.phase = phase
        self.in_flight = in_flight
        reason = f"'{in_flight}' is still in flight" if in_flight else f"not available in phase '{phase}'"
        super().__init__(f"Action '{action}' {reason}")
