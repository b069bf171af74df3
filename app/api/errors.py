"""Error types for the tracker backend client.

Every failure talking to the backend surfaces as a TrackerApiError so the
session panel and the stats panel can show it inline and let the user retry.
"""

ALREADY_STOPPED_MESSAGE = "session already stopped"


class TrackerApiError(RuntimeError):
    """Base exception for backend client errors."""


class TransportError(TrackerApiError):
    """Raised when the backend could not be reached (connect, timeout, protocol)."""


class BackendResponseError(TrackerApiError):
    """Raised when the backend answers with a non-2xx status.

    Attributes:
        path: API path that was requested
        status_code: HTTP status code
        body: Raw response body, kept verbatim as diagnostic text
    """

    def __init__(self, path: str, status_code: int, body: str) -> None:
        self.path = path
        self.status_code = status_code
        self.body = body
        super().__init__(f"API {path} failed ({status_code}): {body}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_already_stopped(self) -> bool:
        """True when a stop was rejected because the session is already closed."""
        return self.status_code == 400 and ALREADY_STOPPED_MESSAGE in self.body.lower()


class InvalidResponseError(TrackerApiError):
    """Raised when a 2xx response body does not match the expected schema."""
