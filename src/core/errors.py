"""Error taxonomy for the career content engine.

Every public operation fails with one of these. The ``kind`` tag drives retry
policy: only kinds in RETRYABLE_KINDS are retried by the RetryExecutor.
"""

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    QUOTA_EXCEEDED = "quota_exceeded"
    MALFORMED_ARTIFACT = "malformed_artifact"
    GENERATION_UNAVAILABLE = "generation_unavailable"
    TRANSPORT = "transport"


RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.MALFORMED_ARTIFACT, ErrorKind.TRANSPORT}
)


class CareerEngineError(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class Unauthenticated(CareerEngineError):
    kind = ErrorKind.UNAUTHENTICATED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class NotFound(CareerEngineError):
    kind = ErrorKind.NOT_FOUND


class InvalidInput(CareerEngineError):
    kind = ErrorKind.INVALID_INPUT


class QuotaExceeded(CareerEngineError):
    """Raised when a subject already holds max_count artifacts in the window."""

    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, max_count: int, window: str, label: str = "requests") -> None:
        self.max_count = max_count
        self.window = window
        super().__init__(
            f"Rate limit reached ({max_count} {label} {window}). Please try again later."
        )


class MalformedArtifact(CareerEngineError):
    """AI output failed parsing or schema validation.

    ``field`` names the offending field, ``index`` the 0-based item position
    for sequence clauses (e.g. quiz question).
    """

    kind = ErrorKind.MALFORMED_ARTIFACT

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        index: int | None = None,
    ) -> None:
        self.field = field
        self.index = index
        super().__init__(message)


class TransportError(CareerEngineError):
    kind = ErrorKind.TRANSPORT


class GenerationUnavailable(CareerEngineError):
    """All generation attempts failed."""

    kind = ErrorKind.GENERATION_UNAVAILABLE

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed after {attempts} attempts: {last_error}")
