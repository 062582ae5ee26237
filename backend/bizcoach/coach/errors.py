from __future__ import annotations

from enum import Enum


class ModelErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


# Failures another model candidate might not hit
RETRYABLE_KINDS = frozenset(
    {
        ModelErrorKind.NOT_FOUND,
        ModelErrorKind.BAD_REQUEST,
        ModelErrorKind.RATE_LIMITED,
        ModelErrorKind.UNAVAILABLE,
        ModelErrorKind.UNKNOWN,
    }
)


def classify_status(status_code: int | None, message: str = "") -> ModelErrorKind:
    """Map an upstream HTTP status (and error text) onto a failure kind."""
    lowered = message.lower()
    if "not_found_error" in lowered or ("model:" in lowered and "not found" in lowered):
        return ModelErrorKind.NOT_FOUND
    if status_code is None:
        return ModelErrorKind.UNKNOWN
    if status_code in (401, 403):
        return ModelErrorKind.AUTHENTICATION
    if status_code == 404:
        return ModelErrorKind.NOT_FOUND
    if status_code == 429:
        return ModelErrorKind.RATE_LIMITED
    if status_code == 400:
        return ModelErrorKind.BAD_REQUEST
    # 529 is Anthropic's "overloaded", a service-unavailable condition
    if status_code in (503, 529):
        return ModelErrorKind.UNAVAILABLE
    if status_code >= 500:
        return ModelErrorKind.SERVER_ERROR
    return ModelErrorKind.UNKNOWN


class ModelCallError(Exception):
    """A model-service call failed."""

    def __init__(
        self,
        message: str,
        *,
        kind: ModelErrorKind = ModelErrorKind.UNKNOWN,
        status_code: int | None = None,
        model: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.model = model

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class AllModelsFailedError(ModelCallError):
    def __init__(self, attempts: list[tuple[str, Exception]]):
        if attempts:
            last_model, last_error = attempts[-1]
            message = f"All models failed. Last error from {last_model}: {last_error}"
        else:
            last_model, message = None, "All models failed. No candidate models configured"
        super().__init__(message, kind=ModelErrorKind.UNAVAILABLE, model=last_model)
        self.attempts = attempts


class ModelConfigurationError(Exception):
    """The model service cannot be reached as configured (missing API key)."""


class CoachingError(Exception):
    """Base class for coaching-session failures reported to the caller."""


class PreconditionError(CoachingError):
    """The requested operation is not valid in the session's current state."""


class CoachResponseError(CoachingError):
    """The coach could not produce a reply because the model call failed."""

    def __init__(self, message: str, cause: ModelCallError):
        super().__init__(message)
        self.cause = cause


class SessionNotFoundError(CoachingError):
    pass


class SessionAccessError(CoachingError):
    """The session exists but belongs to another user."""


class SessionConflictError(CoachingError):
    """The session was modified by another request since it was loaded."""
