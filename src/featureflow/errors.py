"""
Custom error types for the featureflow runtime.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


@dataclass
class FeatureflowError(Exception):
    """Base error with a stable code and diagnostics payload."""

    message: str
    code: str = "FF-1000"
    diagnostics: list[dict[str, Any]] | None = None

    def __post_init__(self) -> None:  # pragma: no cover - trivial
        if self.diagnostics is None:
            self.diagnostics = [{"code": self.code, "message": self.message, "severity": "error"}]

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass
class ConventionError(FeatureflowError):
    """Raised at scan time when a feature tree cannot be turned into routes."""

    code: str = "FF-1101"
    location: Optional[Path] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.location is not None:
            return f"{self.message} (at {self.location})"
        return self.message


@dataclass
class MissingResponseError(FeatureflowError):
    """Raised when every step ran but none of them sent a response."""

    message: str = (
        "Feature completed without sending a response. "
        "Make sure a step calls res.send(), res.json() or res.end()."
    )
    code: str = "FF-1201"


@dataclass
class ResponseAlreadySentError(FeatureflowError):
    """Raised on a second terminal write to the same response."""

    message: str = "Response has already been sent."
    code: str = "FF-1202"


@dataclass
class AsyncTaskError(FeatureflowError):
    """Record of a failed async task. Never raised into the request."""

    code: str = "FF-1301"
    task_name: str = ""
    feature_key: str = ""
    original: BaseException | None = None


@dataclass
class HttpError(FeatureflowError):
    """Operational error carrying the HTTP status a step wants to surface."""

    status_code: int = 500
    suggestion: Optional[str] = None
    code: str = "FF-HTTP"

    @property
    def is_operational(self) -> bool:
        return True


@dataclass
class ValidationError(HttpError):
    message: str = "Validation failed"
    status_code: int = 400
    validation_errors: dict[str, list[str]] | None = None

    def __post_init__(self) -> None:
        if self.suggestion is None:
            self.suggestion = (
                "Check the validationErrors field for details on which fields failed validation."
                if self.validation_errors
                else "Verify that all required fields are present and have valid values."
            )
        super().__post_init__()


@dataclass
class BusinessError(HttpError):
    status_code: int = 400
    error_code: Optional[str] = None
    suggestion: Optional[str] = "Review your request data and ensure it meets the business rules."


@dataclass
class UnauthorizedError(HttpError):
    message: str = "Unauthorized"
    status_code: int = 401
    suggestion: Optional[str] = "Include valid authentication credentials in your request."


@dataclass
class ForbiddenError(HttpError):
    message: str = "Forbidden"
    status_code: int = 403
    suggestion: Optional[str] = "Ensure your account has the permissions needed for this resource."


@dataclass
class NotFoundError(HttpError):
    message: str = "Not found"
    status_code: int = 404
    suggestion: Optional[str] = "Check the URL path and ensure the requested resource exists."


@dataclass
class ConflictError(HttpError):
    message: str = "Conflict"
    status_code: int = 409
    suggestion: Optional[str] = "The request conflicts with the current state of the resource."


@dataclass
class TooManyRequestsError(HttpError):
    message: str = "Too many requests"
    status_code: int = 429
    retry_after: Optional[float] = None

    def __post_init__(self) -> None:
        if self.suggestion is None:
            self.suggestion = (
                f"Rate limit exceeded. Please retry after {self.retry_after} seconds."
                if self.retry_after is not None
                else "Rate limit exceeded. Please wait before sending more requests."
            )
        super().__post_init__()


@dataclass
class InternalServerError(HttpError):
    message: str = "Internal server error"
    status_code: int = 500
    suggestion: Optional[str] = "An unexpected error occurred on the server. Please try again later."


@dataclass
class ServiceUnavailableError(HttpError):
    message: str = "Service unavailable"
    status_code: int = 503
    suggestion: Optional[str] = "The service is temporarily unavailable. Please try again shortly."


def is_http_error(error: BaseException) -> bool:
    return isinstance(error, HttpError)


def is_operational_error(error: BaseException) -> bool:
    return isinstance(error, HttpError) and error.is_operational
