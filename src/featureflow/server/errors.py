"""Global error rendering for the FastAPI adapter."""

from __future__ import annotations

import logging
import traceback
from typing import Any, Awaitable, Callable, Optional

from ..errors import BusinessError, HttpError, TooManyRequestsError, ValidationError, is_operational_error
from ..runtime.awaitables import maybe_await
from .schemas import ErrorBody, ErrorResponse

logger = logging.getLogger("featureflow.server")

GlobalErrorHandler = Callable[[BaseException, Any, Any], Any]


def build_error_response(error: BaseException, include_stack: bool = False) -> ErrorResponse:
    status_code = error.status_code if isinstance(error, HttpError) else 500
    code: Optional[str] = None
    if isinstance(error, BusinessError) and error.error_code:
        code = error.error_code
    elif isinstance(error, HttpError):
        code = error.__class__.__name__
    body = ErrorBody(
        message=str(error) or "Internal server error",
        statusCode=status_code,
        code=code,
        validationErrors=error.validation_errors if isinstance(error, ValidationError) else None,
        suggestion=error.suggestion if isinstance(error, HttpError) else None,
        stack="".join(traceback.format_exception(type(error), error, error.__traceback__)) if include_stack else None,
    )
    return ErrorResponse(error=body)


def send_error_response(error: BaseException, req: Any, res: Any, include_stack: bool = False) -> None:
    """Write the standard JSON error envelope unless a response already went out."""

    if is_operational_error(error):
        logger.info("%s %s -> %s", getattr(req, "method", "?"), getattr(req, "path", "?"), error)
    else:
        logger.error(
            "Unhandled error for %s %s", getattr(req, "method", "?"), getattr(req, "path", "?"), exc_info=error
        )
    if res.sent:
        logger.warning("Response already sent; dropping error response for %s", type(error).__name__)
        return
    if isinstance(error, TooManyRequestsError) and error.retry_after is not None:
        res.set_header("Retry-After", str(int(error.retry_after)))
    payload = build_error_response(error, include_stack=include_stack)
    res.status(payload.error.status_code).json(payload.model_dump(by_alias=True, exclude_none=True))


def make_default_error_handler(include_stack: bool = False) -> GlobalErrorHandler:
    def default_error_handler(error: BaseException, req: Any, res: Any) -> None:
        send_error_response(error, req, res, include_stack=include_stack)

    return default_error_handler


default_error_handler = make_default_error_handler()


def wrap_error_handler(handler: GlobalErrorHandler) -> Callable[[BaseException, Any, Any], Awaitable[None]]:
    """
    Guard a user error handler: if it raises or leaves the response unsent,
    a generic JSON 500 is written instead.
    """

    async def guarded(error: BaseException, req: Any, res: Any) -> None:
        try:
            await maybe_await(handler(error, req, res))
        except Exception:
            logger.error("Global error handler raised while handling %s", type(error).__name__, exc_info=True)
        if not res.sent:
            logger.warning("Global error handler did not send a response; falling back to 500")
            res.status(500).json(
                ErrorResponse(error=ErrorBody(message="Internal server error", statusCode=500)).model_dump(
                    by_alias=True, exclude_none=True
                )
            )

    return guarded


__all__ = [
    "GlobalErrorHandler",
    "build_error_response",
    "default_error_handler",
    "make_default_error_handler",
    "send_error_response",
    "wrap_error_handler",
]
