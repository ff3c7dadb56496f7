"""
Retry control value returned from a Feature's ``on_error`` hook.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class RetrySignal:
    """Ask the runtime to re-run the pipeline after ``delay`` seconds."""

    delay: float = 0.0
    max_attempts: Optional[int] = None

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError("Retry delay must be zero or positive.")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 when provided.")


# Immediate, unbounded retry.
RETRY = RetrySignal()


def retry(
    *,
    delay_ms: Optional[float] = None,
    delay: Optional[float] = None,
    max_attempts: Optional[int] = None,
) -> RetrySignal:
    """
    Build a retry signal.

    ``delay_ms`` follows the wire contract (milliseconds); ``delay`` takes
    seconds. Passing neither retries immediately.
    """

    if delay_ms is not None and delay is not None:
        raise ValueError("Pass either delay_ms or delay, not both.")
    seconds = delay if delay is not None else (delay_ms or 0.0) / 1000.0
    if seconds == 0 and max_attempts is None:
        return RETRY
    return RetrySignal(delay=seconds, max_attempts=max_attempts)


def is_retry_signal(value: Any) -> bool:
    return isinstance(value, RetrySignal)


__all__ = ["RETRY", "RetrySignal", "retry", "is_retry_signal"]
