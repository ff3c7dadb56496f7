"""
Execution records produced by the step pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..runtime.retries import RetrySignal


class ErrorOutcome(str, Enum):
    RETRY = "retry"
    RESPONDED = "responded"
    UNHANDLED = "unhandled"


class RunStatus(str, Enum):
    RESPONDED = "responded"
    STOPPED = "stopped"
    RECOVERED = "recovered"
    FAILED = "failed"


@dataclass(frozen=True)
class RecoveryDecision:
    outcome: ErrorOutcome
    signal: Optional[RetrySignal] = None
    reason: Optional[str] = None

    @classmethod
    def retry(cls, signal: RetrySignal) -> "RecoveryDecision":
        return cls(ErrorOutcome.RETRY, signal=signal)

    @classmethod
    def responded(cls) -> "RecoveryDecision":
        return cls(ErrorOutcome.RESPONDED)

    @classmethod
    def unhandled(cls, reason: Optional[str] = None) -> "RecoveryDecision":
        return cls(ErrorOutcome.UNHANDLED, reason=reason)


@dataclass
class StepResult:
    order: int
    name: str
    attempt: int
    duration_seconds: float
    added_keys: List[str] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class PipelineResult:
    feature_key: str
    status: Optional[RunStatus] = None
    attempts: int = 0
    steps: List[StepResult] = field(default_factory=list)
    error: Optional[BaseException] = None
    duration_seconds: float = 0.0

    @property
    def stopped(self) -> bool:
        return self.status == RunStatus.STOPPED

    @property
    def succeeded(self) -> bool:
        return self.status in (RunStatus.RESPONDED, RunStatus.STOPPED, RunStatus.RECOVERED)


__all__ = ["ErrorOutcome", "PipelineResult", "RecoveryDecision", "RunStatus", "StepResult"]
