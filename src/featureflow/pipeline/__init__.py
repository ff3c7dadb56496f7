from .executor import PipelineExecutor
from .models import ErrorOutcome, PipelineResult, RecoveryDecision, RunStatus, StepResult
from .recovery import ErrorRecoveryCoordinator
from .tasks import AsyncTaskDispatcher

__all__ = [
    "AsyncTaskDispatcher",
    "ErrorOutcome",
    "ErrorRecoveryCoordinator",
    "PipelineExecutor",
    "PipelineResult",
    "RecoveryDecision",
    "RunStatus",
    "StepResult",
]
