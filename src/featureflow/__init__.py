"""
featureflow: folder-convention HTTP features built from ordered steps.
"""

from .config import FeatureflowConfig, load_config
from .errors import (
    AsyncTaskError,
    BusinessError,
    ConflictError,
    ConventionError,
    FeatureflowError,
    ForbiddenError,
    HttpError,
    InternalServerError,
    MissingResponseError,
    NotFoundError,
    ResponseAlreadySentError,
    ServiceUnavailableError,
    TooManyRequestsError,
    UnauthorizedError,
    ValidationError,
)
from .features import FeatureDescriptor, FeatureScanner, ScanOptions, feature, scan_features
from .pipeline import AsyncTaskDispatcher, ErrorRecoveryCoordinator, PipelineExecutor
from .runtime import RETRY, Context, InMemoryStore, RetrySignal, Store, retry
from .version import __version__

__all__ = [
    "AsyncTaskDispatcher",
    "AsyncTaskError",
    "BusinessError",
    "ConflictError",
    "Context",
    "ConventionError",
    "ErrorRecoveryCoordinator",
    "FeatureDescriptor",
    "FeatureScanner",
    "FeatureflowConfig",
    "FeatureflowError",
    "ForbiddenError",
    "HttpError",
    "InMemoryStore",
    "InternalServerError",
    "MissingResponseError",
    "NotFoundError",
    "PipelineExecutor",
    "RETRY",
    "ResponseAlreadySentError",
    "RetrySignal",
    "ScanOptions",
    "ServiceUnavailableError",
    "Store",
    "TooManyRequestsError",
    "UnauthorizedError",
    "ValidationError",
    "__version__",
    "feature",
    "load_config",
    "retry",
    "scan_features",
]
