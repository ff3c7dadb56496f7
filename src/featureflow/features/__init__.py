from .convention import ConventionInfo, HttpMethod, clear_cache, infer_features_base, resolve
from .discovery import discover_async_tasks, discover_steps
from .loader import HandlerLoader, MappingLoader, PythonFileLoader
from .models import (
    AsyncTaskDescriptor,
    FeatureConfig,
    FeatureDescriptor,
    StepDescriptor,
    feature,
)
from .scanner import FeatureScanner, ScanOptions, scan_features

__all__ = [
    "AsyncTaskDescriptor",
    "ConventionInfo",
    "FeatureConfig",
    "FeatureDescriptor",
    "FeatureScanner",
    "HandlerLoader",
    "HttpMethod",
    "MappingLoader",
    "PythonFileLoader",
    "ScanOptions",
    "StepDescriptor",
    "clear_cache",
    "discover_async_tasks",
    "discover_steps",
    "feature",
    "infer_features_base",
    "resolve",
    "scan_features",
]
