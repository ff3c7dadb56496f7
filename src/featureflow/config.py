"""
Centralized configuration loader for the feature runtime.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = ("__pycache__", ".git", "node_modules", ".venv", "venv", "dist", "build")
DEFAULT_INDEX_PATTERNS: Tuple[str, ...] = ("index.py",)
DEFAULT_ASYNC_FAILURE_HISTORY = 50


def _env_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _env_optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or not str(value).strip():
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _env_int(value: Optional[str], default: int) -> int:
    parsed = _env_optional_int(value)
    return default if parsed is None else parsed


@dataclass
class FeatureflowConfig:
    features_dir: Optional[str] = None
    debug: bool = False
    max_total_retries: Optional[int] = None
    include_error_stack: bool = False
    exclude_dirs: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    index_patterns: Tuple[str, ...] = field(default=DEFAULT_INDEX_PATTERNS)
    async_failure_history: int = DEFAULT_ASYNC_FAILURE_HISTORY


def load_config(env: Optional[dict] = None) -> FeatureflowConfig:
    environ = env if env is not None else os.environ
    raw_excludes = environ.get("FF_EXCLUDE_DIRS")
    exclude_dirs = DEFAULT_EXCLUDE_DIRS
    if raw_excludes:
        exclude_dirs = tuple(part.strip() for part in raw_excludes.split(",") if part.strip())

    return FeatureflowConfig(
        features_dir=environ.get("FF_FEATURES_DIR") or None,
        debug=_env_bool(environ.get("FF_DEBUG")),
        max_total_retries=_env_optional_int(environ.get("FF_MAX_TOTAL_RETRIES")),
        include_error_stack=_env_bool(environ.get("FF_INCLUDE_ERROR_STACK")),
        exclude_dirs=exclude_dirs,
        async_failure_history=_env_int(environ.get("FF_ASYNC_FAILURE_HISTORY"), DEFAULT_ASYNC_FAILURE_HISTORY),
    )
