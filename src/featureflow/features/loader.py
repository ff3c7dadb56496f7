"""
Handler loading for scanned feature trees.

The scanner never imports files itself; it asks a ``HandlerLoader`` for the
object behind a path. ``PythonFileLoader`` imports ``.py`` files with
``importlib``; ``MappingLoader`` serves a registry built ahead of time.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType, SimpleNamespace
from typing import Any, Callable, Dict, Mapping, Optional, Protocol, Union

from ..errors import ConventionError
from .models import FeatureConfig

logger = logging.getLogger("featureflow.loader")

HANDLER_ATTRIBUTE = "handler"
FEATURE_ATTRIBUTE = "feature"
_FEATURE_FIELDS = ("method", "path", "steps", "async_tasks", "context_initializer", "on_error", "middlewares")


class HandlerLoader(Protocol):
    def load(self, path: Path) -> Any: ...


class PythonFileLoader:
    """Import feature, step and task files by path. Each path is imported once."""

    def __init__(self, module_prefix: str = "featureflow_features") -> None:
        self.module_prefix = module_prefix
        self._modules: Dict[Path, ModuleType] = {}

    def _module_name(self, path: Path) -> str:
        digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:12]
        stem = "".join(ch if ch.isalnum() else "_" for ch in path.stem)
        return f"{self.module_prefix}_{stem}_{digest}"

    def load(self, path: Path) -> ModuleType:
        resolved = Path(path).resolve()
        cached = self._modules.get(resolved)
        if cached is not None:
            return cached
        name = self._module_name(resolved)
        spec = importlib.util.spec_from_file_location(name, resolved)
        if spec is None or spec.loader is None:
            raise ConventionError(f"Cannot import {resolved}", location=resolved)
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(name, None)
            raise ConventionError(f"Failed to load {resolved.name}: {exc}", location=resolved) from exc
        logger.debug("Imported %s as %s", resolved, name)
        self._modules[resolved] = module
        return module


class MappingLoader:
    """
    Serve handlers from an explicit registry keyed by file path.

    Values may be modules, namespaces, plain callables, ``FeatureConfig``
    records or dicts of feature fields.
    """

    def __init__(self, registry: Mapping[Union[str, Path], Any]) -> None:
        self._registry: Dict[Path, Any] = {Path(key).resolve(): value for key, value in registry.items()}

    def load(self, path: Path) -> Any:
        resolved = Path(path).resolve()
        if resolved not in self._registry:
            raise ConventionError(f"No registered handler for {resolved}", location=resolved)
        value = self._registry[resolved]
        if isinstance(value, dict):
            return SimpleNamespace(**value)
        return value


def load_handler(loader: HandlerLoader, path: Path, kind: str) -> Callable[..., Any]:
    loaded = loader.load(path)
    if isinstance(loaded, (ModuleType, SimpleNamespace)):
        handler = getattr(loaded, HANDLER_ATTRIBUTE, None)
    else:
        handler = loaded
    if not callable(handler):
        raise ConventionError(
            f"{kind.capitalize()} file must export a callable named '{HANDLER_ATTRIBUTE}': {Path(path).name}",
            location=Path(path),
        )
    return handler


def load_feature_config(loader: HandlerLoader, path: Path) -> FeatureConfig:
    """Read an index module into a ``FeatureConfig``, from ``feature = feature(...)`` or module-level names."""

    loaded = loader.load(path)
    return feature_config_from(loaded, location=Path(path))


def feature_config_from(loaded: Any, location: Optional[Path] = None) -> FeatureConfig:
    if isinstance(loaded, FeatureConfig):
        return loaded
    declared = getattr(loaded, FEATURE_ATTRIBUTE, None)
    if isinstance(declared, FeatureConfig):
        return declared

    values: Dict[str, Any] = {}
    for name in _FEATURE_FIELDS:
        value = getattr(loaded, name, None)
        # `from os import path` and similar imports are not overrides
        values[name] = None if isinstance(value, ModuleType) else value
    for name in ("method", "path"):
        if values[name] is not None and not isinstance(values[name], str):
            raise ConventionError(f"Feature '{name}' must be a string.", location=location)
    for name in ("context_initializer", "on_error"):
        if values[name] is not None and not callable(values[name]):
            raise ConventionError(f"Feature '{name}' must be callable.", location=location)
    middlewares = values["middlewares"]
    if middlewares is not None:
        if not isinstance(middlewares, (list, tuple)) or not all(callable(m) for m in middlewares):
            raise ConventionError("Feature 'middlewares' must be a list of callables.", location=location)
    return FeatureConfig(**values)


__all__ = [
    "HandlerLoader",
    "MappingLoader",
    "PythonFileLoader",
    "feature_config_from",
    "load_feature_config",
    "load_handler",
]
