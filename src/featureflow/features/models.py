"""
Feature descriptors built once by the scanner and shared by every request.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple, Union

from ..runtime.context import Context
from .convention import ConventionInfo, HttpMethod

StepHandler = Callable[[Context, Any, Any], Union[Any, Awaitable[Any]]]
AsyncTaskHandler = Callable[[Context], Union[None, Awaitable[None]]]
ContextInitializer = Callable[[Context, Any, Any], Union[None, Awaitable[None]]]
ErrorHandler = Callable[[BaseException, Context, Any, Any], Union[Any, Awaitable[Any]]]
Middleware = Callable[[Any, Any], Union[None, Awaitable[None]]]

StepsSource = Union[str, Path, Sequence[Any]]


@dataclass(frozen=True)
class StepDescriptor:
    order: int
    name: str
    handler: StepHandler
    source: Optional[Path] = None


@dataclass(frozen=True)
class AsyncTaskDescriptor:
    name: str
    handler: AsyncTaskHandler
    source: Optional[Path] = None


@dataclass
class FeatureConfig:
    """Explicit overrides an ``index.py`` may declare. Unset fields fall back to convention."""

    method: Optional[Union[str, HttpMethod]] = None
    path: Optional[str] = None
    steps: Optional[StepsSource] = None
    async_tasks: Optional[StepsSource] = None
    context_initializer: Optional[ContextInitializer] = None
    on_error: Optional[ErrorHandler] = None
    middlewares: Optional[Sequence[Middleware]] = None


def feature(
    *,
    method: Optional[Union[str, HttpMethod]] = None,
    path: Optional[str] = None,
    steps: Optional[StepsSource] = None,
    async_tasks: Optional[StepsSource] = None,
    context_initializer: Optional[ContextInitializer] = None,
    on_error: Optional[ErrorHandler] = None,
    middlewares: Optional[Sequence[Middleware]] = None,
) -> FeatureConfig:
    """
    Declare a Feature inside ``index.py``.

    Example::

        feature = featureflow.feature(
            context_initializer=lambda ctx, req, res: ctx.update(order=req.body),
            on_error=rollback_and_respond,
        )
    """

    return FeatureConfig(
        method=method,
        path=path,
        steps=steps,
        async_tasks=async_tasks,
        context_initializer=context_initializer,
        on_error=on_error,
        middlewares=middlewares,
    )


def identity_initializer(ctx: Context, req: Any, res: Any) -> None:
    return None


@dataclass(frozen=True)
class FeatureDescriptor:
    convention: ConventionInfo
    steps: Tuple[StepDescriptor, ...] = ()
    async_tasks: Tuple[AsyncTaskDescriptor, ...] = ()
    context_initializer: Optional[ContextInitializer] = None
    on_error: Optional[ErrorHandler] = None
    middlewares: Tuple[Middleware, ...] = ()
    source_dir: Optional[Path] = None
    explicit: bool = False

    @property
    def method(self) -> HttpMethod:
        return self.convention.method

    @property
    def path(self) -> str:
        return self.convention.path

    @property
    def key(self) -> str:
        return f"{self.method.value} {self.path}"

    def info(self) -> dict[str, Any]:
        return {
            "method": self.method.value,
            "path": self.path,
            "steps": len(self.steps),
            "async_tasks": len(self.async_tasks),
            "has_error_handler": self.on_error is not None,
            "middlewares": len(self.middlewares),
            "explicit": self.explicit,
        }


__all__ = [
    "AsyncTaskDescriptor",
    "AsyncTaskHandler",
    "ContextInitializer",
    "ErrorHandler",
    "FeatureConfig",
    "FeatureDescriptor",
    "Middleware",
    "StepDescriptor",
    "StepHandler",
    "feature",
    "identity_initializer",
]
