"""
Fire-and-forget dispatch of a Feature's async tasks.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from typing import Deque, List, Optional, Set

from ..config import DEFAULT_ASYNC_FAILURE_HISTORY
from ..errors import AsyncTaskError
from ..features.models import AsyncTaskDescriptor, FeatureDescriptor
from ..observability.metrics import MetricsRegistry, default_metrics
from ..runtime.context import Context

logger = logging.getLogger("featureflow.tasks")


class AsyncTaskDispatcher:
    """
    Launch every async task of a Feature without waiting for it.

    A failing task is logged and recorded in ``recent_failures``; it never
    affects its siblings or the response already sent.
    """

    def __init__(
        self,
        history: int = DEFAULT_ASYNC_FAILURE_HISTORY,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.metrics = metrics or default_metrics
        self.recent_failures: Deque[AsyncTaskError] = deque(maxlen=max(history, 0))
        self._running: Set[asyncio.Task] = set()

    @property
    def running(self) -> int:
        return len(self._running)

    def dispatch(self, feature: FeatureDescriptor, ctx: Context) -> List[asyncio.Task]:
        tasks: List[asyncio.Task] = []
        for descriptor in feature.async_tasks:
            task = asyncio.create_task(
                self._run_task(feature.key, descriptor, ctx),
                name=f"featureflow:{feature.key}:{descriptor.name}",
            )
            # the loop only keeps weak references to tasks
            self._running.add(task)
            task.add_done_callback(self._running.discard)
            tasks.append(task)
        if tasks:
            logger.debug("Dispatched %d async tasks for %s", len(tasks), feature.key)
        return tasks

    async def _run_task(self, feature_key: str, descriptor: AsyncTaskDescriptor, ctx: Context) -> None:
        try:
            if inspect.iscoroutinefunction(descriptor.handler):
                await descriptor.handler(ctx)
            else:
                value = await asyncio.to_thread(descriptor.handler, ctx)
                if inspect.isawaitable(value):
                    await value
        except Exception as exc:
            logger.error(
                "Async task %s failed for %s: %s", descriptor.name, feature_key, exc, exc_info=True
            )
            self.recent_failures.append(
                AsyncTaskError(
                    message=str(exc) or exc.__class__.__name__,
                    task_name=descriptor.name,
                    feature_key=feature_key,
                    original=exc,
                )
            )
            self.metrics.record_async_task(feature_key, descriptor.name, "failed")
        else:
            self.metrics.record_async_task(feature_key, descriptor.name, "succeeded")

    async def drain(self) -> None:
        """Wait for tasks that are still running. Used at shutdown and in tests."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)


__all__ = ["AsyncTaskDispatcher"]
