"""
Step pipeline executor: drive one request through a Feature's ordered steps.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Mapping, Optional

from ..config import FeatureflowConfig
from ..errors import MissingResponseError
from ..features.models import FeatureDescriptor, StepDescriptor
from ..observability.metrics import MetricsRegistry, default_metrics
from ..runtime.awaitables import maybe_await
from ..runtime.context import Context
from .models import ErrorOutcome, PipelineResult, RunStatus, StepResult
from .recovery import ErrorRecoveryCoordinator
from .tasks import AsyncTaskDispatcher

logger = logging.getLogger("featureflow.pipeline")

UnhandledErrorHandler = Callable[[BaseException, Any, Any], Awaitable[None]]


class PipelineExecutor:
    """
    Run ``context_initializer`` and then every step in order.

    A step ends the pipeline by sending a response or by returning ``False``.
    Exceptions go to the recovery coordinator, which may re-run the whole
    pipeline with the same Context. Async tasks are dispatched exactly once,
    whatever the outcome.
    """

    def __init__(
        self,
        config: Optional[FeatureflowConfig] = None,
        coordinator: Optional[ErrorRecoveryCoordinator] = None,
        dispatcher: Optional[AsyncTaskDispatcher] = None,
        services: Optional[Mapping[str, Any]] = None,
        metrics: Optional[MetricsRegistry] = None,
    ) -> None:
        self.config = config or FeatureflowConfig()
        self.metrics = metrics or default_metrics
        self.coordinator = coordinator or ErrorRecoveryCoordinator(max_total_retries=self.config.max_total_retries)
        self.dispatcher = dispatcher or AsyncTaskDispatcher(
            history=self.config.async_failure_history, metrics=self.metrics
        )
        self.services = dict(services or {})

    def new_context(self) -> Context:
        return Context(self.services)

    async def run(
        self,
        feature: FeatureDescriptor,
        req: Any,
        res: Any,
        on_unhandled: Optional[UnhandledErrorHandler] = None,
    ) -> PipelineResult:
        """
        Execute ``feature`` for one request.

        Feature middlewares run once, then the initializer and steps, which a
        retry may repeat. An unhandled failure is awaited through
        ``on_unhandled`` when given; without it the original exception is
        re-raised. Async tasks are dispatched once the response decision is
        final, so after ``on_unhandled`` has returned.
        """

        result = PipelineResult(feature_key=feature.key)
        ctx = self.new_context()
        started = time.perf_counter()
        pipeline_started = False
        try:
            try:
                await self._run_middlewares(feature, req, res)
            except Exception as exc:
                result.error = exc
                result.status = RunStatus.FAILED
                if on_unhandled is None:
                    raise
                await on_unhandled(exc, req, res)
                return result
            if res.sent:
                self._log("Middleware of %s sent the response", feature.key)
                result.status = RunStatus.RESPONDED
                return result

            pipeline_started = True
            while True:
                result.attempts += 1
                try:
                    stopped = await self._run_once(feature, ctx, req, res, result)
                except Exception as exc:
                    result.error = exc
                    decision = await self.coordinator.handle(feature, exc, ctx, req, res, result.attempts)
                    if decision.outcome == ErrorOutcome.RETRY and decision.signal is not None:
                        self.metrics.record_retry(feature.key)
                        self._log(
                            "Retrying %s (attempt %d) after %.3fs",
                            feature.key,
                            result.attempts + 1,
                            decision.signal.delay,
                        )
                        if decision.signal.delay > 0:
                            await asyncio.sleep(decision.signal.delay)
                        continue
                    if decision.outcome == ErrorOutcome.RESPONDED:
                        result.status = RunStatus.RECOVERED
                        break
                    result.status = RunStatus.FAILED
                    logger.debug("Unhandled failure in %s: %s", feature.key, decision.reason)
                    if on_unhandled is None:
                        raise
                    await on_unhandled(exc, req, res)
                    break
                result.error = None
                result.status = RunStatus.STOPPED if stopped else RunStatus.RESPONDED
                break
        finally:
            result.duration_seconds = time.perf_counter() - started
            status = result.status or RunStatus.FAILED
            self.metrics.record_feature_run(feature.key, status.value, result.duration_seconds)
            self._log(
                "%s finished: %s after %d attempt(s) in %.2fms",
                feature.key,
                status.value,
                result.attempts,
                result.duration_seconds * 1000,
            )
            if pipeline_started:
                self.dispatcher.dispatch(feature, ctx)
        return result

    async def _run_middlewares(self, feature: FeatureDescriptor, req: Any, res: Any) -> None:
        for middleware in feature.middlewares:
            await maybe_await(middleware(req, res))
            if res.sent:
                return

    async def _run_once(
        self, feature: FeatureDescriptor, ctx: Context, req: Any, res: Any, result: PipelineResult
    ) -> bool:
        """One pass over the pipeline. Returns True when a step asked to stop."""

        if feature.context_initializer is not None:
            await maybe_await(feature.context_initializer(ctx, req, res))
            if res.sent:
                return False

        for step in feature.steps:
            outcome = await self._run_step(feature, step, ctx, req, res, result)
            if res.sent:
                return False
            if outcome is False:
                self._log("Step %s of %s stopped the pipeline", step.name, feature.key)
                return True

        raise MissingResponseError()

    async def _run_step(
        self,
        feature: FeatureDescriptor,
        step: StepDescriptor,
        ctx: Context,
        req: Any,
        res: Any,
        result: PipelineResult,
    ) -> Any:
        keys_before = set(ctx.keys())
        started = time.perf_counter()
        record = StepResult(order=step.order, name=step.name, attempt=result.attempts, duration_seconds=0.0)
        result.steps.append(record)
        try:
            return await maybe_await(step.handler(ctx, req, res))
        except Exception as exc:
            record.error = f"{exc.__class__.__name__}: {exc}"
            raise
        finally:
            record.duration_seconds = time.perf_counter() - started
            record.added_keys = sorted(set(ctx.keys()) - keys_before)
            self.metrics.record_step(feature.key, step.name, record.duration_seconds, failed=record.error is not None)
            self._log(
                "[%s] step %d %s took %.2fms%s",
                feature.key,
                step.order,
                step.name,
                record.duration_seconds * 1000,
                f"; context added {record.added_keys}" if record.added_keys else "",
            )

    def _log(self, message: str, *args: Any) -> None:
        logger.log(logging.INFO if self.config.debug else logging.DEBUG, message, *args)


__all__ = ["PipelineExecutor"]
