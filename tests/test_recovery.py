import asyncio

import pytest

from featureflow.config import FeatureflowConfig
from featureflow.errors import ConflictError
from featureflow.features.convention import ConventionInfo, HttpMethod
from featureflow.features.models import FeatureDescriptor, StepDescriptor
from featureflow.observability.metrics import MetricsRegistry
from featureflow.pipeline import ErrorOutcome, ErrorRecoveryCoordinator, PipelineExecutor, RunStatus
from featureflow.runtime import RETRY, InMemoryStore, retry
from featureflow.server.http import FeatureRequest, FeatureResponse


def _feature(*handlers, initializer=None, on_error=None):
    return FeatureDescriptor(
        convention=ConventionInfo(method=HttpMethod.POST, path="/payments"),
        steps=tuple(
            StepDescriptor(order=(idx + 1) * 100, name=handler.__name__, handler=handler)
            for idx, handler in enumerate(handlers)
        ),
        context_initializer=initializer,
        on_error=on_error,
    )


def _request():
    return FeatureRequest(method="POST", path="/payments")


def test_retry_with_max_attempts_runs_pipeline_exactly_that_many_times():
    runs = []

    def charge(ctx, req, res):
        runs.append(1)
        raise TimeoutError("gateway timeout")

    def on_error(error, ctx, req, res):
        return retry(delay_ms=0, max_attempts=3)

    with pytest.raises(TimeoutError):
        asyncio.run(PipelineExecutor().run(_feature(charge, on_error=on_error), _request(), FeatureResponse()))
    assert len(runs) == 3


def test_retry_succeeds_on_a_later_attempt_with_same_context():
    contexts = []

    def initializer(ctx, req, res):
        ctx.attempt = ctx.get("attempt", 0) + 1
        contexts.append(ctx)

    def flaky(ctx, req, res):
        if ctx.attempt < 2:
            raise ConnectionError("reset")
        res.json({"attempt": ctx.attempt})

    def on_error(error, ctx, req, res):
        return RETRY

    metrics = MetricsRegistry()
    res = FeatureResponse()
    result = asyncio.run(
        PipelineExecutor(metrics=metrics).run(_feature(flaky, initializer=initializer, on_error=on_error), _request(), res)
    )
    assert res.payload == {"attempt": 2}
    assert result.attempts == 2
    assert result.status == RunStatus.RESPONDED
    assert contexts[0] is contexts[1]
    assert metrics.get_retry_counts() == {"POST /payments": 1}


def test_retry_waits_for_the_requested_delay(monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("featureflow.pipeline.executor.asyncio.sleep", fake_sleep)

    def fail(ctx, req, res):
        raise RuntimeError("busy")

    def on_error(error, ctx, req, res):
        return retry(delay_ms=250, max_attempts=2)

    with pytest.raises(RuntimeError):
        asyncio.run(PipelineExecutor().run(_feature(fail, on_error=on_error), _request(), FeatureResponse()))
    assert delays == [0.25]


def test_error_handler_that_responds_recovers_the_request():
    def create(ctx, req, res):
        raise ConflictError("duplicate order")

    def on_error(error, ctx, req, res):
        res.status(409).json({"error": str(error)})

    res = FeatureResponse()
    result = asyncio.run(PipelineExecutor().run(_feature(create, on_error=on_error), _request(), res))
    assert result.status == RunStatus.RECOVERED
    assert res.status_code == 409
    assert res.payload == {"error": "duplicate order"}


def test_error_handler_that_does_not_respond_reraises_original():
    original = ValueError("bad input")

    def step(ctx, req, res):
        raise original

    def on_error(error, ctx, req, res):
        return None

    with pytest.raises(ValueError) as exc:
        asyncio.run(PipelineExecutor().run(_feature(step, on_error=on_error), _request(), FeatureResponse()))
    assert exc.value is original


def test_global_retry_ceiling_caps_unbounded_retries():
    runs = []

    def fail(ctx, req, res):
        runs.append(1)
        raise RuntimeError("still failing")

    def on_error(error, ctx, req, res):
        return RETRY

    executor = PipelineExecutor(config=FeatureflowConfig(max_total_retries=4))
    with pytest.raises(RuntimeError):
        asyncio.run(executor.run(_feature(fail, on_error=on_error), _request(), FeatureResponse()))
    assert len(runs) == 5


def test_rollback_restores_store_snapshot():
    store = InMemoryStore()
    store.create({"name": "existing"})

    def initializer(ctx, req, res):
        ctx.snapshot = ctx.store.snapshot()

    def write(ctx, req, res):
        ctx.store.create({"name": "partial"})
        raise RuntimeError("payment declined")

    def on_error(error, ctx, req, res):
        ctx.store.restore(ctx.snapshot)
        res.status(402).json({"error": "declined"})

    executor = PipelineExecutor(services={"store": store})
    asyncio.run(executor.run(_feature(write, initializer=initializer, on_error=on_error), _request(), FeatureResponse()))
    assert [record["name"] for record in store.find_all()] == ["existing"]


def test_coordinator_without_handler_is_unhandled():
    feature = _feature(lambda ctx, req, res: None)
    decision = asyncio.run(
        ErrorRecoveryCoordinator().handle(feature, RuntimeError("x"), {}, _request(), FeatureResponse(), 1)
    )
    assert decision.outcome == ErrorOutcome.UNHANDLED


def test_coordinator_treats_raising_handler_as_unhandled():
    def on_error(error, ctx, req, res):
        raise KeyError("broken handler")

    feature = _feature(lambda ctx, req, res: None, on_error=on_error)
    decision = asyncio.run(
        ErrorRecoveryCoordinator().handle(feature, RuntimeError("x"), {}, _request(), FeatureResponse(), 1)
    )
    assert decision.outcome == ErrorOutcome.UNHANDLED


def test_coordinator_returns_retry_decision_with_signal():
    signal = retry(delay_ms=10, max_attempts=5)
    feature = _feature(lambda ctx, req, res: None, on_error=lambda error, ctx, req, res: signal)
    decision = asyncio.run(
        ErrorRecoveryCoordinator().handle(feature, RuntimeError("x"), {}, _request(), FeatureResponse(), 2)
    )
    assert decision.outcome == ErrorOutcome.RETRY
    assert decision.signal is signal


def test_retry_delay_does_not_block_other_requests():
    finished = []

    def slow_step(ctx, req, res):
        if not ctx.get("failed_once"):
            ctx["failed_once"] = True
            raise TimeoutError("upstream slow")
        res.json({"who": "retried"})

    def fast_step(ctx, req, res):
        res.json({"who": "plain"})

    retried = _feature(slow_step, on_error=lambda error, ctx, req, res: retry(delay_ms=50, max_attempts=2))
    plain = _feature(fast_step)
    executor = PipelineExecutor()

    async def run_and_record(feature, name):
        result = await executor.run(feature, _request(), FeatureResponse())
        finished.append(name)
        return result

    async def scenario():
        return await asyncio.gather(run_and_record(retried, "retried"), run_and_record(plain, "plain"))

    retried_result, plain_result = asyncio.run(scenario())
    assert finished == ["plain", "retried"]
    assert retried_result.attempts == 2
    assert plain_result.attempts == 1
