import pytest

from featureflow.runtime import RETRY, Context, RetrySignal, is_retry_signal, retry


def test_context_supports_item_and_attribute_access():
    ctx = Context({"db": "primary"}, user="ada")
    ctx.order = {"id": 1}
    ctx["total"] = 10
    assert ctx["order"] == {"id": 1}
    assert ctx.total == 10
    assert ctx.db == "primary"
    assert set(ctx) == {"db", "user", "order", "total"}
    del ctx.total
    assert "total" not in ctx


def test_missing_context_attribute_raises_attribute_error():
    ctx = Context()
    with pytest.raises(AttributeError):
        ctx.missing
    assert getattr(ctx, "missing", None) is None


def test_contexts_do_not_share_state():
    seed = {"db": "primary"}
    first, second = Context(seed), Context(seed)
    first.user = "ada"
    assert "user" not in second
    assert "user" not in seed


def test_retry_builds_signals():
    assert retry() is RETRY
    signal = retry(delay_ms=1500, max_attempts=3)
    assert signal == RetrySignal(delay=1.5, max_attempts=3)
    assert retry(delay=2).delay == 2
    assert is_retry_signal(signal)
    assert not is_retry_signal("retry")


def test_retry_rejects_invalid_values():
    with pytest.raises(ValueError):
        retry(delay_ms=-1)
    with pytest.raises(ValueError):
        retry(max_attempts=0)
    with pytest.raises(ValueError):
        retry(delay_ms=10, delay=1)
