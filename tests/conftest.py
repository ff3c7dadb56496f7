import pytest

from featureflow.features import convention
from featureflow.observability.metrics import default_metrics


@pytest.fixture(autouse=True)
def _clean_runtime_state(monkeypatch):
    """Start every test with an empty convention cache and no FF_* overrides."""
    for name in (
        "FF_FEATURES_DIR",
        "FF_DEBUG",
        "FF_MAX_TOTAL_RETRIES",
        "FF_INCLUDE_ERROR_STACK",
        "FF_EXCLUDE_DIRS",
        "FF_ASYNC_FAILURE_HISTORY",
    ):
        monkeypatch.delenv(name, raising=False)
    convention.clear_cache()
    default_metrics.reset()
    yield
    convention.clear_cache()
