from .metrics import MetricsRegistry, default_metrics

__all__ = ["MetricsRegistry", "default_metrics"]
