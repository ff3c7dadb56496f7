"""
Aggregated metrics registry for features, steps and async tasks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class StepMetricsSnapshot:
    count: int
    total_duration_seconds: float
    failures: int = 0


@dataclass
class FeatureMetricsSnapshot:
    feature_key: str
    total_runs: int
    avg_duration_seconds: float
    outcomes: Dict[str, int] = field(default_factory=dict)


class MetricsRegistry:
    def __init__(self) -> None:
        self._step: Dict[tuple[str, str], StepMetricsSnapshot] = {}
        self._features: Dict[str, FeatureMetricsSnapshot] = {}
        self._retries: Dict[str, int] = {}
        self._task_counts: Dict[tuple[str, str, str], int] = {}

    def record_step(self, feature_key: str, step_name: str, duration_seconds: float, failed: bool = False) -> None:
        key = (feature_key, step_name)
        if key not in self._step:
            self._step[key] = StepMetricsSnapshot(count=0, total_duration_seconds=0.0)
        snap = self._step[key]
        snap.count += 1
        snap.total_duration_seconds += max(duration_seconds, 0.0)
        if failed:
            snap.failures += 1

    def record_feature_run(self, feature_key: str, outcome: str, duration_seconds: float) -> None:
        if feature_key not in self._features:
            self._features[feature_key] = FeatureMetricsSnapshot(
                feature_key=feature_key, total_runs=0, avg_duration_seconds=0.0
            )
        snap = self._features[feature_key]
        snap.total_runs += 1
        snap.avg_duration_seconds = (
            (snap.avg_duration_seconds * (snap.total_runs - 1)) + duration_seconds
        ) / snap.total_runs
        snap.outcomes[outcome] = snap.outcomes.get(outcome, 0) + 1

    def record_retry(self, feature_key: str) -> None:
        self._retries[feature_key] = self._retries.get(feature_key, 0) + 1

    def record_async_task(self, feature_key: str, task_name: str, status: str) -> None:
        key = (feature_key, task_name, status or "unknown")
        self._task_counts[key] = self._task_counts.get(key, 0) + 1

    def get_step_metrics(self) -> Dict[tuple[str, str], StepMetricsSnapshot]:
        return dict(self._step)

    def get_feature_metrics(self) -> Dict[str, FeatureMetricsSnapshot]:
        return dict(self._features)

    def get_retry_counts(self) -> Dict[str, int]:
        return dict(self._retries)

    def get_async_task_counts(self) -> Dict[tuple[str, str, str], int]:
        return dict(self._task_counts)

    def reset(self) -> None:
        self._step.clear()
        self._features.clear()
        self._retries.clear()
        self._task_counts.clear()


default_metrics = MetricsRegistry()
