from pathlib import Path

import pytest

from featureflow.errors import ConventionError
from featureflow.features.discovery import (
    discover_async_tasks,
    discover_steps,
    parse_step_order,
    steps_from_sequence,
)
from featureflow.features.loader import MappingLoader, PythonFileLoader
from featureflow.features.models import StepDescriptor

HANDLER_SOURCE = "def handler(ctx, req, res):\n    ctx.setdefault('seen', []).append({name!r})\n"


def _write_steps(directory: Path, *names: str) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_text(HANDLER_SOURCE.format(name=name), encoding="utf-8")


def test_parse_step_order_reads_numeric_prefix():
    assert parse_step_order("100-validate.py") == 100
    assert parse_step_order("250_charge.py") == 250
    assert parse_step_order("7.py") == 7
    assert parse_step_order("validate.py") is None


def test_steps_are_sorted_numerically(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    _write_steps(steps_dir, "300-respond.py", "1000-audit.py", "100-validate.py", "200-create.py")
    steps = discover_steps(steps_dir, PythonFileLoader())
    assert [s.order for s in steps] == [100, 200, 300, 1000]
    assert [s.name for s in steps] == ["100-validate", "200-create", "300-respond", "1000-audit"]
    assert all(callable(s.handler) for s in steps)


def test_private_and_non_python_files_are_ignored(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    _write_steps(steps_dir, "100-a.py", "_helpers.py")
    (steps_dir / "README.md").write_text("notes", encoding="utf-8")
    steps = discover_steps(steps_dir, PythonFileLoader())
    assert [s.order for s in steps] == [100]


def test_duplicate_step_numbers_are_rejected(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    _write_steps(steps_dir, "100-a.py", "100-b.py")
    with pytest.raises(ConventionError) as exc:
        discover_steps(steps_dir, PythonFileLoader())
    assert "Duplicate step number 100" in str(exc.value)


def test_step_without_numeric_prefix_is_rejected(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    _write_steps(steps_dir, "validate.py")
    with pytest.raises(ConventionError):
        discover_steps(steps_dir, PythonFileLoader())


def test_step_module_must_export_handler(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    steps_dir.mkdir()
    (steps_dir / "100-empty.py").write_text("VALUE = 1\n", encoding="utf-8")
    with pytest.raises(ConventionError) as exc:
        discover_steps(steps_dir, PythonFileLoader())
    assert "handler" in str(exc.value)


def test_broken_step_module_reports_location(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    steps_dir.mkdir()
    broken = steps_dir / "100-broken.py"
    broken.write_text("def handler(:\n", encoding="utf-8")
    with pytest.raises(ConventionError) as exc:
        discover_steps(steps_dir, PythonFileLoader())
    assert exc.value.location == broken.resolve()


def test_async_tasks_need_no_prefix(tmp_path: Path):
    tasks_dir = tmp_path / "async-tasks"
    _write_steps(tasks_dir, "send-email.py", "100-analytics.py")
    tasks = discover_async_tasks(tasks_dir, PythonFileLoader())
    assert sorted(t.name for t in tasks) == ["100-analytics", "send-email"]


def test_missing_async_tasks_dir_yields_nothing(tmp_path: Path):
    assert discover_async_tasks(tmp_path / "async-tasks", PythonFileLoader()) == ()


def test_mapping_loader_serves_registered_handlers(tmp_path: Path):
    steps_dir = tmp_path / "steps"
    steps_dir.mkdir()
    first = steps_dir / "100-first.py"
    second = steps_dir / "200-second.py"
    first.touch()
    second.touch()

    def first_handler(ctx, req, res):
        return None

    loader = MappingLoader({first: first_handler, second: {"handler": lambda ctx, req, res: None}})
    steps = discover_steps(steps_dir, loader)
    assert steps[0].handler is first_handler
    assert steps[1].order == 200


def test_steps_from_sequence_numbers_callables_by_position():
    def validate(ctx, req, res):
        return None

    def respond(ctx, req, res):
        return None

    steps = steps_from_sequence([validate, respond])
    assert [(s.order, s.name) for s in steps] == [(100, "validate"), (200, "respond")]


def test_steps_from_sequence_rejects_duplicate_orders():
    handler = lambda ctx, req, res: None  # noqa: E731
    with pytest.raises(ConventionError):
        steps_from_sequence([StepDescriptor(100, "a", handler), (100, handler)])
