"""
Auto-discovery of step and async-task files.

Step files carry their order in a numeric prefix (``100-validate.py``); the
numbers are sorted ascending and must be unique within a feature. Async task
files need no prefix and carry no ordering.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from ..errors import ConventionError
from .loader import HandlerLoader, load_handler
from .models import AsyncTaskDescriptor, StepDescriptor

logger = logging.getLogger("featureflow.discovery")

STEP_FILE_PATTERN = re.compile(r"^(?P<order>\d+)(?:[-_].*)?$")
DEFAULT_ORDER_GAP = 100


def _candidate_files(directory: Path) -> List[Path]:
    files = []
    for entry in sorted(directory.iterdir(), key=lambda p: p.name):
        if not entry.is_file() or entry.suffix != ".py":
            continue
        if entry.name.startswith(("_", ".")):
            continue
        files.append(entry)
    return files


def parse_step_order(filename: str) -> Optional[int]:
    stem = Path(filename).stem
    match = STEP_FILE_PATTERN.match(stem)
    return int(match.group("order")) if match else None


def validate_unique_orders(steps: Iterable[StepDescriptor], location: Optional[Path] = None) -> None:
    _check_unique(((step.order, step.name) for step in steps), location)


def _check_unique(pairs: Iterable[Tuple[int, str]], location: Optional[Path]) -> None:
    seen: dict[int, str] = {}
    for order, name in pairs:
        if order in seen:
            raise ConventionError(
                f"Duplicate step number {order} ({seen[order]} and {name}). "
                "Each step needs a unique number, e.g. 100-validate.py, 200-process.py.",
                location=location,
            )
        seen[order] = name


def discover_steps(directory: Path, loader: HandlerLoader) -> Tuple[StepDescriptor, ...]:
    directory = Path(directory)
    if not directory.is_dir():
        raise ConventionError("Steps directory not found.", location=directory)

    pending: List[Tuple[int, Path]] = []
    for file in _candidate_files(directory):
        order = parse_step_order(file.name)
        if order is None:
            raise ConventionError(
                f'Step file "{file.name}" must start with a number, e.g. 100-{file.stem}.py',
                location=file,
            )
        pending.append((order, file))

    # validate before importing anything
    _check_unique(((order, file.name) for order, file in pending), directory)
    pending.sort(key=lambda item: item[0])

    steps = tuple(
        StepDescriptor(order=order, name=file.stem, handler=load_handler(loader, file, "step"), source=file)
        for order, file in pending
    )
    logger.debug("Discovered %d steps in %s", len(steps), directory)
    return steps


def discover_async_tasks(directory: Path, loader: HandlerLoader) -> Tuple[AsyncTaskDescriptor, ...]:
    directory = Path(directory)
    if not directory.is_dir():
        return ()
    tasks = tuple(
        AsyncTaskDescriptor(name=file.stem, handler=load_handler(loader, file, "async task"), source=file)
        for file in _candidate_files(directory)
    )
    logger.debug("Discovered %d async tasks in %s", len(tasks), directory)
    return tasks


def steps_from_sequence(items: Sequence[Any], location: Optional[Path] = None) -> Tuple[StepDescriptor, ...]:
    """
    Build steps from an explicit list.

    Items may be ``StepDescriptor`` records, ``(order, handler)`` pairs or
    bare callables, which are numbered 100, 200, ... by position.
    """

    steps: List[StepDescriptor] = []
    for idx, item in enumerate(items):
        if isinstance(item, StepDescriptor):
            steps.append(item)
        elif isinstance(item, tuple) and len(item) == 2 and callable(item[1]):
            order, handler = item
            steps.append(StepDescriptor(order=int(order), name=_callable_name(handler, idx), handler=handler))
        elif callable(item):
            steps.append(
                StepDescriptor(order=(idx + 1) * DEFAULT_ORDER_GAP, name=_callable_name(item, idx), handler=item)
            )
        else:
            raise ConventionError(f"Step #{idx + 1} is not callable: {item!r}", location=location)
    validate_unique_orders(steps, location=location)
    return tuple(sorted(steps, key=lambda step: step.order))


def tasks_from_sequence(items: Sequence[Any], location: Optional[Path] = None) -> Tuple[AsyncTaskDescriptor, ...]:
    tasks: List[AsyncTaskDescriptor] = []
    for idx, item in enumerate(items):
        if isinstance(item, AsyncTaskDescriptor):
            tasks.append(item)
        elif callable(item):
            tasks.append(AsyncTaskDescriptor(name=_callable_name(item, idx), handler=item))
        else:
            raise ConventionError(f"Async task #{idx + 1} is not callable: {item!r}", location=location)
    return tuple(tasks)


def _callable_name(handler: Any, idx: int) -> str:
    return getattr(handler, "__name__", None) or f"step-{idx + 1}"


__all__ = [
    "STEP_FILE_PATTERN",
    "discover_async_tasks",
    "discover_steps",
    "parse_step_order",
    "steps_from_sequence",
    "tasks_from_sequence",
    "validate_unique_orders",
]
