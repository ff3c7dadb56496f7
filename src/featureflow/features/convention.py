"""
Convention resolver: infer method, path and pipeline folders from a feature directory.

Folder rules::

    features/orders/@post/               -> POST /orders
    features/api/v1/users/@get/          -> GET /api/v1/users
    features/users/[id]/@put/            -> PUT /users/:id
    features/workflows/[id]/steps/@get/  -> GET /workflows/:id/steps

The ``@`` prefix marks the HTTP method folder, so resource names such as
``steps`` or ``get`` never clash with it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

from ..errors import ConventionError

FEATURES_DIR_NAME = "features"
STEPS_DIR_NAME = "steps"
ASYNC_TASKS_DIR_NAME = "async-tasks"

_DYNAMIC_SEGMENT = re.compile(r"^\[([^\[\]]+)\]$")
_PARAM_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ROUTE_PARAM = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")
_ANY_PARAM = re.compile(r":[^/]+")


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


_METHOD_FOLDERS: Dict[str, HttpMethod] = {f"@{m.value.lower()}": m for m in HttpMethod}


@dataclass(frozen=True)
class ConventionInfo:
    method: HttpMethod
    path: str
    steps_dir: Optional[Path] = None
    async_tasks_dir: Optional[Path] = None


_features_base_cache: Dict[Path, Path] = {}


def is_method_segment(name: str) -> bool:
    """True for any ``@name`` folder, valid verb or not."""
    return name.startswith("@") and len(name) > 1


def is_http_method(name: str) -> bool:
    return name.lower() in _METHOD_FOLDERS


def parse_method(name: str) -> HttpMethod:
    """Map an ``@verb`` folder name (or a bare verb) to the method enum."""

    folder = name if name.startswith("@") else f"@{name}"
    method = _METHOD_FOLDERS.get(folder.lower())
    if method is None:
        valid = ", ".join(_METHOD_FOLDERS)
        raise ConventionError(f'Invalid HTTP method folder "{name}". Must be one of: {valid}')
    return method


def parse_dynamic_segment(segment: str) -> str:
    """``[id]`` -> ``:id``; any other segment is returned unchanged."""
    match = _DYNAMIC_SEGMENT.match(segment)
    if not match:
        return segment
    name = match.group(1)
    if not _PARAM_NAME.match(name):
        raise ConventionError(
            f'Invalid route parameter "[{name}]". Use letters, digits and underscores, e.g. [user_id].'
        )
    return f":{name}"


def route_key(method: HttpMethod, path: str) -> str:
    """Key two routes collide on: parameter names do not matter to the router."""
    return f"{method.value} {_ANY_PARAM.sub(':', path)}"


def normalize_path(path: str) -> str:
    cleaned = "/" + "/".join(part for part in str(path).split("/") if part)
    return cleaned


def to_route_path(path: str) -> str:
    """Convert ``/users/:id`` into the ``/users/{id}`` form FastAPI routes use."""
    return _ROUTE_PARAM.sub(r"{\1}", path)


def _last_method_index(parts: tuple[str, ...], location: Path) -> int:
    for idx in range(len(parts) - 1, -1, -1):
        if is_method_segment(parts[idx]):
            return idx
    raise ConventionError(
        "Feature directory has no @<method> folder (expected @get, @post, @put, @patch or @delete).",
        location=location,
    )


def infer_method(feature_dir: Path | str) -> HttpMethod:
    directory = Path(feature_dir)
    parts = directory.parts
    segment = parts[_last_method_index(parts, directory)]
    try:
        return parse_method(segment)
    except ConventionError as exc:
        exc.location = directory
        raise


def infer_path(feature_dir: Path | str, features_base: Path | str) -> str:
    directory = Path(feature_dir)
    base = Path(features_base)
    try:
        relative = directory.relative_to(base)
    except ValueError:
        raise ConventionError(
            f"Feature directory is not inside the features base {base}.", location=directory
        ) from None
    parts = relative.parts
    index = _last_method_index(parts, directory)
    segments = []
    for part in parts[:index]:
        if is_method_segment(part):
            # nested feature: an outer @verb folder is not part of the URL
            if not is_http_method(part):
                raise ConventionError(f'Invalid HTTP method folder "{part}".', location=directory)
            continue
        try:
            segments.append(parse_dynamic_segment(part))
        except ConventionError as exc:
            exc.location = directory
            raise
    return "/" + "/".join(segments)


def find_steps_dir(feature_dir: Path | str) -> Optional[Path]:
    candidate = Path(feature_dir) / STEPS_DIR_NAME
    return candidate if candidate.is_dir() else None


def find_async_tasks_dir(feature_dir: Path | str) -> Optional[Path]:
    candidate = Path(feature_dir) / ASYNC_TASKS_DIR_NAME
    return candidate if candidate.is_dir() else None


def infer_features_base(feature_dir: Path | str) -> Path:
    """
    Guess the features base when the caller does not know it.

    Returns the closest ancestor literally named ``features``. Without one,
    falls back to the parent of the outermost ``@<method>`` folder, which
    yields a too-shallow path; callers that know the base must pass it.
    """

    start = Path(feature_dir)
    cached = _features_base_cache.get(start)
    if cached is not None:
        return cached

    for candidate in (start, *start.parents):
        if candidate.name == FEATURES_DIR_NAME:
            _features_base_cache[start] = candidate
            return candidate

    parts = start.parts
    for idx, part in enumerate(parts):
        if is_http_method(part):
            base = Path(*parts[:idx]) if idx else Path(start.anchor or ".")
            _features_base_cache[start] = base
            return base

    raise ConventionError("Could not infer a features base directory.", location=start)


def resolve(feature_dir: Path | str, features_base: Path | str | None = None) -> ConventionInfo:
    directory = Path(feature_dir)
    base = Path(features_base) if features_base is not None else infer_features_base(directory)
    return ConventionInfo(
        method=infer_method(directory),
        path=infer_path(directory, base),
        steps_dir=find_steps_dir(directory),
        async_tasks_dir=find_async_tasks_dir(directory),
    )


def clear_cache() -> None:
    _features_base_cache.clear()


def cache_size() -> int:
    return len(_features_base_cache)


__all__ = [
    "ASYNC_TASKS_DIR_NAME",
    "ConventionInfo",
    "FEATURES_DIR_NAME",
    "HttpMethod",
    "STEPS_DIR_NAME",
    "cache_size",
    "clear_cache",
    "find_async_tasks_dir",
    "find_steps_dir",
    "infer_features_base",
    "infer_method",
    "infer_path",
    "is_http_method",
    "is_method_segment",
    "normalize_path",
    "parse_dynamic_segment",
    "parse_method",
    "resolve",
    "route_key",
    "to_route_path",
]
