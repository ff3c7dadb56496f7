"""
Feature scanner: walk a directory tree and build one descriptor per ``@<method>`` folder.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config import DEFAULT_EXCLUDE_DIRS, DEFAULT_INDEX_PATTERNS
from ..errors import ConventionError
from .convention import (
    ASYNC_TASKS_DIR_NAME,
    FEATURES_DIR_NAME,
    STEPS_DIR_NAME,
    ConventionInfo,
    find_async_tasks_dir,
    find_steps_dir,
    infer_features_base,
    infer_method,
    infer_path,
    is_http_method,
    is_method_segment,
    normalize_path,
    parse_method,
    route_key,
)
from .discovery import discover_async_tasks, discover_steps, steps_from_sequence, tasks_from_sequence
from .loader import HandlerLoader, PythonFileLoader, load_feature_config
from .models import (
    AsyncTaskDescriptor,
    FeatureConfig,
    FeatureDescriptor,
    StepDescriptor,
    identity_initializer,
)

logger = logging.getLogger("featureflow.scanner")

_FEATURE_PARTS = {STEPS_DIR_NAME, ASYNC_TASKS_DIR_NAME}


@dataclass
class ScanOptions:
    index_patterns: Tuple[str, ...] = DEFAULT_INDEX_PATTERNS
    exclude_dirs: Tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    debug: bool = False


class FeatureScanner:
    def __init__(
        self,
        root_dir: Union[str, Path],
        options: Optional[ScanOptions] = None,
        loader: Optional[HandlerLoader] = None,
    ) -> None:
        self.root_dir = Path(root_dir)
        self.options = options or ScanOptions()
        self.loader = loader or PythonFileLoader()

    def scan(self) -> List[FeatureDescriptor]:
        """
        Walk the tree depth-first in lexicographic order and return every Feature.

        Any convention problem (bad method folder, ambiguous step order,
        duplicate route) raises ``ConventionError`` and nothing is returned.
        """

        root = self.root_dir.resolve()
        if not root.is_dir():
            raise ConventionError("Features directory not found.", location=root)
        self._log("Scanning features directory: %s", root)
        features: List[FeatureDescriptor] = []
        self._scan_directory(root, root, features)
        self._check_duplicate_routes(features)
        self._log("Found %d features", len(features))
        return features

    def _scan_directory(self, directory: Path, root: Path, features: List[FeatureDescriptor]) -> None:
        skip: set[str] = set()
        if is_method_segment(directory.name):
            if not is_http_method(directory.name):
                raise ConventionError(
                    f'Unsupported method folder "{directory.name}". Use @get, @post, @put, @patch or @delete.',
                    location=directory,
                )
            features.append(self._build_feature(directory, root))
            skip = _FEATURE_PARTS

        for entry in sorted(directory.iterdir(), key=lambda p: p.name):
            if not entry.is_dir() or entry.is_symlink():
                continue
            if entry.name in self.options.exclude_dirs or entry.name.startswith("."):
                self._log("Skipping excluded directory: %s", entry)
                continue
            if entry.name in skip:
                continue
            self._scan_directory(entry, root, features)

    def _find_index(self, directory: Path) -> Optional[Path]:
        for pattern in self.options.index_patterns:
            candidate = directory / pattern
            if candidate.is_file():
                return candidate
        return None

    def _features_base(self, feature_dir: Path, root: Path) -> Path:
        if feature_dir == root:
            return infer_features_base(feature_dir)
        candidate = feature_dir.parent
        while True:
            if candidate.name == FEATURES_DIR_NAME:
                return candidate
            if candidate == root or candidate == candidate.parent:
                return root
            candidate = candidate.parent

    def _build_feature(self, directory: Path, root: Path) -> FeatureDescriptor:
        index = self._find_index(directory)
        config = load_feature_config(self.loader, index) if index is not None else FeatureConfig()

        if config.method:
            method = parse_method(str(getattr(config.method, "value", config.method)))
        else:
            method = infer_method(directory)
        if config.path:
            path = normalize_path(config.path)
        else:
            path = infer_path(directory, self._features_base(directory, root))

        steps = self._resolve_steps(config.steps, directory)
        async_tasks = self._resolve_async_tasks(config.async_tasks, directory)

        if not steps and config.context_initializer is None:
            raise ConventionError(
                f"Feature {method.value} {path} has no steps and no context_initializer.",
                location=directory,
            )

        descriptor = FeatureDescriptor(
            convention=ConventionInfo(
                method=method,
                path=path,
                steps_dir=find_steps_dir(directory),
                async_tasks_dir=find_async_tasks_dir(directory),
            ),
            steps=steps,
            async_tasks=async_tasks,
            context_initializer=config.context_initializer or identity_initializer,
            on_error=config.on_error,
            middlewares=tuple(config.middlewares or ()),
            source_dir=directory,
            explicit=index is not None,
        )
        self._log(
            "Loaded %s feature %s (%d steps, %d async tasks)",
            "explicit" if descriptor.explicit else "implicit",
            descriptor.key,
            len(steps),
            len(async_tasks),
        )
        return descriptor

    def _resolve_steps(self, source: Any, directory: Path) -> Tuple[StepDescriptor, ...]:
        if source is None:
            steps_dir = find_steps_dir(directory)
            return discover_steps(steps_dir, self.loader) if steps_dir else ()
        if isinstance(source, (str, Path)):
            return discover_steps(self._explicit_dir(directory, source, "Steps"), self.loader)
        return steps_from_sequence(list(source), location=directory)

    def _resolve_async_tasks(self, source: Any, directory: Path) -> Tuple[AsyncTaskDescriptor, ...]:
        if source is None:
            tasks_dir = find_async_tasks_dir(directory)
            return discover_async_tasks(tasks_dir, self.loader) if tasks_dir else ()
        if isinstance(source, (str, Path)):
            return discover_async_tasks(self._explicit_dir(directory, source, "Async tasks"), self.loader)
        return tasks_from_sequence(list(source), location=directory)

    def _explicit_dir(self, directory: Path, source: Union[str, Path], label: str) -> Path:
        target = (directory / source).resolve()
        if not target.is_dir():
            raise ConventionError(f"{label} directory not found: {source}", location=directory)
        return target

    def _check_duplicate_routes(self, features: List[FeatureDescriptor]) -> None:
        seen: Dict[str, FeatureDescriptor] = {}
        for descriptor in features:
            key = route_key(descriptor.method, descriptor.path)
            previous = seen.get(key)
            if previous is not None:
                raise ConventionError(
                    f"Feature already registered: {descriptor.key} conflicts with {previous.key} "
                    f"(defined in {previous.source_dir} and {descriptor.source_dir})",
                    code="FF-1102",
                    location=descriptor.source_dir,
                )
            seen[key] = descriptor

    def _log(self, message: str, *args: Any) -> None:
        logger.log(logging.INFO if self.options.debug else logging.DEBUG, message, *args)


def scan_features(
    root_dir: Union[str, Path],
    options: Optional[ScanOptions] = None,
    loader: Optional[HandlerLoader] = None,
) -> List[FeatureDescriptor]:
    """
    Scan ``root_dir`` and return its Features.

    Example::

        features = scan_features("./features")
        for descriptor in features:
            print(descriptor.key)
    """

    return FeatureScanner(root_dir, options=options, loader=loader).scan()


__all__ = ["FeatureScanner", "ScanOptions", "scan_features"]
