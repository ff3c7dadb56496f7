"""Application factory that scans a features directory and builds the FastAPI app."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from fastapi import FastAPI

from ...config import FeatureflowConfig, load_config
from ...errors import ConventionError
from ...features.loader import HandlerLoader
from ...features.scanner import FeatureScanner, ScanOptions
from ...observability.metrics import MetricsRegistry, default_metrics
from ...pipeline.executor import PipelineExecutor
from ...version import __version__
from ..errors import GlobalErrorHandler, make_default_error_handler
from ..routes.health import build_health_router
from .lifecycle import build_lifespan
from .routing import register_features

logger = logging.getLogger("featureflow.server")


def create_app(
    features_dir: Union[str, Path, None] = None,
    *,
    config: Optional[FeatureflowConfig] = None,
    loader: Optional[HandlerLoader] = None,
    error_handler: Optional[GlobalErrorHandler] = None,
    services: Optional[Mapping[str, Any]] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> FastAPI:
    """
    Create the FastAPI app.

    The features directory is scanned once, here. Any ``ConventionError``
    propagates so a misconfigured tree never starts serving.
    """

    cfg = config or load_config()
    root = features_dir or cfg.features_dir
    if root is None:
        raise ConventionError("No features directory given (pass features_dir or set FF_FEATURES_DIR).")

    scanner = FeatureScanner(
        root,
        options=ScanOptions(index_patterns=cfg.index_patterns, exclude_dirs=cfg.exclude_dirs, debug=cfg.debug),
        loader=loader,
    )
    features = scanner.scan()
    executor = PipelineExecutor(config=cfg, services=services, metrics=metrics or default_metrics)

    app = FastAPI(title="featureflow", version=__version__, lifespan=build_lifespan(executor.dispatcher))
    app.state.features = features
    app.state.executor = executor
    app.state.config = cfg

    app.include_router(build_health_router(features))
    register_features(
        app,
        features,
        executor,
        error_handler or make_default_error_handler(include_stack=cfg.include_error_stack),
    )
    logger.info("Registered %d features from %s", len(features), Path(root).resolve())
    return app


__all__ = ["create_app"]
