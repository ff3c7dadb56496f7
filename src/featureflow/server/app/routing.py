"""Map scanned Features onto FastAPI routes."""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from fastapi import FastAPI, Request
from fastapi.responses import Response

from ...features.convention import to_route_path
from ...features.models import FeatureDescriptor
from ...pipeline.executor import PipelineExecutor
from ..errors import GlobalErrorHandler, wrap_error_handler
from ..http import FeatureRequest, FeatureResponse

logger = logging.getLogger("featureflow.server")


def _build_endpoint(
    descriptor: FeatureDescriptor,
    executor: PipelineExecutor,
    on_unhandled: Callable[..., Any],
) -> Callable[[Request], Any]:
    async def endpoint(request: Request) -> Response:
        req = await FeatureRequest.from_starlette(request)
        res = FeatureResponse()
        await executor.run(descriptor, req, res, on_unhandled=on_unhandled)
        return res.to_starlette()

    slug = descriptor.path.strip("/").replace("/", "_").replace(":", "") or "root"
    endpoint.__name__ = f"feature_{descriptor.method.value.lower()}_{slug}"
    return endpoint


def register_features(
    app: FastAPI,
    features: Sequence[FeatureDescriptor],
    executor: PipelineExecutor,
    error_handler: GlobalErrorHandler,
) -> None:
    """Add one route per Feature. Unhandled pipeline failures go to ``error_handler``."""

    guarded = wrap_error_handler(error_handler)
    for descriptor in features:
        app.add_api_route(
            to_route_path(descriptor.path),
            _build_endpoint(descriptor, executor, guarded),
            methods=[descriptor.method.value],
            include_in_schema=False,
        )
        logger.debug("Registered route %s", descriptor.key)


__all__ = ["register_features"]
