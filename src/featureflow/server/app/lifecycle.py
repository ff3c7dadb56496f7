"""Lifecycle hooks for the FastAPI app."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Callable

from fastapi import FastAPI

from ...pipeline.tasks import AsyncTaskDispatcher

logger = logging.getLogger("featureflow.server")


def build_lifespan(dispatcher: AsyncTaskDispatcher) -> Callable[[FastAPI], AsyncContextManager[None]]:
    """Let running async tasks finish before the app shuts down."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if dispatcher.running:
            logger.info("Waiting for %d async tasks before shutdown", dispatcher.running)
        await dispatcher.drain()

    return lifespan


__all__ = ["build_lifespan"]
