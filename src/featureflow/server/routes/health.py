"""Health and feature listing routes."""

from __future__ import annotations

from typing import List, Sequence

from fastapi import APIRouter

from ...features.models import FeatureDescriptor
from ..schemas import FeatureSummary, HealthResponse


def build_health_router(features: Sequence[FeatureDescriptor]) -> APIRouter:
    router = APIRouter()

    @router.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", features=len(features))

    @router.get("/_featureflow/features", response_model=List[FeatureSummary], include_in_schema=False)
    def list_features() -> List[FeatureSummary]:
        return [FeatureSummary(**descriptor.info()) for descriptor in features]

    return router


__all__ = ["build_health_router"]
