"""Pydantic schemas used by the FastAPI adapter."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    status_code: int = Field(..., alias="statusCode")
    code: Optional[str] = None
    validation_errors: Optional[Dict[str, List[str]]] = Field(default=None, alias="validationErrors")
    suggestion: Optional[str] = None
    stack: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorBody


class HealthResponse(BaseModel):
    status: str
    features: int


class FeatureSummary(BaseModel):
    method: str
    path: str
    steps: int
    async_tasks: int
    has_error_handler: bool
    middlewares: int = 0
    explicit: bool


__all__ = ["ErrorBody", "ErrorResponse", "FeatureSummary", "HealthResponse"]
