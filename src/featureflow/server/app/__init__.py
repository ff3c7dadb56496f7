"""Application package for the featureflow FastAPI adapter."""

from __future__ import annotations

from .factory import create_app
from .routing import register_features

__all__ = ["create_app", "register_features"]
