"""FastAPI adapter: routes, request/response wrappers and global error handling."""

from .app import create_app, register_features
from .errors import default_error_handler, make_default_error_handler, send_error_response, wrap_error_handler
from .http import FeatureRequest, FeatureResponse

__all__ = [
    "FeatureRequest",
    "FeatureResponse",
    "create_app",
    "default_error_handler",
    "make_default_error_handler",
    "register_features",
    "send_error_response",
    "wrap_error_handler",
]
