"""
API Module
"""
from .dependencies import get_context
from .middleware import RequestLoggingMiddleware

__all__ = [
    "get_context",
    "RequestLoggingMiddleware",
]
