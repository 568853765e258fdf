"""
API Dependencies
"""

from fastapi import Request

from supermall.context import AppContext


def get_context(request: Request) -> AppContext:
    """FastAPI dependency returning the application context built at startup."""
    return request.app.state.context
