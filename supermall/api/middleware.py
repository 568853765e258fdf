"""
API Middleware

Binds request_id and actor to the structlog context for the duration of a
request, so catalog logs and telemetry events can be tied back to it. Buffered
telemetry is persisted once the response is ready.
"""

import time
import uuid
from typing import Callable, Optional

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from supermall.context import AppContext

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def _context(request: Request) -> Optional[AppContext]:
    return getattr(request.app.state, "context", None)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Request scoped log context, timing and telemetry flush"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        ctx = _context(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            actor=ctx.session.current_actor_id() if ctx else None,
            method=request.method,
            path=request.url.path,
        )
        started_at = time.perf_counter()

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - started_at) * 1000, 2)
            logger.info("Request completed", status_code=response.status_code, duration_ms=duration_ms)

            if ctx:
                await ctx.telemetry.flush()

            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception:
            logger.exception("Request failed")
            raise
        finally:
            structlog.contextvars.clear_contextvars()
