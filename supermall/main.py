"""
FastAPI Application

Main entry point for the SuperMall catalog API.
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from supermall.api.middleware import RequestLoggingMiddleware
from supermall.api.routes import (
    categories_router,
    health_router,
    offers_router,
    products_router,
    session_router,
    shops_router,
)
from supermall.config import Settings, get_settings
from supermall.config.logging import configure_logging
from supermall.context import build_context
from supermall.errors import CatalogError
from supermall.timeutils import Clock

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    redis_client: Optional[Any] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Application settings (cached settings when omitted)
        redis_client: Pre-built async Redis client for the remote store
        clock: Time source for the catalog services
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info("Starting SuperMall catalog API", environment=settings.app_env)

        context = await build_context(settings, redis_client=redis_client, clock=clock)
        app.state.context = context

        yield

        logger.info("Shutting down...")
        await context.close()

    app = FastAPI(
        title="SuperMall Catalog API",
        description="Shops, products, offers and categories of a shopping mall",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(session_router, prefix="/api/v1/session", tags=["Session"])
    app.include_router(shops_router, prefix="/api/v1/shops", tags=["Shops"])
    app.include_router(products_router, prefix="/api/v1/products", tags=["Products"])
    app.include_router(offers_router, prefix="/api/v1/offers", tags=["Offers"])
    app.include_router(categories_router, prefix="/api/v1/categories", tags=["Categories"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
