"""
API Routes Module
"""
from .health import router as health_router
from .shops import router as shops_router
from .products import router as products_router
from .offers import router as offers_router
from .categories import router as categories_router
from .session import router as session_router

__all__ = [
    "health_router",
    "shops_router",
    "products_router",
    "offers_router",
    "categories_router",
    "session_router",
]
