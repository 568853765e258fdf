"""
Catalog Module
"""
from .categories import CategoryService
from .lifecycle import LifecycleEvent, LifecycleState
from .offers import OfferService
from .products import ProductService
from .session import SessionContext, User
from .shops import ShopService
from .telemetry import Telemetry
from .users import UserService

__all__ = [
    "CategoryService",
    "LifecycleEvent",
    "LifecycleState",
    "OfferService",
    "ProductService",
    "SessionContext",
    "ShopService",
    "Telemetry",
    "User",
    "UserService",
]
