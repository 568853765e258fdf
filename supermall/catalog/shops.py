"""
Shop Service

Shop CRUD, search and per-shop statistics.
"""

import asyncio
from typing import Any, Dict, List

import structlog

from supermall.catalog.base import CatalogService, Record
from supermall.catalog.sorting import SHOP_SORTS
from supermall.catalog.validation import SHOP_RULES
from supermall.errors import ConflictError, NotFoundError

logger = structlog.get_logger(__name__)


class ShopService(CatalogService):
    """Shops listed in the marketplace."""

    collection = "shops"
    entity = "shop"
    label = "Shop"
    rules = SHOP_RULES
    sorts = SHOP_SORTS
    default_sort = "name"

    def initial_stats(self) -> Dict[str, Any]:
        return {"views": 0, "rating": 0, "reviews": 0}

    def matches(self, record: Record, term: str) -> bool:
        if super().matches(record, term):
            return True
        contact = record.get("contact")
        email = contact.get("email") if isinstance(contact, dict) else None
        return bool(email) and term in str(email).casefold()

    async def check_delete_allowed(self, doc_id: str, record: Record) -> None:
        # Any product row referencing the shop blocks deletion, active or not
        products = await self.gateway.query("products", {"shopId": doc_id})
        if products:
            raise ConflictError(
                "Cannot delete shop with existing products. Please remove all products first.",
                field="shopId",
            )

    async def get_shops_by_category(self, category: str) -> List[Record]:
        return await self.get_all({"category": category})

    async def get_shops_by_floor(self, floor: int) -> List[Record]:
        return await self.get_all({"floor": floor})

    async def get_stats(self, shop_id: str) -> Dict[str, Any]:
        """
        Aggregate live product and offer figures for a shop.

        Recomputed on every call.

        Raises:
            NotFoundError: If the shop does not exist
        """
        logger.info("Fetching shop statistics", shop_id=shop_id)

        shop, products, offers = await asyncio.gather(
            self.gateway.read(self.collection, shop_id),
            self.gateway.query("products", {"shopId": shop_id, "isActive": True}),
            self.gateway.query("offers", {"shopId": shop_id, "isActive": True}),
        )
        if not shop:
            raise NotFoundError("Shop not found", field="id")

        prices = [p.get("price") or 0 for p in products]
        shop_stats = shop.get("stats") or {}

        stats = {
            "totalProducts": len(products),
            "totalOffers": len(offers),
            "activeProducts": sum(1 for p in products if (p.get("stock") or 0) > 0),
            "outOfStockProducts": sum(1 for p in products if (p.get("stock") or 0) == 0),
            "averagePrice": sum(prices) / len(prices) if prices else 0,
            "totalValue": sum((p.get("price") or 0) * (p.get("stock") or 0) for p in products),
            "views": shop_stats.get("views") or 0,
            "rating": shop_stats.get("rating") or 0,
            "reviews": shop_stats.get("reviews") or 0,
        }

        logger.info("Shop statistics fetched", shop_id=shop_id, total_products=stats["totalProducts"])
        return stats
