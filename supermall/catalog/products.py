"""
Product Service

Product CRUD, search, stock management and side-by-side comparison.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

import structlog

from supermall.catalog.base import CatalogService, Record
from supermall.catalog.sorting import PRODUCT_SORTS
from supermall.catalog.validation import PRODUCT_RULES
from supermall.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)


def extract_common_features(products: Sequence[Record]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Specification keys present on at least two products.

    Returns:
        key -> [{"productId", "productName", "value"}, ...] in product order
    """
    features: Dict[str, List[Dict[str, Any]]] = {}
    for product in products:
        specifications = product.get("specifications") or {}
        for key, value in specifications.items():
            features.setdefault(key, []).append({
                "productId": product.get("id"),
                "productName": product.get("name"),
                "value": value,
            })
    return {key: entries for key, entries in features.items() if len(entries) >= 2}


def _unique(values: Sequence[Any]) -> List[Any]:
    return list(dict.fromkeys(values))


class ProductService(CatalogService):
    """Products sold by shops."""

    collection = "products"
    entity = "product"
    label = "Product"
    rules = PRODUCT_RULES
    sorts = PRODUCT_SORTS
    default_sort = "name"

    def initial_stats(self) -> Dict[str, Any]:
        return {"views": 0, "purchases": 0, "rating": 0, "reviews": 0}

    def matches(self, record: Record, term: str) -> bool:
        if super().matches(record, term):
            return True
        specifications = record.get("specifications")
        if not isinstance(specifications, dict):
            return False
        return any(term in str(value).casefold() for value in specifications.values())

    async def get_products_by_category(self, category: str) -> List[Record]:
        return await self.get_all({"category": category})

    async def get_products_by_shop(self, shop_id: str) -> List[Record]:
        return await self.get_all({"shopId": shop_id})

    async def get_products_by_price_range(
        self,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> List[Record]:
        return await self.get_all({"priceRange": {"min": min_price, "max": max_price}})

    async def update_stock(self, product_id: str, quantity: int) -> None:
        """
        Set the stock level of a product.

        Raises:
            ValidationError: If quantity is negative or not an integer
            NotFoundError: If the product does not exist
        """
        logger.info("Updating product stock", id=product_id, quantity=quantity)
        self.telemetry.user_action("product_stock_update", id=product_id, quantity=quantity)

        try:
            self.rules.validate({"stock": quantity}, is_update=True)
            await self.gateway.update(self.collection, product_id, {
                "stock": quantity,
                "stockUpdatedAt": self.now_iso(),
                "stockUpdatedBy": self.actor(),
            })
        except Exception as e:
            logger.error("Failed to update product stock", error=str(e), id=product_id)
            self.telemetry.user_action("product_stock_update_failed", id=product_id, error=str(e))
            raise

        self.telemetry.user_action("product_stock_update_success", id=product_id, quantity=quantity)

    async def get_low_stock_products(self, threshold: Optional[int] = None) -> List[Record]:
        """Active products with 0 < stock <= threshold"""
        if threshold is None:
            threshold = self.settings.low_stock_threshold
        products = await self.get_all()
        return [p for p in products if 0 < (p.get("stock") or 0) <= threshold]

    async def get_out_of_stock_products(self) -> List[Record]:
        products = await self.get_all()
        return [p for p in products if (p.get("stock") or 0) == 0]

    async def compare_products(self, product_ids: Sequence[str]) -> Dict[str, Any]:
        """
        Compare two to four products.

        Args:
            product_ids: Product ids to compare

        Returns:
            {"products", "comparison": {"priceRange", "features", "categories",
            "shops", "availability"}, "metadata"}

        Raises:
            InvalidArgumentError: If the id count is out of bounds or fewer
                than two ids resolve to existing products
        """
        started_at = time.perf_counter()
        product_ids = list(product_ids or [])
        logger.info("Comparing products", product_ids=product_ids)
        self.telemetry.user_action("product_compare", product_ids=product_ids, count=len(product_ids))

        low, high = self.settings.compare_min, self.settings.compare_max
        if len(product_ids) < low:
            raise InvalidArgumentError(
                f"At least {low} products are required for comparison", field="productIds"
            )
        if len(product_ids) > high:
            raise InvalidArgumentError(
                f"Maximum {high} products can be compared at once", field="productIds"
            )

        products = await asyncio.gather(
            *(self.gateway.read(self.collection, pid) for pid in product_ids)
        )
        valid = [p for p in products if p]
        if len(valid) < low:
            raise InvalidArgumentError(
                f"At least {low} valid products are required for comparison", field="productIds"
            )

        prices = [p.get("price") or 0 for p in valid]
        comparison = {
            "products": valid,
            "comparison": {
                "priceRange": {
                    "min": min(prices),
                    "max": max(prices),
                    "average": sum(prices) / len(prices),
                },
                "features": extract_common_features(valid),
                "categories": _unique([p.get("category") for p in valid]),
                "shops": _unique([p.get("shopId") for p in valid]),
                "availability": {
                    "inStock": sum(1 for p in valid if (p.get("stock") or 0) > 0),
                    "outOfStock": sum(1 for p in valid if (p.get("stock") or 0) == 0),
                },
            },
            "metadata": {
                "comparedAt": self.now_iso(),
                "comparedBy": self.actor(),
            },
        }

        self.telemetry.performance("Product comparison", started_at, product_count=len(valid))
        return comparison
