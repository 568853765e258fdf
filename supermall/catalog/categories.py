"""
Category Service

Browsing categories, each placed on a mall floor.
"""

from typing import Any, Dict

from supermall.catalog.base import CatalogService
from supermall.catalog.sorting import CATEGORY_SORTS
from supermall.catalog.validation import CATEGORY_RULES


class CategoryService(CatalogService):
    """Categories shown in navigation; listed by floor, then name."""

    collection = "categories"
    entity = "category"
    label = "Category"
    rules = CATEGORY_RULES
    sorts = CATEGORY_SORTS
    default_sort = "floor"
    search_fields = ("name", "description")

    def initial_stats(self) -> Dict[str, Any]:
        return {"views": 0}
