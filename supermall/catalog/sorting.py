"""
In-memory sorting for catalog listings.

Each entity kind exposes a table of named sort orders. Python's sort is
stable, so records with equal keys keep their stored order.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, List

import structlog

from supermall.timeutils import timestamp_or_epoch

logger = structlog.get_logger(__name__)

Record = Dict[str, Any]


@dataclass(frozen=True)
class SortOrder:
    """Sort key plus direction"""
    key: Callable[[Record], Any]
    descending: bool = False


def text_key(field: str) -> Callable[[Record], str]:
    def key(record: Record) -> str:
        value = record.get(field)
        return str(value).casefold() if value is not None else ""
    return key


def number_key(field: str) -> Callable[[Record], float]:
    def key(record: Record) -> float:
        value = record.get(field)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        return 0
    return key


def stat_key(name: str) -> Callable[[Record], float]:
    def key(record: Record) -> float:
        stats = record.get("stats") or {}
        value = stats.get(name) if isinstance(stats, dict) else None
        return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0
    return key


def time_key(field: str) -> Callable[[Record], Any]:
    def key(record: Record) -> Any:
        return timestamp_or_epoch(record.get(field))
    return key


CREATED_NEWEST = SortOrder(time_key("createdAt"), descending=True)
CREATED_OLDEST = SortOrder(time_key("createdAt"))

SHOP_SORTS: Dict[str, SortOrder] = {
    "name": SortOrder(text_key("name")),
    "category": SortOrder(text_key("category")),
    "floor": SortOrder(number_key("floor")),
    "newest": CREATED_NEWEST,
    "oldest": CREATED_OLDEST,
    "views": SortOrder(stat_key("views"), descending=True),
    "rating": SortOrder(stat_key("rating"), descending=True),
}

PRODUCT_SORTS: Dict[str, SortOrder] = {
    "name": SortOrder(text_key("name")),
    "price_low": SortOrder(number_key("price")),
    "price_high": SortOrder(number_key("price"), descending=True),
    "category": SortOrder(text_key("category")),
    "newest": CREATED_NEWEST,
    "oldest": CREATED_OLDEST,
    "stock": SortOrder(number_key("stock"), descending=True),
    "views": SortOrder(stat_key("views"), descending=True),
    "rating": SortOrder(stat_key("rating"), descending=True),
}

OFFER_SORTS: Dict[str, SortOrder] = {
    "title": SortOrder(text_key("title")),
    "discount_high": SortOrder(number_key("discount"), descending=True),
    "discount_low": SortOrder(number_key("discount")),
    "newest": CREATED_NEWEST,
    "oldest": CREATED_OLDEST,
    "expiry": SortOrder(time_key("validTo")),
    "views": SortOrder(stat_key("views"), descending=True),
    "clicks": SortOrder(stat_key("clicks"), descending=True),
}

CATEGORY_SORTS: Dict[str, SortOrder] = {
    "floor": SortOrder(lambda r: (number_key("floor")(r), text_key("name")(r))),
    "name": SortOrder(text_key("name")),
    "newest": CREATED_NEWEST,
    "oldest": CREATED_OLDEST,
}


def sort_records(records: List[Record], sort_by: str, orders: Dict[str, SortOrder]) -> List[Record]:
    """
    Sort records by a named order.

    Unknown names leave the stored order untouched.
    """
    order = orders.get(sort_by)
    if order is None:
        logger.debug("Unknown sort order, keeping stored order", sort_by=sort_by)
        return list(records)
    return sorted(records, key=order.key, reverse=order.descending)
