"""
Offer Service

Time-boxed discounts attached to a shop and a set of its products.
"""

from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from supermall.catalog.base import CatalogService, Record
from supermall.catalog.sorting import OFFER_SORTS
from supermall.catalog.validation import OFFER_RULES
from supermall.errors import ValidationError
from supermall.timeutils import parse_timestamp, to_iso

logger = structlog.get_logger(__name__)

WINDOW_FIELDS = ("validFrom", "validTo")


def _valid_to(offer: Record):
    try:
        return parse_timestamp(offer.get("validTo"))
    except ValueError:
        return None


class OfferService(CatalogService):
    """Offers run by shops."""

    collection = "offers"
    entity = "offer"
    label = "Offer"
    name_field = "title"
    rules = OFFER_RULES
    sorts = OFFER_SORTS
    default_sort = "newest"
    search_fields = ("title", "description", "category")

    def initial_stats(self) -> Dict[str, Any]:
        return {
            "views": 0,
            "clicks": 0,
            "conversions": 0,
            "lastViewed": None,
            "lastClicked": None,
        }

    def normalize(self, data: Mapping[str, Any]) -> Record:
        record = dict(data)
        for field in WINDOW_FIELDS:
            if record.get(field) is not None:
                record[field] = to_iso(parse_timestamp(record[field]))
        if record.get("productIds") is not None:
            record["productIds"] = list(dict.fromkeys(record["productIds"]))
        return record

    def validate_update(self, patch: Mapping[str, Any], current: Record) -> None:
        candidate = dict(patch)
        # A one-sided window change is checked against the stored counterpart
        if any(field in patch for field in WINDOW_FIELDS):
            for field in WINDOW_FIELDS:
                candidate.setdefault(field, current.get(field))
        self.rules.validate(candidate, is_update=True, now=self.clock())

    def is_current(self, offer: Record) -> bool:
        """validFrom <= now <= validTo"""
        try:
            valid_from = parse_timestamp(offer.get("validFrom"))
            valid_to = parse_timestamp(offer.get("validTo"))
        except ValueError:
            return False
        if valid_from is None or valid_to is None:
            return False
        return valid_from <= self.clock() <= valid_to

    def post_filter(self, records: List[Record], options: Dict[str, Any]) -> List[Record]:
        if options.get("includeExpired"):
            return records
        return [offer for offer in records if self.is_current(offer)]

    async def get_active_offers(self, shop_id: Optional[str] = None) -> List[Record]:
        """Active offers currently inside their validity window"""
        filters: Dict[str, Any] = {}
        if shop_id:
            filters["shopId"] = shop_id
        return await self.get_all(filters)

    async def get_offers_by_shop(self, shop_id: str) -> List[Record]:
        return await self.get_all({"shopId": shop_id})

    async def get_expiring_offers(self, within_days: Optional[int] = None) -> List[Record]:
        """Current offers whose validTo falls within the next within_days days"""
        if within_days is None:
            within_days = self.settings.expiring_within_days
        logger.info("Fetching expiring offers", days=within_days)

        threshold = self.clock() + timedelta(days=within_days)
        offers = await self.get_active_offers()
        return [o for o in offers if _valid_to(o) is not None and _valid_to(o) <= threshold]

    async def get_expired_offers(self) -> List[Record]:
        """Active offers whose validTo has passed"""
        logger.info("Fetching expired offers")

        now = self.clock()
        offers = await self.get_all({"includeExpired": True})
        return [o for o in offers if _valid_to(o) is not None and _valid_to(o) < now]

    async def apply_offer_to_products(self, offer_id: str, product_ids: Sequence[str]) -> None:
        """
        Replace the products an offer applies to.

        Raises:
            ValidationError: If product_ids is not a list of ids
            NotFoundError: If the offer does not exist
        """
        logger.info("Applying offer to products", id=offer_id, product_ids=product_ids)
        self.telemetry.user_action("offer_apply_to_products", id=offer_id)

        try:
            if product_ids is None:
                raise ValidationError("productIds is required", field="productIds")
            self.rules.validate({"productIds": product_ids}, is_update=True)
            await self.gateway.update(self.collection, offer_id, {
                "productIds": list(dict.fromkeys(product_ids)),
                "appliedAt": self.now_iso(),
                "appliedBy": self.actor(),
            })
        except Exception as e:
            logger.error("Failed to apply offer to products", error=str(e), id=offer_id)
            self.telemetry.user_action("offer_apply_failed", id=offer_id, error=str(e))
            raise

        self.telemetry.user_action("offer_apply_success", id=offer_id, product_count=len(product_ids))

    async def track_offer_click(self, offer_id: str) -> None:
        """Count a click on the offer. Never raises."""
        self.telemetry.user_action("offer_click", id=offer_id)
        await self.increment_stat(offer_id, "clicks", "lastClicked")
