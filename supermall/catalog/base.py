"""
Catalog Service Base

Shared create/read/update/soft-delete/search behaviour for every catalog
entity kind. Subclasses declare their collection, rule set, sort table and
search fields, and override the hooks for entity-specific rules.
"""

import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

from supermall.catalog.lifecycle import LifecycleEvent, LifecycleState, transition
from supermall.catalog.session import SessionContext
from supermall.catalog.sorting import SortOrder, sort_records
from supermall.catalog.telemetry import Telemetry
from supermall.catalog.validation import RuleSet
from supermall.config.settings import CatalogSettings
from supermall.errors import NotFoundError, ValidationError
from supermall.storage.gateway import PersistenceGateway
from supermall.timeutils import Clock, to_iso, utcnow

logger = structlog.get_logger(__name__)

Record = Dict[str, Any]

#: Listing options consumed by the service, never forwarded as field filters
CONTROL_FILTERS = ("includeInactive", "includeExpired", "sortBy")

#: Fields a caller may not set through update()
PROTECTED_FIELDS = ("id", "createdAt", "createdBy", "stats")


class CatalogService:
    """
    Base class for catalog services.

    Subclasses set the class attributes below; the public operations are
    create, get_all, get_by_id, update, delete and search.
    """

    collection: str = ""
    entity: str = ""
    label: str = ""
    name_field: str = "name"
    rules: RuleSet
    sorts: Dict[str, SortOrder] = {}
    default_sort: str = "name"
    search_fields: Tuple[str, ...] = ("name", "description", "category")

    def __init__(
        self,
        gateway: PersistenceGateway,
        session: SessionContext,
        telemetry: Telemetry,
        clock: Optional[Clock] = None,
        settings: Optional[CatalogSettings] = None,
    ):
        self.gateway = gateway
        self.session = session
        self.telemetry = telemetry
        self.clock = clock or utcnow
        self.settings = settings or CatalogSettings()

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def initial_stats(self) -> Dict[str, Any]:
        return {"views": 0}

    def normalize(self, data: Mapping[str, Any]) -> Record:
        """Convert caller payload into its stored shape."""
        return dict(data)

    def validate_update(self, patch: Mapping[str, Any], current: Record) -> None:
        self.rules.validate(patch, is_update=True, now=self.clock())

    async def check_delete_allowed(self, doc_id: str, record: Record) -> None:
        """Raise to block a soft delete."""

    def post_filter(self, records: List[Record], options: Dict[str, Any]) -> List[Record]:
        """Filter applied after the gateway query, before sorting."""
        return records

    def matches(self, record: Record, term: str) -> bool:
        for field in self.search_fields:
            value = record.get(field)
            if value is not None and term in str(value).casefold():
                return True
        return False

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def actor(self) -> str:
        return self.session.current_actor_id()

    def now_iso(self) -> str:
        return to_iso(self.clock())

    def display_name(self, data: Mapping[str, Any]) -> Optional[str]:
        if isinstance(data, Mapping):
            return data.get(self.name_field)
        return None

    async def require(self, doc_id: str) -> Record:
        """Read a record or raise NotFoundError."""
        record = await self.gateway.read(self.collection, doc_id) if doc_id else None
        if not record:
            raise NotFoundError(f"{self.label} not found", field="id")
        return record

    async def increment_stat(self, doc_id: str, stat: str, stamp_field: str) -> None:
        """
        Best-effort counter increment. Failures are logged, never raised.

        Concurrent increments may lose updates; counters are telemetry.
        """
        try:
            record = await self.gateway.read(self.collection, doc_id)
            if record:
                stats = record.get("stats") or {}
                current = stats.get(stat) or 0
                await self.gateway.update(self.collection, doc_id, {
                    f"stats.{stat}": current + 1,
                    f"stats.{stamp_field}": self.now_iso(),
                })
        except Exception as e:
            logger.error(f"Failed to increment {self.entity} {stat}", error=str(e), id=doc_id)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def create(self, data: Mapping[str, Any]) -> str:
        """
        Validate and persist a new record.

        Returns:
            The new record id

        Raises:
            ValidationError: If data breaks a rule
        """
        started_at = time.perf_counter()
        name = self.display_name(data)
        logger.info(f"Creating new {self.entity}", name=name)
        self.telemetry.user_action(f"{self.entity}_create_attempt", name=name)

        try:
            self.rules.validate(data, is_update=False, now=self.clock())
            state = transition(None, LifecycleEvent.CREATE)
            doc_id = await self.gateway.create(self.collection, {
                **self.normalize(data),
                "isActive": state.is_active,
                "createdBy": self.actor(),
                "stats": self.initial_stats(),
            })
        except Exception as e:
            logger.error(f"Failed to create {self.entity}", error=str(e), name=name)
            self.telemetry.user_action(f"{self.entity}_create_failed", name=name, error=str(e))
            raise

        self.telemetry.performance(f"{self.label} creation", started_at, id=doc_id)
        logger.info(f"{self.label} created successfully", id=doc_id, name=name)
        self.telemetry.user_action(f"{self.entity}_create_success", id=doc_id, name=name)
        return doc_id

    async def get_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[Record]:
        """
        List records.

        Args:
            filters: Field equality filters plus listing options:
                includeInactive: keep soft-deleted records
                sortBy: named sort order (defaults per entity kind)

        Returns:
            Matching records, sorted
        """
        started_at = time.perf_counter()
        filters = dict(filters or {})
        logger.info(f"Fetching {self.entity}s", filters=filters)

        options = {key: filters.pop(key, None) for key in CONTROL_FILTERS}
        if options["includeInactive"]:
            filters.setdefault("isActive", None)
        else:
            filters["isActive"] = True

        records = await self.gateway.query(self.collection, filters)
        records = self.post_filter(records, options)
        records = sort_records(records, options["sortBy"] or self.default_sort, self.sorts)

        self.telemetry.performance(f"{self.label} fetch", started_at, count=len(records))
        return records

    async def get_by_id(self, doc_id: str) -> Record:
        """
        Fetch one record and count the view.

        Raises:
            NotFoundError: If doc_id does not exist
        """
        started_at = time.perf_counter()
        logger.info(f"Fetching {self.entity} by ID", id=doc_id)

        try:
            record = await self.require(doc_id)
        except NotFoundError as e:
            logger.error(f"Failed to fetch {self.entity}", error=e.message, id=doc_id)
            raise

        await self.increment_stat(doc_id, "views", "lastViewed")

        self.telemetry.performance(f"{self.label} fetch by ID", started_at, id=doc_id)
        return record

    async def update(self, doc_id: str, patch: Mapping[str, Any]) -> None:
        """
        Validate and merge a partial update.

        Raises:
            NotFoundError: If doc_id does not exist
            ValidationError: If patch breaks a rule or touches protected fields
        """
        started_at = time.perf_counter()
        logger.info(f"Updating {self.entity}", id=doc_id)
        self.telemetry.user_action(f"{self.entity}_update_attempt", id=doc_id)

        try:
            if not isinstance(patch, Mapping):
                raise ValidationError(f"{self.entity} data must be an object")
            for key in patch:
                if key in PROTECTED_FIELDS or key.startswith("stats."):
                    raise ValidationError(f"{key} cannot be changed through update", field=key)

            current = await self.require(doc_id)
            state = transition(LifecycleState.of(current), LifecycleEvent.UPDATE)
            if "isActive" in patch:
                # Only a boolean restating the current state passes; it is never written
                if patch["isActive"] is not state.is_active:
                    raise ValidationError(
                        "isActive cannot be changed through update; use delete",
                        field="isActive",
                    )
                patch = {k: v for k, v in patch.items() if k != "isActive"}

            self.validate_update(patch, current)
            await self.gateway.update(self.collection, doc_id, {
                **self.normalize(patch),
                "updatedBy": self.actor(),
            })
        except Exception as e:
            logger.error(f"Failed to update {self.entity}", error=str(e), id=doc_id)
            self.telemetry.user_action(f"{self.entity}_update_failed", id=doc_id, error=str(e))
            raise

        self.telemetry.performance(f"{self.label} update", started_at, id=doc_id)
        self.telemetry.user_action(f"{self.entity}_update_success", id=doc_id)

    async def delete(self, doc_id: str) -> None:
        """
        Soft delete: mark the record inactive and stamp the deletion.

        Deleting an already inactive record changes nothing.

        Raises:
            NotFoundError: If doc_id does not exist
        """
        started_at = time.perf_counter()
        logger.info(f"Deleting {self.entity}", id=doc_id)
        self.telemetry.user_action(f"{self.entity}_delete_attempt", id=doc_id)

        try:
            current = await self.require(doc_id)
            await self.check_delete_allowed(doc_id, current)

            state = LifecycleState.of(current)
            new_state = transition(state, LifecycleEvent.DELETE)
            if state is new_state:
                logger.info(f"{self.label} already inactive", id=doc_id)
            else:
                await self.gateway.update(self.collection, doc_id, {
                    "isActive": new_state.is_active,
                    "deletedAt": self.now_iso(),
                    "deletedBy": self.actor(),
                })
        except Exception as e:
            logger.error(f"Failed to delete {self.entity}", error=str(e), id=doc_id)
            self.telemetry.user_action(f"{self.entity}_delete_failed", id=doc_id, error=str(e))
            raise

        self.telemetry.performance(f"{self.label} deletion", started_at, id=doc_id)
        self.telemetry.user_action(f"{self.entity}_delete_success", id=doc_id)

    async def search(self, query: Optional[str], filters: Optional[Mapping[str, Any]] = None) -> List[Record]:
        """
        Case-insensitive substring search over the entity's search fields.

        A blank query returns the filtered listing unchanged.
        """
        started_at = time.perf_counter()
        self.telemetry.user_action(f"{self.entity}_search", query=query)

        records = await self.get_all(filters)
        if not query or not query.strip():
            return records

        term = query.strip().casefold()
        matching = [record for record in records if self.matches(record, term)]

        self.telemetry.performance(
            f"{self.label} search", started_at, query=query, result_count=len(matching)
        )
        return matching
