"""
Persistence Gateway

Uniform create/read/update/query operations against named collections. The
backing DocumentStore is chosen once at startup and never changes for the
lifetime of the process.

Features:
- Identifier and timestamp assignment
- Shallow merge updates with dotted-path patches ("stats.views")
- Equality filters with a priceRange special case
"""

import copy
from typing import Any, Dict, List, Optional, Union

import structlog

from supermall.config.settings import Settings
from supermall.errors import InvalidArgumentError, NotFoundError, StorageError
from supermall.storage.base import Document, DocumentStore
from supermall.storage.local_store import KeyValueStore, LocalDocumentStore
from supermall.storage.redis_store import RedisDocumentStore, create_redis_client
from supermall.timeutils import Clock, to_iso, utcnow

logger = structlog.get_logger(__name__)

COLLECTIONS = ("users", "shops", "products", "categories", "offers", "logs")

PRICE_RANGE_FILTER = "priceRange"


def is_blank(value: Any) -> bool:
    """Filter values that impose no constraint."""
    return value is None or (isinstance(value, str) and value == "")


def apply_patch(record: Document, patch: Dict[str, Any]) -> Document:
    """
    Merge patch onto record.

    Top-level keys replace existing values. Keys containing dots address
    nested mappings, e.g. {"stats.views": 3} only touches record["stats"]["views"].
    """
    merged = copy.deepcopy(record)
    for key, value in patch.items():
        if "." not in key:
            merged[key] = copy.deepcopy(value)
            continue

        *parents, leaf = key.split(".")
        target = merged
        for part in parents:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[leaf] = copy.deepcopy(value)
    return merged


def matches_filters(record: Document, filters: Dict[str, Any]) -> bool:
    """AND-conjunction of equality filters; blank filter values are skipped."""
    for key, expected in filters.items():
        if is_blank(expected):
            continue

        if key == PRICE_RANGE_FILTER:
            bounds = expected if isinstance(expected, dict) else {}
            low, high = bounds.get("min"), bounds.get("max")
            price = record.get("price")
            if low is None and high is None:
                continue
            if not isinstance(price, (int, float)) or isinstance(price, bool):
                return False
            if low is not None and price < low:
                return False
            if high is not None and price > high:
                return False
            continue

        if record.get(key) != expected:
            return False
    return True


class PersistenceGateway:
    """
    Collection-level persistence over a single DocumentStore.

    Example:
        gateway = PersistenceGateway(LocalDocumentStore())
        shop_id = await gateway.create("shops", {"name": "Hub"})
        shop = await gateway.read("shops", shop_id)
    """

    def __init__(
        self,
        store: DocumentStore,
        key_prefix: str = "supermall_",
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.key_prefix = key_prefix
        self.clock = clock or utcnow

    @property
    def backend(self) -> str:
        return self.store.name

    def collection_key(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise InvalidArgumentError(
                f"Unknown collection '{collection}'. Expected one of: {list(COLLECTIONS)}",
                field="collection",
            )
        return f"{self.key_prefix}{collection}"

    async def create(self, collection: str, data: Dict[str, Any]) -> str:
        """
        Create a new document.

        Args:
            collection: Collection name
            data: Document fields; every field is persisted

        Returns:
            The generated document id
        """
        key = self.collection_key(collection)
        logger.info(f"Creating document in {collection}", fields=sorted(data))

        try:
            doc_id = await self.store.generate_id(key)
            document = {
                **copy.deepcopy(data),
                "id": doc_id,
                "createdAt": to_iso(self.clock()),
            }
            await self.store.insert(key, document)
        except StorageError as e:
            logger.error(f"Error creating document in {collection}", error=str(e))
            raise

        return doc_id

    async def read(
        self,
        collection: str,
        doc_id: Optional[str] = None,
    ) -> Union[Optional[Document], List[Document]]:
        """
        Read one document by id, or the whole collection when no id is given.

        Inactive documents are returned as well; filtering them is up to the caller.
        """
        key = self.collection_key(collection)
        try:
            if doc_id:
                return await self.store.get(key, doc_id)
            return await self.store.all(key)
        except StorageError as e:
            logger.error(f"Error reading from {collection}", error=str(e), id=doc_id)
            raise

    async def update(self, collection: str, doc_id: str, patch: Dict[str, Any]) -> None:
        """
        Merge patch onto an existing document and stamp updatedAt.

        Raises:
            NotFoundError: If doc_id does not exist in the collection
        """
        key = self.collection_key(collection)
        logger.info(f"Updating document {doc_id} in {collection}", fields=sorted(patch))

        try:
            current = await self.store.get(key, doc_id)
            if current is None:
                raise NotFoundError(f"Document {doc_id} not found in {collection}", field="id")

            # Identifiers are immutable
            patch = {k: v for k, v in patch.items() if k != "id"}
            merged = apply_patch(current, patch)
            merged["updatedAt"] = to_iso(self.clock())

            if not await self.store.replace(key, doc_id, merged):
                raise NotFoundError(f"Document {doc_id} not found in {collection}", field="id")
        except (NotFoundError, StorageError) as e:
            logger.error(f"Error updating document {doc_id} in {collection}", error=str(e))
            raise

    async def query(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[Document]:
        """
        Read the collection and keep documents matching every filter.

        Args:
            collection: Collection name
            filters: Field -> expected value; "priceRange" takes {"min", "max"}

        Returns:
            Matching documents in stored order
        """
        filters = filters or {}
        logger.debug(f"Querying {collection}", filters=filters)

        items = await self.read(collection)
        return [item for item in items if matches_filters(item, filters)]

    async def trim(self, collection: str, keep: int) -> int:
        """
        Drop the oldest documents so at most keep remain.

        Only for ring-buffer collections such as "logs"; catalog records are
        soft-deleted instead.

        Returns:
            Number of documents removed
        """
        key = self.collection_key(collection)
        items = await self.read(collection)
        excess = items[:max(len(items) - keep, 0)]
        try:
            for item in excess:
                await self.store.remove(key, item["id"])
        except StorageError as e:
            logger.error(f"Error trimming {collection}", error=str(e))
            raise
        return len(excess)

    async def health(self) -> Dict[str, Any]:
        return await self.store.health()

    async def close(self) -> None:
        await self.store.close()


def create_local_store(settings: Settings) -> LocalDocumentStore:
    return LocalDocumentStore(KeyValueStore(settings.storage.local_path))


async def open_gateway(
    settings: Settings,
    redis_client: Optional[Any] = None,
    clock: Optional[Clock] = None,
) -> PersistenceGateway:
    """
    Select the backend once and build the gateway.

    "local" never contacts Redis. "auto" and "redis" try Redis once; when it
    is unreachable the process degrades to the local store for its lifetime.
    """
    mode = settings.storage.backend
    store: DocumentStore

    if mode == "local":
        store = create_local_store(settings)
    else:
        remote = RedisDocumentStore(redis_client or create_redis_client(settings.redis))
        try:
            await remote.connect()
            store = remote
        except StorageError as e:
            log = logger.error if mode == "redis" else logger.warning
            log("Remote store not available, using local fallback", error=str(e))
            await remote.close()
            store = create_local_store(settings)

    logger.info("Persistence gateway ready", backend=store.name)
    return PersistenceGateway(store, key_prefix=settings.storage.key_prefix, clock=clock)
