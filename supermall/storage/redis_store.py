"""
Redis Document Store

Remote persistence backend with:
- Connection pooling
- JSON serialization
- One hash per collection, field = document id
"""

import json
import time
import uuid
from typing import Any, Dict, List, Optional

import structlog
from redis.asyncio import Redis, ConnectionPool
from redis.exceptions import RedisError

from supermall.config.settings import RedisSettings
from supermall.errors import StorageError
from supermall.storage.base import Document, DocumentStore
from supermall.timeutils import json_default, timestamp_or_epoch

logger = structlog.get_logger(__name__)


def create_redis_client(settings: RedisSettings) -> Redis:
    """Build a Redis client backed by a connection pool"""
    pool = ConnectionPool.from_url(
        settings.get_url(),
        max_connections=settings.max_connections,
        socket_timeout=settings.socket_timeout,
        decode_responses=True,
    )
    return Redis(connection_pool=pool)


class RedisDocumentStore(DocumentStore):
    """
    Document store on Redis hashes.

    Example:
        store = RedisDocumentStore(create_redis_client(settings.redis))
        await store.connect()
        await store.insert("supermall_shops", {"id": "abc", "name": "Hub"})
    """

    name = "redis"

    def __init__(self, client: Redis):
        self.client = client

    async def connect(self) -> None:
        try:
            await self.client.ping()
            logger.info("Redis connection established")
        except (RedisError, OSError) as e:
            logger.error(f"Redis connection failed: {e}")
            raise StorageError(f"Redis unreachable: {e}") from e

    async def close(self) -> None:
        try:
            await self.client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("Error while closing Redis", error=str(e))
        logger.info("Redis connection closed")

    @staticmethod
    def _decode(raw: Any) -> Optional[Document]:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored document is not valid JSON: {e}") from e

    @staticmethod
    def _encode(document: Document) -> str:
        try:
            return json.dumps(document, default=json_default)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to serialize document: {e}") from e

    async def generate_id(self, key: str) -> str:
        return uuid.uuid4().hex

    async def insert(self, key: str, document: Document) -> None:
        try:
            await self.client.hset(key, document["id"], self._encode(document))
        except RedisError as e:
            raise StorageError(f"Redis write failed: {e}") from e

    async def get(self, key: str, doc_id: str) -> Optional[Document]:
        try:
            raw = await self.client.hget(key, doc_id)
        except RedisError as e:
            raise StorageError(f"Redis read failed: {e}") from e
        return self._decode(raw)

    async def all(self, key: str) -> List[Document]:
        try:
            raw_items = await self.client.hgetall(key)
        except RedisError as e:
            raise StorageError(f"Redis read failed: {e}") from e

        documents = [self._decode(raw) for raw in raw_items.values()]
        # Hashes are unordered; keep insertion order like the local store
        documents.sort(key=lambda d: (timestamp_or_epoch(d.get("createdAt")), d.get("id", "")))
        return documents

    async def replace(self, key: str, doc_id: str, document: Document) -> bool:
        try:
            if not await self.client.hexists(key, doc_id):
                return False
            await self.client.hset(key, doc_id, self._encode(document))
        except RedisError as e:
            raise StorageError(f"Redis write failed: {e}") from e
        return True

    async def remove(self, key: str, doc_id: str) -> bool:
        try:
            return bool(await self.client.hdel(key, doc_id))
        except RedisError as e:
            raise StorageError(f"Redis delete failed: {e}") from e

    async def health(self) -> Dict[str, Any]:
        try:
            start = time.perf_counter()
            await self.client.ping()
            latency_ms = (time.perf_counter() - start) * 1000
            return {
                "status": "healthy",
                "backend": self.name,
                "latency_ms": round(latency_ms, 2),
            }
        except (RedisError, OSError) as e:
            return {"status": "unhealthy", "backend": self.name, "error": str(e)}
