"""
Local Key-Value Store

Fallback persistence used when no remote document store is reachable. It
behaves like a browser key-value store: one string value per key, each
collection serialized as an ordered JSON list under its own key. With a file
path the whole key space is mirrored to a JSON file after every write.
"""

import json
import secrets
import string
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog

from supermall.errors import StorageError
from supermall.storage.base import Document, DocumentStore
from supermall.timeutils import json_default

logger = structlog.get_logger(__name__)

_BASE36 = string.digits + string.ascii_lowercase


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_local_id() -> str:
    """Time-based prefix plus random suffix, both base36."""
    return _base36(int(time.time() * 1000)) + _base36(secrets.randbits(52))


class KeyValueStore:
    """
    String key-value store with optional JSON file persistence.

    Example:
        kv = KeyValueStore(Path("./data/supermall.json"))
        kv.set_item("supermall_shops", "[]")
        raw = kv.get_item("supermall_shops")
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._items: Dict[str, str] = {}
        if self.path is not None and self.path.exists():
            self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load local store", path=str(self.path), error=str(e))
            raise StorageError(f"Local store file is unreadable: {self.path}") from e

        if not isinstance(data, dict):
            raise StorageError(f"Local store file must hold a JSON object: {self.path}")
        self._items = {str(k): str(v) for k, v in data.items()}
        logger.info("Local store loaded", path=str(self.path), keys=len(self._items))

    def _commit(self, items: Dict[str, str]) -> None:
        """Write items to the file, then adopt them; a failed write changes nothing."""
        if self.path is not None:
            self._flush(items)
        self._items = items

    def _flush(self, items: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(items), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            logger.error("Failed to persist local store", path=str(self.path), error=str(e))
            raise StorageError(f"Could not write local store file: {self.path}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._commit({**self._items, key: value})

    def remove_item(self, key: str) -> None:
        if key in self._items:
            self._commit({k: v for k, v in self._items.items() if k != key})

    def keys(self) -> List[str]:
        return list(self._items)


class LocalDocumentStore(DocumentStore):
    """Document store over a KeyValueStore, one JSON list per collection."""

    name = "local"

    def __init__(self, kv: Optional[KeyValueStore] = None):
        self.kv = kv or KeyValueStore()

    def _load_list(self, key: str) -> List[Document]:
        raw = self.kv.get_item(key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Collection '{key}' holds malformed JSON") from e
        if not isinstance(items, list):
            raise StorageError(f"Collection '{key}' must hold a JSON list")
        return items

    def _save_list(self, key: str, items: List[Document]) -> None:
        try:
            serialized = json.dumps(items, default=json_default)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Failed to serialize collection '{key}': {e}") from e
        self.kv.set_item(key, serialized)

    async def generate_id(self, key: str) -> str:
        existing = {item.get("id") for item in self._load_list(key)}
        doc_id = generate_local_id()
        while doc_id in existing:
            doc_id = generate_local_id()
        return doc_id

    async def insert(self, key: str, document: Document) -> None:
        items = self._load_list(key)
        items.append(document)
        self._save_list(key, items)

    async def get(self, key: str, doc_id: str) -> Optional[Document]:
        for item in self._load_list(key):
            if item.get("id") == doc_id:
                return item
        return None

    async def all(self, key: str) -> List[Document]:
        return self._load_list(key)

    async def replace(self, key: str, doc_id: str, document: Document) -> bool:
        items = self._load_list(key)
        for index, item in enumerate(items):
            if item.get("id") == doc_id:
                items[index] = document
                self._save_list(key, items)
                return True
        return False

    async def remove(self, key: str, doc_id: str) -> bool:
        items = self._load_list(key)
        kept = [item for item in items if item.get("id") != doc_id]
        if len(kept) == len(items):
            return False
        self._save_list(key, kept)
        return True

    async def health(self) -> dict:
        return {
            "status": "healthy",
            "backend": self.name,
            "persistent": self.kv.path is not None,
        }
