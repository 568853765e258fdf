"""
Document Store Interface

A document store keeps JSON-serializable records grouped by collection key.
The gateway owns identifiers, timestamps and merge semantics; a store only
persists whole documents.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

Document = Dict[str, Any]


class DocumentStore(ABC):
    """Backend contract shared by the Redis and local implementations."""

    #: Short backend name reported by health checks and logs
    name: str = "abstract"

    async def connect(self) -> None:
        """Verify the backend is reachable. Raises StorageError if not."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def generate_id(self, key: str) -> str:
        """Return an identifier not yet used in the collection under key."""

    @abstractmethod
    async def insert(self, key: str, document: Document) -> None:
        """Append a new document. The document carries its own "id"."""

    @abstractmethod
    async def get(self, key: str, doc_id: str) -> Optional[Document]:
        """Return the document with doc_id, or None."""

    @abstractmethod
    async def all(self, key: str) -> List[Document]:
        """Return every document in the collection."""

    @abstractmethod
    async def replace(self, key: str, doc_id: str, document: Document) -> bool:
        """Overwrite an existing document. Returns False if doc_id is absent."""

    @abstractmethod
    async def remove(self, key: str, doc_id: str) -> bool:
        """Drop a document. Returns False if doc_id is absent."""

    async def health(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": self.name}
