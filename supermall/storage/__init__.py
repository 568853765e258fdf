"""
Storage Module
"""
from .base import DocumentStore
from .gateway import COLLECTIONS, PersistenceGateway, open_gateway
from .local_store import KeyValueStore, LocalDocumentStore
from .redis_store import RedisDocumentStore

__all__ = [
    "COLLECTIONS",
    "DocumentStore",
    "KeyValueStore",
    "LocalDocumentStore",
    "PersistenceGateway",
    "RedisDocumentStore",
    "open_gateway",
]
