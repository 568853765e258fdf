"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from supermall.catalog.session import SessionContext
from supermall.catalog.telemetry import Telemetry
from supermall.config import Settings
from supermall.config.settings import StorageSettings
from supermall.context import AppContext, wire_context
from supermall.storage.gateway import PersistenceGateway
from supermall.storage.local_store import LocalDocumentStore


START = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable time source"""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeRedis:
    """In-memory stand-in for the async Redis hash commands the store uses"""

    def __init__(self, reachable: bool = True):
        self.reachable = reachable
        self.hashes: Dict[str, Dict[str, str]] = {}
        self.closed = False

    async def ping(self) -> bool:
        if not self.reachable:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
        return True

    async def hset(self, key: str, field: str, value: str) -> int:
        bucket = self.hashes.setdefault(key, {})
        created = field not in bucket
        bucket[field] = value
        return int(created)

    async def hget(self, key: str, field: str) -> Optional[str]:
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self.hashes.get(key, {}))

    async def hexists(self, key: str, field: str) -> bool:
        return field in self.hashes.get(key, {})

    async def hdel(self, key: str, *fields: str) -> int:
        bucket = self.hashes.get(key, {})
        return sum(1 for field in fields if bucket.pop(field, None) is not None)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at START until advanced"""
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings on the in-memory local store"""
    return Settings(
        app_env="testing",
        debug=True,
        storage=StorageSettings(backend="local"),
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def unreachable_redis() -> FakeRedis:
    return FakeRedis(reachable=False)


@pytest.fixture
def gateway(clock) -> PersistenceGateway:
    """Gateway over a fresh in-memory local store"""
    return PersistenceGateway(LocalDocumentStore(), clock=clock)


@pytest.fixture
def session() -> SessionContext:
    return SessionContext()


@pytest.fixture
def telemetry(session, clock) -> Telemetry:
    return Telemetry(session, buffer_size=50, clock=clock)


@pytest.fixture
def context(test_settings, gateway, session, clock) -> AppContext:
    """Fully wired services sharing one gateway, session and clock"""
    return wire_context(test_settings, gateway, session=session, clock=clock)


@pytest.fixture
def shop_data() -> Dict[str, Any]:
    """Valid shop payload"""
    return {
        "name": "Green Grocer",
        "description": "Fresh organic produce from local farms",
        "category": "grocery",
        "floor": 2,
        "contact": {
            "email": "hello@greengrocer.com",
            "phone": "+1 (555) 123-4567",
        },
        "location": {"unit": "2-14"},
        "images": ["front.jpg"],
    }


@pytest.fixture
def product_data() -> Dict[str, Any]:
    """Valid product payload; shopId is filled in by the test"""
    return {
        "name": "Apple Juice",
        "description": "Cold pressed juice from organic apples",
        "price": 4.5,
        "category": "beverages",
        "shopId": "",
        "stock": 20,
        "specifications": {"volume": "1L", "origin": "Kent"},
    }


@pytest.fixture
def offer_data(clock) -> Dict[str, Any]:
    """Valid offer payload running from a day ago to ten days ahead"""
    return {
        "title": "Spring Sale",
        "description": "Fifteen percent off selected juices",
        "discount": 15,
        "shopId": "",
        "validFrom": clock() - timedelta(days=1),
        "validTo": clock() + timedelta(days=10),
        "productIds": [],
    }


@pytest.fixture
async def shop_id(context, shop_data) -> str:
    """Id of a persisted shop"""
    return await context.shops.create(shop_data)
