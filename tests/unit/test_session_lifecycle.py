"""
Unit Tests - Session, Users, Lifecycle, Telemetry and Categories
"""
import pytest
import structlog

from supermall.catalog.lifecycle import LifecycleEvent, LifecycleState, transition
from supermall.catalog.session import SessionContext, User
from supermall.catalog.telemetry import Telemetry
from supermall.errors import InvalidArgumentError, ValidationError


class TestSessionContext:
    """Tests for actor attribution"""

    def test_anonymous_by_default(self):
        session = SessionContext()

        assert not session.is_authenticated
        assert session.current_actor_id() == "anonymous"
        assert session.current_actor_role() is None

    def test_sign_in_and_out(self):
        session = SessionContext()

        session.sign_in(User(uid="u-1", email="owner@mall.com", role="admin"))

        assert session.current_actor_id() == "u-1"
        assert session.is_admin()
        assert session.has_role("admin")

        session.sign_out()

        assert session.user is None
        assert session.current_actor_id() == "anonymous"

    def test_user_to_dict(self):
        user = User(uid="u-2", display_name="Sam")

        assert user.to_dict() == {"uid": "u-2", "email": None, "display_name": "Sam", "role": "user"}


class TestLifecycle:
    """Tests for the record lifecycle"""

    def test_create_starts_active(self):
        assert transition(None, LifecycleEvent.CREATE) is LifecycleState.ACTIVE

    def test_delete_is_terminal(self):
        assert transition(LifecycleState.ACTIVE, LifecycleEvent.DELETE) is LifecycleState.INACTIVE
        assert transition(LifecycleState.INACTIVE, LifecycleEvent.DELETE) is LifecycleState.INACTIVE
        assert transition(LifecycleState.INACTIVE, LifecycleEvent.UPDATE) is LifecycleState.INACTIVE

    def test_invalid_transitions(self):
        with pytest.raises(InvalidArgumentError):
            transition(LifecycleState.ACTIVE, LifecycleEvent.CREATE)
        with pytest.raises(InvalidArgumentError):
            transition(None, LifecycleEvent.DELETE)

    @pytest.mark.parametrize("record, expected", [
        ({"isActive": True}, LifecycleState.ACTIVE),
        ({"isActive": False}, LifecycleState.INACTIVE),
        ({"isActive": "yes"}, LifecycleState.INACTIVE),
        ({}, LifecycleState.INACTIVE),
    ])
    def test_state_of_record(self, record, expected):
        assert LifecycleState.of(record) is expected


class BrokenSession:
    """Session whose lookups fail"""

    def current_actor_id(self):
        raise RuntimeError("session store unavailable")


class TestTelemetry:
    """Tests for the telemetry buffer"""

    def test_events_carry_actor(self, telemetry, session, clock):
        session.sign_in(User(uid="u-9"))

        telemetry.user_action("shop_view", id="s1")

        event = telemetry.recent()[0]
        assert event["kind"] == "user_action"
        assert event["name"] == "shop_view"
        assert event["actor"] == "u-9"
        assert event["data"] == {"id": "s1"}
        assert event["timestamp"] == clock().isoformat()

    def test_buffer_is_bounded(self, session):
        telemetry = Telemetry(session, buffer_size=3)

        for i in range(5):
            telemetry.user_action(f"action_{i}")

        assert [e["name"] for e in telemetry.recent()] == ["action_2", "action_3", "action_4"]

    def test_timed_block(self, telemetry):
        with telemetry.timed("Bulk import", source="csv") as extra:
            extra["rows"] = 3

        event = telemetry.recent("performance")[0]
        assert event["name"] == "Bulk import"
        assert event["data"]["rows"] == 3
        assert event["data"]["duration_ms"] >= 0

    def test_failures_never_propagate(self):
        telemetry = Telemetry(BrokenSession())

        telemetry.user_action("anything")
        telemetry.performance("anything", 0.0)

        assert telemetry.recent() == []

    def test_clear(self, telemetry):
        telemetry.user_action("a")

        telemetry.clear()

        assert telemetry.recent() == []


class TestTelemetryPersistence:
    """Tests for flushing telemetry to the logs collection"""

    async def test_flush_writes_pending_events(self, session, gateway, clock):
        telemetry = Telemetry(session, buffer_size=10, clock=clock, gateway=gateway)
        telemetry.user_action("shop_view", id="s1")
        telemetry.performance("Shop fetch", 0.0)

        written = await telemetry.flush()

        logs = await gateway.read("logs")
        assert written == 2
        assert [entry["name"] for entry in logs] == ["shop_view", "Shop fetch"]
        assert logs[0]["actor"] == "anonymous"
        assert await telemetry.flush() == 0

    async def test_logs_collection_is_bounded(self, session, gateway, clock):
        telemetry = Telemetry(session, buffer_size=3, clock=clock, gateway=gateway)
        for i in range(2):
            telemetry.user_action(f"first_{i}")
        await telemetry.flush()
        for i in range(3):
            telemetry.user_action(f"second_{i}")

        await telemetry.flush()

        names = [entry["name"] for entry in await gateway.read("logs")]
        assert names == ["second_0", "second_1", "second_2"]

    async def test_flush_without_gateway(self, telemetry):
        telemetry.user_action("a")

        assert await telemetry.flush() == 0

    async def test_flush_failure_is_swallowed(self, session, gateway):
        telemetry = Telemetry(session, gateway=gateway)
        gateway.store.kv.set_item("supermall_logs", "{oops")
        telemetry.user_action("a")

        assert await telemetry.flush() == 0

    def test_events_carry_bound_request_id(self, telemetry):
        structlog.contextvars.bind_contextvars(request_id="req-5")
        try:
            telemetry.user_action("a")
        finally:
            structlog.contextvars.clear_contextvars()

        assert telemetry.recent()[0]["requestId"] == "req-5"


class TestUserService:
    """Tests for user profiles in the users collection"""

    async def test_sign_in_creates_profile(self, context, clock):
        profile = await context.users.sign_in(User(uid="u-1", email="a@b.co", role="admin"))

        assert profile["uid"] == "u-1"
        assert profile["email"] == "a@b.co"
        assert profile["role"] == "admin"
        assert profile["lastLogin"] == clock().isoformat()
        assert profile["isActive"] is True
        assert context.session.current_actor_id() == "u-1"

    async def test_second_sign_in_updates_profile(self, context, clock):
        await context.users.sign_in(User(uid="u-1", display_name="Ann"))
        clock.advance(days=1)

        profile = await context.users.sign_in(User(uid="u-1", display_name="Ann B", role="admin"))

        assert len(await context.gateway.read("users")) == 1
        assert profile["displayName"] == "Ann B"
        assert profile["role"] == "admin"
        assert profile["lastLogin"] == clock().isoformat()

    async def test_get_user(self, context):
        await context.users.sign_in(User(uid="u-1"))

        assert (await context.users.get_user("u-1"))["uid"] == "u-1"
        assert await context.users.get_user("u-2") is None

    async def test_sign_out(self, context):
        await context.users.sign_in(User(uid="u-1"))

        context.users.sign_out()

        assert context.session.current_actor_id() == "anonymous"
        assert context.telemetry.recent()[-1]["name"] == "logout"


class TestCategories:
    """Tests for the category service"""

    async def test_listed_by_floor_then_name(self, context):
        await context.categories.create({"name": "Toys", "floor": 2})
        await context.categories.create({"name": "Books", "floor": 2})
        await context.categories.create({"name": "Food", "floor": 1})

        names = [c["name"] for c in await context.categories.get_all()]

        assert names == ["Food", "Books", "Toys"]

    async def test_invalid_category(self, context):
        with pytest.raises(ValidationError, match="Category name must be at least 2"):
            await context.categories.create({"name": "X"})

    async def test_delete_and_search(self, context):
        keep = await context.categories.create({"name": "Fashion", "description": "Clothing and shoes"})
        gone = await context.categories.create({"name": "Shoes outlet"})
        await context.categories.delete(gone)

        results = await context.categories.search("shoes")

        assert [c["id"] for c in results] == [keep]
