"""
Catalog Telemetry

Side channel for user actions and operation timings. Events go to structlog
and into a bounded in-memory buffer; flush() copies them to the "logs"
collection, which is kept to the same size. A telemetry failure never affects
the operation being measured.
"""

import logging
import time
from collections import deque
from contextlib import contextmanager
from typing import Any, Deque, Dict, Iterator, List, Optional

import structlog

from supermall.catalog.session import SessionContext
from supermall.storage.gateway import PersistenceGateway
from supermall.timeutils import Clock, to_iso, utcnow

logger = structlog.get_logger("supermall.telemetry")
_fallback = logging.getLogger(__name__)


class Telemetry:
    """
    Structured event sink shared by the catalog services.

    Example:
        telemetry.user_action("shop_create_attempt", shopName="Hub")
        with telemetry.timed("Shop creation", shopId=shop_id):
            ...
    """

    def __init__(
        self,
        session: SessionContext,
        buffer_size: int = 100,
        clock: Optional[Clock] = None,
        gateway: Optional[PersistenceGateway] = None,
    ):
        self.session = session
        self.clock = clock or utcnow
        self.gateway = gateway
        self.buffer_size = buffer_size
        self._events: Deque[Dict[str, Any]] = deque(maxlen=buffer_size)
        self._pending: Deque[Dict[str, Any]] = deque(maxlen=buffer_size)

    def _record(self, kind: str, name: str, data: Dict[str, Any]) -> None:
        try:
            event = {
                "timestamp": to_iso(self.clock()),
                "kind": kind,
                "name": name,
                "actor": self.session.current_actor_id(),
                "requestId": structlog.contextvars.get_contextvars().get("request_id"),
                "data": data,
            }
            self._events.append(event)
            self._pending.append(event)
        except Exception as e:
            _fallback.warning("Telemetry buffer write failed: %s", e)

    def user_action(self, action: str, **data: Any) -> None:
        """Record a named user action"""
        try:
            actor = self.session.current_actor_id()
            logger.info("User action", action=action, actor=actor, **data)
            self._record("user_action", action, data)
        except Exception as e:
            _fallback.warning("Telemetry user_action failed: %s", e)

    def performance(self, operation: str, started_at: float, **data: Any) -> None:
        """
        Record the duration of an operation.

        Args:
            operation: Operation label
            started_at: time.perf_counter() value taken when the operation began
        """
        try:
            duration_ms = round((time.perf_counter() - started_at) * 1000, 2)
            logger.info(f"Performance: {operation}", duration_ms=duration_ms, **data)
            self._record("performance", operation, {**data, "duration_ms": duration_ms})
        except Exception as e:
            _fallback.warning("Telemetry performance failed: %s", e)

    @contextmanager
    def timed(self, operation: str, **data: Any) -> Iterator[Dict[str, Any]]:
        """
        Time the enclosed block. Extra fields added to the yielded dict are
        logged with the duration. Nothing is logged if the block raises.
        """
        started_at = time.perf_counter()
        extra: Dict[str, Any] = dict(data)
        yield extra
        self.performance(operation, started_at, **extra)

    def recent(self, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        """Buffered events, oldest first"""
        events = list(self._events)
        if kind:
            events = [e for e in events if e["kind"] == kind]
        return events

    def clear(self) -> None:
        self._events.clear()
        self._pending.clear()

    async def flush(self) -> int:
        """
        Persist events recorded since the last flush to the "logs" collection
        and trim it to buffer_size entries. Never raises.

        Returns:
            Number of events written
        """
        if self.gateway is None or not self._pending:
            return 0

        events = list(self._pending)
        self._pending.clear()
        try:
            for event in events:
                await self.gateway.create("logs", event)
            await self.gateway.trim("logs", self.buffer_size)
        except Exception as e:
            logger.warning("Failed to persist telemetry", error=str(e), dropped=len(events))
            return 0
        return len(events)
