"""
Record Lifecycle

Catalog records are ACTIVE from creation until soft-deleted, then INACTIVE for
good. The persisted form is the boolean "isActive" flag.
"""

from enum import Enum
from typing import Any, Dict, Optional

from supermall.errors import InvalidArgumentError


class LifecycleState(str, Enum):
    """Lifecycle states of a catalog record"""
    ACTIVE = "active"
    INACTIVE = "inactive"  # Terminal

    @classmethod
    def of(cls, record: Dict[str, Any]) -> "LifecycleState":
        return cls.ACTIVE if record.get("isActive") is True else cls.INACTIVE

    @property
    def is_active(self) -> bool:
        return self is LifecycleState.ACTIVE


class LifecycleEvent(str, Enum):
    """Service operations that move a record through its lifecycle"""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


_TRANSITIONS = {
    (None, LifecycleEvent.CREATE): LifecycleState.ACTIVE,
    (LifecycleState.ACTIVE, LifecycleEvent.UPDATE): LifecycleState.ACTIVE,
    (LifecycleState.INACTIVE, LifecycleEvent.UPDATE): LifecycleState.INACTIVE,
    (LifecycleState.ACTIVE, LifecycleEvent.DELETE): LifecycleState.INACTIVE,
    (LifecycleState.INACTIVE, LifecycleEvent.DELETE): LifecycleState.INACTIVE,
}


def transition(current: Optional[LifecycleState], event: LifecycleEvent) -> LifecycleState:
    """
    Resolve the state after applying event.

    Raises:
        InvalidArgumentError: If the event is not allowed from current
    """
    try:
        return _TRANSITIONS[(current, event)]
    except KeyError:
        state = current.value if current else "none"
        raise InvalidArgumentError(f"Cannot {event.value} a record in state '{state}'") from None
