"""
Session Context

Holds the signed-in user for the process. Services read it only to attribute
mutations (createdBy / updatedBy / deletedBy).
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class User:
    """Signed-in user"""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    role: str = "user"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SessionContext:
    """Current actor for the running process."""

    def __init__(self, user: Optional[User] = None):
        self._user = user

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def current_actor_id(self) -> str:
        return self._user.uid if self._user and self._user.uid else ANONYMOUS

    def current_actor_role(self) -> Optional[str]:
        return self._user.role if self._user else None

    def sign_in(self, user: User) -> None:
        self._user = user
        logger.info("User signed in", uid=user.uid, role=user.role)

    def sign_out(self) -> None:
        if self._user is not None:
            logger.info("User signed out", uid=self._user.uid)
        self._user = None

    def has_role(self, role: str) -> bool:
        return self._user is not None and self._user.role == role

    def is_admin(self) -> bool:
        return self.has_role("admin")
