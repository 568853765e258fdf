"""
User Directory

Profiles of users who have signed in, kept in the "users" collection and keyed
by uid. Signing in records the profile and makes the user the session actor.
"""

from typing import Optional

import structlog

from supermall.catalog.base import Record
from supermall.catalog.session import SessionContext, User
from supermall.catalog.telemetry import Telemetry
from supermall.storage.gateway import PersistenceGateway
from supermall.timeutils import Clock, to_iso, utcnow

logger = structlog.get_logger(__name__)


class UserService:
    """Sign-in and sign-out on top of the session context."""

    collection = "users"

    def __init__(
        self,
        gateway: PersistenceGateway,
        session: SessionContext,
        telemetry: Telemetry,
        clock: Optional[Clock] = None,
    ):
        self.gateway = gateway
        self.session = session
        self.telemetry = telemetry
        self.clock = clock or utcnow

    async def get_user(self, uid: str) -> Optional[Record]:
        users = await self.gateway.query(self.collection, {"uid": uid})
        return users[0] if users else None

    async def sign_in(self, user: User) -> Record:
        """
        Create or refresh the user's profile, then sign them in.

        Returns:
            The stored profile
        """
        self.telemetry.user_action("login_attempt", uid=user.uid)
        profile = {
            "email": user.email,
            "displayName": user.display_name,
            "role": user.role,
            "lastLogin": to_iso(self.clock()),
        }

        existing = await self.get_user(user.uid)
        if existing:
            record_id = existing["id"]
            await self.gateway.update(self.collection, record_id, profile)
        else:
            record_id = await self.gateway.create(self.collection, {
                "uid": user.uid,
                **profile,
                "isActive": True,
            })
            logger.info("User profile created", uid=user.uid)

        self.session.sign_in(user)
        self.telemetry.user_action("login_success", uid=user.uid)
        return await self.gateway.read(self.collection, record_id)

    def sign_out(self) -> None:
        uid = self.session.current_actor_id()
        self.session.sign_out()
        self.telemetry.user_action("logout", uid=uid)
