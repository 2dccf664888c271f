"""
Process-wide session context.

Holds the signed-in principal and their profile row, and is the single place
that answers "who is this and are they an admin". It follows the identity
client's auth-state events, so views read it instead of re-querying.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Set

from .auth import SIGNED_IN, SIGNED_OUT, AuthSession, AuthUser, IdentityClient
from .client import DataServiceClient
from .errors import AdminRequiredError, DataServiceError, SignInRequiredError
from .models import User
from .repositories import UserRepository

logger = logging.getLogger(__name__)


class SessionContext:
    """Read-mostly holder of the current principal and profile."""

    def __init__(
        self,
        identity: IdentityClient,
        data: DataServiceClient,
        users: UserRepository,
    ) -> None:
        self._identity = identity
        self._data = data
        self._users = users
        self._principal: Optional[AuthUser] = None
        self._profile: Optional[User] = None
        self._booked_schedule_ids: Set[str] = set()
        self._unsubscribe = identity.on_auth_state_change(self._on_auth_state_change)

    @property
    def principal(self) -> Optional[AuthUser]:
        return self._principal

    @property
    def profile(self) -> Optional[User]:
        return self._profile

    @property
    def is_authenticated(self) -> bool:
        return self._principal is not None

    @property
    def is_admin(self) -> bool:
        return bool(self._profile and self._profile.is_admin)

    def is_booked(self, schedule_id: str) -> bool:
        """Whether the principal is known to hold a confirmed booking for ``schedule_id``."""
        return schedule_id in self._booked_schedule_ids

    def remember_booked(self, schedule_ids: Iterable[str]) -> None:
        self._booked_schedule_ids.update(schedule_ids)

    def sync_booked(self, queried_ids: Iterable[str], booked_ids: Iterable[str]) -> None:
        """Replace the cached state of ``queried_ids`` with what the store reported."""
        self._booked_schedule_ids.difference_update(queried_ids)
        self._booked_schedule_ids.update(booked_ids)

    def apply_credits(self, credits_remaining: int) -> None:
        """Record a balance the store just reported, ahead of the next profile read."""
        if self._profile is not None:
            self._profile = self._profile.model_copy(
                update={"credits_remaining": credits_remaining}
            )

    def require_principal(self) -> AuthUser:
        if self._principal is None:
            raise SignInRequiredError()
        return self._principal

    def require_admin(self) -> User:
        self.require_principal()
        if self._profile is None or not self._profile.is_admin:
            raise AdminRequiredError()
        return self._profile

    async def apply_session(self, session: Optional[AuthSession]) -> None:
        """Adopt ``session`` (or sign-out when ``None``) and reload the profile."""
        self._data.set_access_token(session.access_token if session else None)
        if session is None:
            self._principal = None
            self._profile = None
            self._booked_schedule_ids.clear()
            return
        principal_changed = self._principal is None or self._principal.id != session.user.id
        self._principal = session.user
        if principal_changed:
            self._profile = None
            self._booked_schedule_ids.clear()
        await self.refresh_profile()

    async def refresh_profile(self) -> Optional[User]:
        """Reload the profile row; keeps the previous value if the read fails."""
        if self._principal is None:
            return None
        try:
            self._profile = await self._users.get_profile(self._principal.id)
        except DataServiceError as exc:
            logger.warning(
                "session_profile_load_failed user_id=%s code=%s",
                self._principal.id,
                exc.code,
            )
        return self._profile

    async def _on_auth_state_change(
        self, event: str, session: Optional[AuthSession]
    ) -> None:
        if event in {SIGNED_IN, SIGNED_OUT}:
            await self.apply_session(session)
        else:
            self._data.set_access_token(session.access_token if session else None)

    def close(self) -> None:
        self._unsubscribe()
