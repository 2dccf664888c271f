"""Sign-in, sign-up and the member's home and profile views."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..auth import IdentityClient, SignUpResult
from ..errors import AuthInputError
from ..models import Booking, BookingStatus, User
from ..repositories import BookingRepository
from ..session import SessionContext
from ..timezone_utils import utc_now
from .base import BaseService

MIN_PASSWORD_LENGTH = 6
HISTORY_LIMIT = 20


@dataclass(frozen=True)
class HomeSummary:
    user: Optional[User]
    next_reservation: Optional[Booking]
    classes_completed: int


@dataclass(frozen=True)
class ProfileOverview:
    user: Optional[User]
    bookings: List[Booking] = field(default_factory=list)


class AccountService(BaseService):
    """Authentication actions plus the per-member read views."""

    def __init__(
        self,
        context: SessionContext,
        identity: IdentityClient,
        bookings: BookingRepository,
    ) -> None:
        super().__init__(context)
        self.identity = identity
        self.bookings = bookings

    @BaseService.measure_operation("sign_in")
    async def sign_in(self, email: str, password: str) -> Optional[User]:
        email = email.strip()
        if not email or not password:
            raise AuthInputError("Please fill in all fields")
        await self.identity.sign_in_with_password(email, password)
        return self.context.profile

    @BaseService.measure_operation("sign_up")
    async def sign_up(self, email: str, password: str, full_name: str) -> SignUpResult:
        """
        Create an account.

        When the provider requires email confirmation the result has a user
        but no session, and the member must verify before signing in.
        """
        email = email.strip()
        full_name = full_name.strip()
        if not email or not password or not full_name:
            raise AuthInputError("Please fill in all fields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthInputError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        return await self.identity.sign_up(email, password, full_name=full_name)

    async def sign_out(self) -> None:
        await self.identity.sign_out()

    @BaseService.measure_operation("home_summary")
    async def home_summary(self) -> HomeSummary:
        principal = self.context.require_principal()
        user = await self.context.refresh_profile()
        next_reservation = await self.bookings.next_confirmed(principal.id, utc_now())
        completed = await self.bookings.count_with_status(principal.id, BookingStatus.COMPLETED)
        return HomeSummary(
            user=user,
            next_reservation=next_reservation,
            classes_completed=completed,
        )

    @BaseService.measure_operation("profile_overview")
    async def profile_overview(self, limit: int = HISTORY_LIMIT) -> ProfileOverview:
        principal = self.context.require_principal()
        user = await self.context.refresh_profile()
        history = await self.bookings.recent_for_user(principal.id, limit=limit)
        return ProfileOverview(user=user, bookings=history)
