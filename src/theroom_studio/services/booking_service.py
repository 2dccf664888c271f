"""
Class booking and credit debit.

A booking holds one seat in a scheduled class. Members on an unlimited plan
book freely; everyone else spends one credit per booking. The store's
uniqueness constraint on (user_id, schedule_id) is the authority on double
booking and surfaces here as ``UniqueViolationError``.

Two strategies reserve the seat and take the credit:

``rpc``
    One call to a server-side function that locks the user row, inserts the
    booking and debits the credit in a single transaction.
``sequential``
    Insert, then a conditional debit that only applies if the balance is
    unchanged. If the debit does not land, the booking row is removed again
    so the pair still succeeds or fails together.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..client import DataServiceClient
from ..config import Settings
from ..errors import (
    BookingFailedError,
    CreditDebitError,
    DataServiceConnectionError,
    DataServiceError,
    UniqueViolationError,
)
from ..models import Booking, User
from ..repositories import BookingRepository, UserRepository
from ..session import SessionContext
from .base import BaseService


class BookingOutcome(str, Enum):
    BOOKED = "booked"
    ALREADY_BOOKED = "already_booked"
    NO_CREDITS = "no_credits"
    SIGN_IN_REQUIRED = "sign_in_required"
    PROFILE_UNAVAILABLE = "profile_unavailable"


OUTCOME_MESSAGES: dict[BookingOutcome, tuple[str, str]] = {
    BookingOutcome.BOOKED: ("Success", "Class booked successfully!"),
    BookingOutcome.ALREADY_BOOKED: ("Already Booked", "You have already booked this class."),
    BookingOutcome.NO_CREDITS: ("No Credits", "Please purchase a membership or class pack."),
    BookingOutcome.SIGN_IN_REQUIRED: ("Error", "Please sign in"),
    BookingOutcome.PROFILE_UNAVAILABLE: ("Error", "User data not loaded"),
}


@dataclass(frozen=True)
class BookingResult:
    outcome: BookingOutcome
    booking: Optional[Booking] = None
    credits_remaining: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome == BookingOutcome.BOOKED

    @property
    def title(self) -> str:
        return OUTCOME_MESSAGES[self.outcome][0]

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome][1]


def is_eligible(user: User) -> bool:
    """Unlimited members may always book; others need at least one credit."""
    return user.is_unlimited or user.credits_remaining > 0


def requires_debit(user: User) -> bool:
    return not user.is_unlimited and user.credits_remaining > 0


class BookingService(BaseService):
    """Books classes for the signed-in member."""

    def __init__(
        self,
        settings: Settings,
        context: SessionContext,
        data: DataServiceClient,
        bookings: BookingRepository,
        users: UserRepository,
    ) -> None:
        super().__init__(context)
        self.settings = settings
        self.data = data
        self.bookings = bookings
        self.users = users

    @BaseService.measure_operation("book_class")
    async def book_class(self, schedule_id: str) -> BookingResult:
        """
        Book ``schedule_id`` for the signed-in member.

        Refusals (signed out, no profile, no credits, already booked) come back
        as outcomes. Unexpected data service failures raise
        ``BookingFailedError`` carrying the store's message.
        """
        principal = self.context.principal
        if principal is None:
            return BookingResult(BookingOutcome.SIGN_IN_REQUIRED)
        user = self.context.profile
        if user is None:
            return BookingResult(BookingOutcome.PROFILE_UNAVAILABLE)

        if self.context.is_booked(schedule_id):
            return BookingResult(BookingOutcome.ALREADY_BOOKED)
        if not is_eligible(user):
            self.logger.info("booking_refused_no_credits user_id=%s", user.id)
            return BookingResult(BookingOutcome.NO_CREDITS, credits_remaining=user.credits_remaining)

        try:
            if self.settings.booking_mode == "rpc":
                result = await self._book_atomic(schedule_id)
            else:
                result = await self._book_sequential(user, schedule_id)
        except CreditDebitError:
            # The balance the eligibility check used is stale; reload it.
            await self.context.refresh_profile()
            raise

        if result.outcome in {BookingOutcome.BOOKED, BookingOutcome.ALREADY_BOOKED}:
            self.context.remember_booked([schedule_id])
        if result.credits_remaining is not None:
            self.context.apply_credits(result.credits_remaining)
        if result.ok or result.outcome == BookingOutcome.NO_CREDITS:
            await self.context.refresh_profile()
        return result

    async def reserve(self, user_id: str, schedule_id: str) -> Optional[Booking]:
        """Insert a confirmed booking; ``None`` when the pair is already booked."""
        try:
            booking = await self.bookings.create_confirmed(user_id, schedule_id)
        except UniqueViolationError:
            self.logger.info(
                "booking_duplicate user_id=%s schedule_id=%s", user_id, schedule_id
            )
            return None
        except DataServiceError as exc:
            self.logger.error("booking_insert_failed code=%s: %s", exc.code, exc.message)
            raise BookingFailedError(exc.message) from exc
        self.logger.info("booking_created booking_id=%s user_id=%s", booking.id, user_id)
        return booking

    async def debit_credit(self, user: User, booking: Booking) -> int:
        """
        Take one credit for ``booking`` and return the new balance.

        Unlimited members and empty balances are left untouched. The write is
        conditional on the balance the eligibility check saw; if it does not
        apply, the booking is removed and ``CreditDebitError`` raised.
        """
        if not requires_debit(user):
            return user.credits_remaining

        expected = user.credits_remaining
        updated: Optional[User] = None
        try:
            updated = await self.users.set_credits(user.id, expected - 1, expected=expected)
        except DataServiceConnectionError as exc:
            # The write may have landed before the connection dropped.
            self.logger.warning(
                "credit_debit_outcome_unknown user_id=%s booking_id=%s: %s",
                user.id,
                booking.id,
                exc.message,
            )
            updated = await self._debited_profile(user.id, expected - 1)
        except DataServiceError as exc:
            self.logger.error(
                "credit_debit_failed user_id=%s booking_id=%s code=%s",
                user.id,
                booking.id,
                exc.code,
            )
        else:
            if updated is None:
                self.logger.warning(
                    "credit_debit_stale_balance user_id=%s expected=%s", user.id, expected
                )

        if updated is None:
            compensated = await self._remove_booking(booking)
            raise CreditDebitError(
                booking_id=booking.id, user_id=user.id, compensated=compensated
            )

        self.logger.info(
            "credit_debited user_id=%s credits_remaining=%s",
            user.id,
            updated.credits_remaining,
        )
        return updated.credits_remaining

    async def _debited_profile(self, user_id: str, debited: int) -> Optional[User]:
        """Re-read the balance; the profile if it already shows the debit, else ``None``."""
        try:
            profile = await self.users.get_profile(user_id)
        except DataServiceError as exc:
            self.logger.error("credit_debit_recheck_failed user_id=%s code=%s", user_id, exc.code)
            return None
        if profile.credits_remaining == debited:
            self.logger.info("credit_debit_confirmed_after_timeout user_id=%s", user_id)
            return profile
        return None

    async def _remove_booking(self, booking: Booking) -> bool:
        try:
            await self.bookings.delete(booking.id)
        except DataServiceError as exc:
            self.logger.error(
                "booking_compensation_failed booking_id=%s code=%s", booking.id, exc.code
            )
            return False
        self.logger.info("booking_compensated booking_id=%s", booking.id)
        return True

    async def _book_sequential(self, user: User, schedule_id: str) -> BookingResult:
        booking = await self.reserve(user.id, schedule_id)
        if booking is None:
            return BookingResult(BookingOutcome.ALREADY_BOOKED)
        credits = await self.debit_credit(user, booking)
        return BookingResult(BookingOutcome.BOOKED, booking=booking, credits_remaining=credits)

    async def _book_atomic(self, schedule_id: str) -> BookingResult:
        try:
            payload: Any = await self.data.rpc(
                self.settings.book_class_function, {"p_schedule_id": schedule_id}
            )
        except UniqueViolationError:
            return BookingResult(BookingOutcome.ALREADY_BOOKED)
        except DataServiceError as exc:
            self.logger.error("book_class_rpc_failed code=%s: %s", exc.code, exc.message)
            raise BookingFailedError(exc.message) from exc

        if not isinstance(payload, dict):
            raise BookingFailedError(details={"payload": payload})

        status = payload.get("status")
        credits = payload.get("credits_remaining")
        if status == BookingOutcome.BOOKED.value:
            booking = Booking.model_validate(payload["booking"])
            self.logger.info("booking_created booking_id=%s via=rpc", booking.id)
            return BookingResult(BookingOutcome.BOOKED, booking=booking, credits_remaining=credits)
        if status == BookingOutcome.ALREADY_BOOKED.value:
            return BookingResult(BookingOutcome.ALREADY_BOOKED)
        if status == BookingOutcome.NO_CREDITS.value:
            return BookingResult(BookingOutcome.NO_CREDITS, credits_remaining=credits)
        raise BookingFailedError(details={"status": status})
