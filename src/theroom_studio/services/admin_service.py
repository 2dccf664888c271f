"""
Admin panel operations: members, schedule and bookings.

Every operation checks the shared session context for the admin flag before
touching the data service.
"""

from __future__ import annotations

from typing import List

from ..errors import StudioError
from ..models import Booking, ScheduleEntry, User
from ..repositories import BookingRepository, ScheduleRepository, UserRepository
from ..session import SessionContext
from ..timezone_utils import utc_now
from .base import BaseService

ADMIN_LIST_LIMIT = 50


class AdminService(BaseService):
    def __init__(
        self,
        context: SessionContext,
        users: UserRepository,
        schedule: ScheduleRepository,
        bookings: BookingRepository,
    ) -> None:
        super().__init__(context)
        self.users = users
        self.schedule = schedule
        self.bookings = bookings

    @BaseService.measure_operation("admin_list_users")
    async def list_users(self) -> List[User]:
        self.context.require_admin()
        return await self.users.list_newest_first()

    @BaseService.measure_operation("admin_set_credits")
    async def set_credits(self, user_id: str, credits: int) -> User:
        self.context.require_admin()
        if credits < 0:
            raise StudioError("Credits cannot be negative", code="INVALID_CREDITS")
        updated = await self.users.set_credits(user_id, credits)
        if updated is None:
            raise StudioError("User not found", code="USER_NOT_FOUND", details={"user_id": user_id})
        self.logger.info("admin_credits_set user_id=%s credits=%s", user_id, credits)
        await self._refresh_if_self(user_id)
        return updated

    async def adjust_credits(self, user: User, delta: int) -> User:
        """Add ``delta`` credits to ``user``, clamping the balance at zero."""
        return await self.set_credits(user.id, max(0, user.credits_remaining + delta))

    @BaseService.measure_operation("admin_toggle_admin")
    async def toggle_admin(self, user: User) -> User:
        self.context.require_admin()
        updated = await self.users.set_admin(user.id, not user.is_admin)
        if updated is None:
            raise StudioError("User not found", code="USER_NOT_FOUND", details={"user_id": user.id})
        self.logger.info("admin_flag_changed user_id=%s is_admin=%s", user.id, updated.is_admin)
        await self._refresh_if_self(user.id)
        return updated

    @BaseService.measure_operation("admin_upcoming_schedule")
    async def upcoming_schedule(self, limit: int = ADMIN_LIST_LIMIT) -> List[ScheduleEntry]:
        self.context.require_admin()
        return await self.schedule.list_upcoming(utc_now(), limit=limit)

    @BaseService.measure_operation("admin_delete_schedule_entry")
    async def delete_schedule_entry(self, schedule_id: str) -> None:
        self.context.require_admin()
        await self.schedule.delete(schedule_id)

    @BaseService.measure_operation("admin_recent_bookings")
    async def recent_bookings(self, limit: int = ADMIN_LIST_LIMIT) -> List[Booking]:
        self.context.require_admin()
        return await self.bookings.recent_all(limit=limit)

    async def _refresh_if_self(self, user_id: str) -> None:
        principal = self.context.principal
        if principal is not None and principal.id == user_id:
            await self.context.refresh_profile()
