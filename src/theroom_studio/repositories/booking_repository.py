"""
Booking rows (``bookings`` relation).

The store enforces one booking per (user_id, schedule_id); ``create_confirmed``
lets the resulting ``UniqueViolationError`` propagate for the caller to map.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Set

from ..client import DataServiceClient
from ..models import Booking, BookingStatus
from .base_repository import BaseRepository

BOOKING_WITH_SCHEDULE = (
    "*, schedule:schedule_id(start_time, instructor_name, classes:class_id(name))"
)
# ``!inner`` makes the embedded filter restrict the bookings themselves.
BOOKING_WITH_UPCOMING_SCHEDULE = (
    "*, schedule:schedule_id!inner(start_time, instructor_name, classes:class_id(name))"
)
BOOKING_WITH_USER_AND_SCHEDULE = (
    "*, users(full_name, email), schedule(start_time, classes(name))"
)


class BookingRepository(BaseRepository[Booking]):
    table = "bookings"

    def __init__(self, client: DataServiceClient) -> None:
        super().__init__(client, Booking)

    async def create_confirmed(self, user_id: str, schedule_id: str) -> Booking:
        result = (
            await self.query()
            .insert(
                {
                    "user_id": user_id,
                    "schedule_id": schedule_id,
                    "status": BookingStatus.CONFIRMED.value,
                }
            )
            .select("*")
            .execute()
        )
        rows = result.data if isinstance(result.data, list) else [result.data]
        return Booking.model_validate(rows[0])

    async def confirmed_schedule_ids(
        self, user_id: str, schedule_ids: Iterable[str]
    ) -> Set[str]:
        ids = list(schedule_ids)
        if not ids:
            return set()
        result = (
            await self.query()
            .select("schedule_id")
            .eq("user_id", user_id)
            .eq("status", BookingStatus.CONFIRMED)
            .in_("schedule_id", ids)
            .execute()
        )
        return {row["schedule_id"] for row in result.data or []}

    async def next_confirmed(self, user_id: str, now: datetime) -> Optional[Booking]:
        result = (
            await self.query()
            .select(BOOKING_WITH_UPCOMING_SCHEDULE)
            .eq("user_id", user_id)
            .eq("status", BookingStatus.CONFIRMED)
            .gte("schedule.start_time", now)
            .order("schedule(start_time)", ascending=True)
            .limit(1)
            .maybe_single()
            .execute()
        )
        return self.to_model(result.data)

    async def count_with_status(self, user_id: str, status: BookingStatus) -> int:
        result = (
            await self.query()
            .select("*", count="exact", head=True)
            .eq("user_id", user_id)
            .eq("status", status)
            .execute()
        )
        return result.count or 0

    async def recent_for_user(self, user_id: str, limit: int = 20) -> List[Booking]:
        result = (
            await self.query()
            .select(BOOKING_WITH_SCHEDULE)
            .eq("user_id", user_id)
            .order("created_at", ascending=False)
            .limit(limit)
            .execute()
        )
        return self.to_models(result.data)

    async def recent_all(self, limit: int = 50) -> List[Booking]:
        result = (
            await self.query()
            .select(BOOKING_WITH_USER_AND_SCHEDULE)
            .order("created_at", ascending=False)
            .limit(limit)
            .execute()
        )
        return self.to_models(result.data)
