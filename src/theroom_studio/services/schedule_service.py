"""Day-by-day class schedule with the member's booked state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Set

from ..config import Settings
from ..errors import DataServiceError
from ..formatting import format_date_header
from ..models import ScheduleEntry
from ..repositories import BookingRepository, ScheduleRepository
from ..session import SessionContext
from ..timezone_utils import day_bounds, days_from, local_today
from .base import BaseService
from .booking_service import is_eligible

CALENDAR_DAYS = 14


@dataclass(frozen=True)
class ScheduleDay:
    day: date
    header: str
    entries: List[ScheduleEntry]
    booked_ids: Set[str] = field(default_factory=set)
    can_book: bool = False

    def is_booked(self, schedule_id: str) -> bool:
        return schedule_id in self.booked_ids


class ScheduleService(BaseService):
    """Reads the schedule for a local calendar day."""

    def __init__(
        self,
        settings: Settings,
        context: SessionContext,
        schedule: ScheduleRepository,
        bookings: BookingRepository,
    ) -> None:
        super().__init__(context)
        self.settings = settings
        self.schedule = schedule
        self.bookings = bookings

    def today(self) -> date:
        return local_today(self.settings.local_timezone)

    def calendar(self, start: Optional[date] = None, days: int = CALENDAR_DAYS) -> List[date]:
        return days_from(start or self.today(), days)

    @BaseService.measure_operation("schedule_entries_for_day")
    async def entries_for_day(self, day: date) -> List[ScheduleEntry]:
        """Entries starting within ``day`` (local 00:00:00.000 to 23:59:59.999), earliest first."""
        start, end = day_bounds(day, self.settings.local_timezone)
        return await self.schedule.list_between(start, end)

    @BaseService.measure_operation("schedule_booked_set")
    async def booked_set(self, schedule_ids: Iterable[str]) -> Set[str]:
        """Subset of ``schedule_ids`` the signed-in member holds a confirmed booking for."""
        principal = self.context.principal
        if principal is None:
            return set()
        ids = list(schedule_ids)
        booked = await self.bookings.confirmed_schedule_ids(principal.id, ids)
        self.context.sync_booked(ids, booked)
        return booked

    async def load_day(self, day: Optional[date] = None) -> ScheduleDay:
        day = day or self.today()
        entries = await self.entries_for_day(day)

        booked: Set[str] = set()
        try:
            booked = await self.booked_set(entry.id for entry in entries)
        except DataServiceError as exc:
            # The schedule is still usable without booked markers.
            self.logger.warning("schedule_booked_set_failed code=%s", exc.code)

        profile = self.context.profile
        return ScheduleDay(
            day=day,
            header=format_date_header(day),
            entries=entries,
            booked_ids=booked,
            can_book=profile is not None and is_eligible(profile),
        )
