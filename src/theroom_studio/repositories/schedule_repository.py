"""Scheduled class occurrences (``schedule`` relation)."""

from __future__ import annotations

from datetime import datetime
from typing import List

from ..client import DataServiceClient
from ..models import ScheduleEntry
from .base_repository import BaseRepository

SCHEDULE_WITH_CLASS = "*, classes(name, description)"
SCHEDULE_WITH_CLASS_NAME = "*, classes(name)"


class ScheduleRepository(BaseRepository[ScheduleEntry]):
    table = "schedule"

    def __init__(self, client: DataServiceClient) -> None:
        super().__init__(client, ScheduleEntry)

    async def list_between(self, start: datetime, end: datetime) -> List[ScheduleEntry]:
        """Entries with ``start <= start_time <= end``, earliest first."""
        result = (
            await self.query()
            .select(SCHEDULE_WITH_CLASS)
            .gte("start_time", start)
            .lte("start_time", end)
            .order("start_time", ascending=True)
            .execute()
        )
        return self.to_models(result.data)

    async def list_upcoming(self, now: datetime, limit: int = 50) -> List[ScheduleEntry]:
        result = (
            await self.query()
            .select(SCHEDULE_WITH_CLASS_NAME)
            .gte("start_time", now)
            .order("start_time", ascending=True)
            .limit(limit)
            .execute()
        )
        return self.to_models(result.data)
