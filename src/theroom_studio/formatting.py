"""Display formatting for schedule, booking and product values."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from .models import MembershipType
from .timezone_utils import to_local

_MEMBERSHIP_LABELS = {
    MembershipType.UNLIMITED: "Unlimited",
    MembershipType.THREE_TIMES_WEEKLY: "3x Weekly",
    MembershipType.TWO_TIMES_WEEKLY: "2x Weekly",
    MembershipType.NONE: "No Membership",
}


def format_price(price: Union[Decimal, float, int]) -> str:
    """Format a USD amount, e.g. ``$1,250.00``."""
    amount = Decimal(str(price)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def _hour_minute(dt: datetime) -> str:
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def format_date_header(day: date) -> str:
    """``Friday, October 17``"""
    return f"{day:%A}, {day:%B} {day.day}"


def format_class_time(start_time: datetime, tz_name: str) -> str:
    """``Friday, October 17 at 9:00 AM`` in local time."""
    local = to_local(start_time, tz_name)
    return f"{format_date_header(local.date())} at {_hour_minute(local)}"


def format_time(start_time: datetime, tz_name: str) -> str:
    return _hour_minute(to_local(start_time, tz_name))


def format_short_date(value: datetime, tz_name: str) -> str:
    """``Oct 17``"""
    local = to_local(value, tz_name)
    return f"{local:%b} {local.day}"


def format_date_time(value: Optional[datetime], tz_name: str) -> str:
    """``Oct 17, 9:00 AM``; empty string when the value is missing."""
    if value is None:
        return ""
    local = to_local(value, tz_name)
    return f"{local:%b} {local.day}, {_hour_minute(local)}"


def membership_label(membership: MembershipType) -> str:
    return _MEMBERSHIP_LABELS.get(membership, membership.value)
