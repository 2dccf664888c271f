"""
Row models for the studio data service.

Embedded relations come back with only the selected columns, so their
summary models keep every field optional.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class MembershipType(str, Enum):
    """Membership plans a user can hold."""

    UNLIMITED = "unlimited"
    THREE_TIMES_WEEKLY = "3_times_weekly"
    TWO_TIMES_WEEKLY = "2_times_weekly"
    NONE = "none"


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    CONFIRMED = "confirmed"  # Seat held
    CANCELLED = "cancelled"
    COMPLETED = "completed"  # Class attended
    NO_SHOW = "no_show"


class ProductType(str, Enum):
    SUBSCRIPTION = "subscription"
    PACK = "pack"
    DROP_IN = "drop_in"


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore", use_enum_values=False)


class User(_Row):
    id: str
    email: str
    full_name: Optional[str] = None
    credits_remaining: int = 0
    membership_type: MembershipType = MembershipType.NONE
    is_admin: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_unlimited(self) -> bool:
        return self.membership_type == MembershipType.UNLIMITED


class UserSummary(_Row):
    full_name: Optional[str] = None
    email: Optional[str] = None


class ClassDefinition(_Row):
    id: str
    name: str
    description: Optional[str] = None
    capacity: int = 0
    created_at: Optional[datetime] = None


class ClassSummary(_Row):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None


class ScheduleEntry(_Row):
    id: str
    class_id: str
    start_time: datetime
    instructor_name: str
    created_at: Optional[datetime] = None
    classes: Optional[ClassSummary] = None

    @property
    def class_name(self) -> Optional[str]:
        return self.classes.name if self.classes else None


class ScheduleSummary(_Row):
    id: Optional[str] = None
    start_time: Optional[datetime] = None
    instructor_name: Optional[str] = None
    classes: Optional[ClassSummary] = None

    @property
    def class_name(self) -> Optional[str]:
        return self.classes.name if self.classes else None


class Booking(_Row):
    id: str
    user_id: str
    schedule_id: str
    status: BookingStatus
    created_at: Optional[datetime] = None
    schedule: Optional[ScheduleSummary] = None
    users: Optional[UserSummary] = None


class Product(_Row):
    id: str
    name: str
    price: Decimal
    type: ProductType
    description: Optional[str] = None
    credits_included: int = 0
    created_at: Optional[datetime] = None
