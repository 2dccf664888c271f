"""Service layer: business operations composed from repositories."""

from .account_service import AccountService, HomeSummary, ProfileOverview
from .admin_service import AdminService
from .base import BaseService
from .booking_service import (
    BookingOutcome,
    BookingResult,
    BookingService,
    is_eligible,
    requires_debit,
)
from .schedule_service import ScheduleDay, ScheduleService
from .shop_service import PurchaseNotice, ShopService

__all__ = [
    "AccountService",
    "AdminService",
    "BaseService",
    "BookingOutcome",
    "BookingResult",
    "BookingService",
    "HomeSummary",
    "ProfileOverview",
    "PurchaseNotice",
    "ScheduleDay",
    "ScheduleService",
    "ShopService",
    "is_eligible",
    "requires_debit",
]
