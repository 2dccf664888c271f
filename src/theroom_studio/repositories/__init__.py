"""
Repository layer for the studio data service.

Each repository wraps one relation; services compose them.
"""

from .base_repository import BaseRepository
from .booking_repository import BookingRepository
from .product_repository import ProductRepository
from .schedule_repository import ScheduleRepository
from .user_repository import UserRepository

__all__ = [
    "BaseRepository",
    "BookingRepository",
    "ProductRepository",
    "ScheduleRepository",
    "UserRepository",
]
