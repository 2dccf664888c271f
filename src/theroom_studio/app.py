"""Application wiring: clients, repositories, session context and services."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from .auth import AuthSession, IdentityClient
from .client import DataServiceClient
from .config import Settings
from .repositories import (
    BookingRepository,
    ProductRepository,
    ScheduleRepository,
    UserRepository,
)
from .services import (
    AccountService,
    AdminService,
    BookingService,
    ScheduleService,
    ShopService,
)
from .session import SessionContext
from .startup import resolve_initial_session

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)


class StudioApp:
    """Owns one identity client, one data client and the services built on them."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        rest_http: httpx.AsyncClient | None = None,
        auth_http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.identity = IdentityClient(self.settings, http=auth_http)
        self.data = DataServiceClient(self.settings, http=rest_http)

        self.users = UserRepository(self.data)
        self.schedule_repository = ScheduleRepository(self.data)
        self.booking_repository = BookingRepository(self.data)
        self.product_repository = ProductRepository(self.data)

        self.context = SessionContext(self.identity, self.data, self.users)

        self.accounts = AccountService(self.context, self.identity, self.booking_repository)
        self.bookings = BookingService(
            self.settings,
            self.context,
            self.data,
            self.booking_repository,
            self.users,
        )
        self.schedule = ScheduleService(
            self.settings, self.context, self.schedule_repository, self.booking_repository
        )
        self.shop = ShopService(self.context, self.product_repository)
        self.admin = AdminService(
            self.context, self.users, self.schedule_repository, self.booking_repository
        )

    async def start(self) -> Optional[AuthSession]:
        """Configure logging and resolve the initial session under the startup timeout."""
        configure_logging(self.settings)
        logger.info(
            "studio_app_starting environment=%s booking_mode=%s",
            self.settings.environment,
            self.settings.booking_mode,
        )
        return await resolve_initial_session(
            self.identity,
            self.context,
            timeout=self.settings.session_check_timeout_seconds,
        )

    async def aclose(self) -> None:
        self.context.close()
        await self.identity.aclose()
        await self.data.aclose()

    async def __aenter__(self) -> "StudioApp":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
