"""Startup session check."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .auth import AuthSession, IdentityClient
from .errors import IdentityError
from .session import SessionContext

logger = logging.getLogger(__name__)


async def resolve_initial_session(
    identity: IdentityClient,
    context: SessionContext,
    timeout: float,
) -> Optional[AuthSession]:
    """
    Race the initial session lookup against ``timeout`` seconds.

    A timeout or identity failure leaves the app unauthenticated rather than
    blocking startup.
    """
    try:
        session = await asyncio.wait_for(identity.get_session(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("startup_session_check_timed_out timeout=%.1fs", timeout)
        session = None
    except IdentityError as exc:
        logger.warning("startup_session_check_failed status=%s", exc.status_code)
        session = None

    await context.apply_session(session)
    logger.info("startup_session_resolved authenticated=%s", session is not None)
    return session
