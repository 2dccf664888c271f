"""Identity provider client: password sign-in, sign-up and in-memory sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional

import httpx
import jwt
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings
from .errors import IdentityError

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

# Refresh slightly ahead of expiry so a request never leaves with a dead token.
REFRESH_MARGIN = timedelta(seconds=60)

AuthStateListener = Callable[[str, Optional["AuthSession"]], Awaitable[None]]


class AuthUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    expires_at: datetime
    user: AuthUser

    def is_expiring(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at - REFRESH_MARGIN


class SignUpResult(BaseModel):
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None

    @property
    def confirmation_pending(self) -> bool:
        """True when the account exists but email verification is still required."""
        return self.user is not None and self.session is None


def _token_expiry(payload: dict[str, Any]) -> datetime:
    expires_at = payload.get("expires_at")
    if expires_at:
        return datetime.fromtimestamp(int(expires_at), tz=timezone.utc)
    expires_in = payload.get("expires_in")
    if expires_in:
        return datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
    # Fall back to the token's own claim; the signature is checked by the store.
    claims = jwt.decode(payload["access_token"], options={"verify_signature": False})
    return datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)


def _session_from_payload(payload: dict[str, Any]) -> AuthSession:
    return AuthSession(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token", ""),
        expires_at=_token_expiry(payload),
        user=AuthUser.model_validate(payload["user"]),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or f"identity_error_{response.status_code}"
    if isinstance(payload, dict):
        for key in ("error_description", "msg", "message", "error"):
            if payload.get(key):
                return str(payload[key])
    return f"identity_error_{response.status_code}"


class IdentityClient:
    """HTTP client for the identity provider with an in-memory session."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self._session: AuthSession | None = None
        self._listeners: list[AuthStateListener] = []
        self.http = http or httpx.AsyncClient(
            base_url=settings.auth_url,
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=10.0),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    @property
    def current_session(self) -> AuthSession | None:
        return self._session

    def on_auth_state_change(self, listener: AuthStateListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            await listener(event, self._session)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
        access_token: str | None = None,
    ) -> httpx.Response:
        anon_key = self.settings.anon_key()
        headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {access_token or anon_key}",
        }
        try:
            response = await self.http.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            raise IdentityError(f"identity_connection_failed: {exc}") from exc
        if response.status_code >= 400:
            raise IdentityError(_error_message(response), status_code=response.status_code)
        return response

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._session = _session_from_payload(response.json())
        logger.info("auth_signed_in user_id=%s", self._session.user.id)
        await self._emit(SIGNED_IN)
        return self._session

    async def sign_up(
        self,
        email: str,
        password: str,
        *,
        full_name: str | None = None,
    ) -> SignUpResult:
        body: dict[str, Any] = {"email": email, "password": password}
        if full_name:
            body["data"] = {"full_name": full_name}
        response = await self._request("POST", "/signup", json=body)
        payload = response.json()

        if payload.get("access_token"):
            self._session = _session_from_payload(payload)
            logger.info("auth_signed_up user_id=%s", self._session.user.id)
            await self._emit(SIGNED_IN)
            return SignUpResult(user=self._session.user, session=self._session)

        # Confirmation flow returns the bare user object.
        user_payload = payload.get("user") or payload
        user = AuthUser.model_validate(user_payload) if user_payload.get("id") else None
        logger.info("auth_signup_confirmation_pending")
        return SignUpResult(user=user, session=None)

    async def refresh_session(self) -> AuthSession | None:
        if self._session is None:
            return None
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": self._session.refresh_token},
        )
        self._session = _session_from_payload(response.json())
        await self._emit(TOKEN_REFRESHED)
        return self._session

    async def get_session(self) -> AuthSession | None:
        """Return the live session, refreshing its access token when near expiry."""
        if self._session is None:
            return None
        if not self._session.is_expiring():
            return self._session
        try:
            return await self.refresh_session()
        except IdentityError as exc:
            logger.warning("auth_refresh_failed status=%s", exc.status_code)
            self._session = None
            await self._emit(SIGNED_OUT)
            return None

    async def get_user(self) -> AuthUser | None:
        """Fetch the current principal from the provider, or ``None`` when signed out."""
        session = await self.get_session()
        if session is None:
            return None
        response = await self._request("GET", "/user", access_token=session.access_token)
        return AuthUser.model_validate(response.json())

    async def sign_out(self) -> None:
        session = self._session
        if session is None:
            return
        try:
            await self._request("POST", "/logout", access_token=session.access_token)
        finally:
            self._session = None
            logger.info("auth_signed_out user_id=%s", session.user.id)
            await self._emit(SIGNED_OUT)
