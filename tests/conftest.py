from __future__ import annotations

import itertools
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import httpx
import pytest
import respx
from theroom_studio import Settings, StudioApp
from theroom_studio.auth import AuthSession, AuthUser

BASE_URL = "https://studio.test"
REST_URL = f"{BASE_URL}/rest/v1"
AUTH_URL = f"{BASE_URL}/auth/v1"

OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


def _eq_filter(request: httpx.Request, column: str) -> Optional[str]:
    value = request.url.params.get(column)
    if value is None:
        return None
    assert value.startswith("eq."), value
    return value[3:]


def _in_filter(request: httpx.Request, column: str) -> Optional[list[str]]:
    value = request.url.params.get(column)
    if value is None:
        return None
    assert value.startswith("in.(") and value.endswith(")"), value
    return [item.strip('"') for item in value[4:-1].split(",") if item]


def _store_error(status: int, code: str, message: str) -> httpx.Response:
    return httpx.Response(
        status, json={"code": code, "message": message, "details": None, "hint": None}
    )


class FakeStudioStore:
    """In-memory stand-in for the users/bookings relations and book_class function."""

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.bookings: list[dict[str, Any]] = []
        self.current_user_id: Optional[str] = None
        self.user_patches: list[httpx.Request] = []
        self.booking_inserts = 0
        self.rpc_calls = 0
        self.fail_credit_update = False
        self.fail_booking_insert = False
        self.fail_rpc = False
        self.fail_booking_reads = False
        self.fail_user_reads = False
        # "applied": the debit lands, then the read times out. "lost": it never lands.
        self.credit_update_timeout: Optional[str] = None
        self.router: Optional[respx.MockRouter] = None
        self._ids = itertools.count(1)

    def add_user(
        self,
        user_id: str = "user-1",
        *,
        credits: int = 1,
        membership: str = "2_times_weekly",
        is_admin: bool = False,
    ) -> dict[str, Any]:
        row = {
            "id": user_id,
            "email": f"{user_id}@example.com",
            "full_name": user_id.replace("-", " ").title(),
            "credits_remaining": credits,
            "membership_type": membership,
            "is_admin": is_admin,
            "created_at": "2026-01-01T00:00:00+00:00",
            "updated_at": "2026-01-01T00:00:00+00:00",
        }
        self.users[user_id] = row
        return row

    def add_booking(self, user_id: str, schedule_id: str, status: str = "confirmed") -> dict:
        row = {
            "id": f"booking-{next(self._ids)}",
            "user_id": user_id,
            "schedule_id": schedule_id,
            "status": status,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.bookings.append(row)
        return row

    def confirmed_for(self, user_id: str) -> list[dict[str, Any]]:
        return [b for b in self.bookings if b["user_id"] == user_id and b["status"] == "confirmed"]

    def install(self, router: respx.MockRouter) -> None:
        self.router = router
        router.get(f"{REST_URL}/users").mock(side_effect=self._get_users)
        router.patch(f"{REST_URL}/users").mock(side_effect=self._patch_users)
        router.get(f"{REST_URL}/bookings").mock(side_effect=self._get_bookings)
        self.insert_route = router.post(f"{REST_URL}/bookings").mock(side_effect=self._post_bookings)
        router.delete(f"{REST_URL}/bookings").mock(side_effect=self._delete_bookings)
        router.post(f"{REST_URL}/rpc/book_class").mock(side_effect=self._book_class)

    # -- users -----------------------------------------------------------

    def _get_users(self, request: httpx.Request) -> httpx.Response:
        if self.fail_user_reads:
            return _store_error(500, "XX000", "users unavailable")
        user_id = _eq_filter(request, "id")
        rows = list(self.users.values()) if user_id is None else (
            [self.users[user_id]] if user_id in self.users else []
        )
        if request.headers.get("accept") == OBJECT_ACCEPT:
            if len(rows) != 1:
                return _store_error(406, "PGRST116", "JSON object requested, multiple (or no) rows returned")
            return httpx.Response(200, json=rows[0])
        return httpx.Response(200, json=rows)

    def _patch_users(self, request: httpx.Request) -> httpx.Response:
        self.user_patches.append(request)
        body = json.loads(request.content)
        if self.fail_credit_update and "credits_remaining" in body:
            return _store_error(500, "XX000", "credit update failed")
        if self.credit_update_timeout == "lost" and "credits_remaining" in body:
            raise httpx.ReadTimeout("read timed out", request=request)
        user_id = _eq_filter(request, "id")
        row = self.users.get(user_id or "")
        expected = _eq_filter(request, "credits_remaining")
        if row is None or (expected is not None and str(row["credits_remaining"]) != expected):
            return httpx.Response(200, json=[])
        row.update(body)
        if self.credit_update_timeout == "applied" and "credits_remaining" in body:
            raise httpx.ReadTimeout("read timed out", request=request)
        return httpx.Response(200, json=[row])

    # -- bookings --------------------------------------------------------

    def _get_bookings(self, request: httpx.Request) -> httpx.Response:
        if self.fail_booking_reads:
            return _store_error(500, "XX000", "bookings unavailable")
        rows = self.bookings
        user_id = _eq_filter(request, "user_id")
        status = _eq_filter(request, "status")
        schedule_ids = _in_filter(request, "schedule_id")
        if user_id is not None:
            rows = [r for r in rows if r["user_id"] == user_id]
        if status is not None:
            rows = [r for r in rows if r["status"] == status]
        if schedule_ids is not None:
            rows = [r for r in rows if r["schedule_id"] in schedule_ids]
        return httpx.Response(200, json=rows)

    def _post_bookings(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if self.fail_booking_insert:
            return _store_error(503, "XX000", "database unavailable")
        if any(
            b["user_id"] == body["user_id"] and b["schedule_id"] == body["schedule_id"]
            for b in self.bookings
        ):
            return _store_error(
                409,
                "23505",
                'duplicate key value violates unique constraint "bookings_user_id_schedule_id_key"',
            )
        self.booking_inserts += 1
        row = self.add_booking(body["user_id"], body["schedule_id"], body["status"])
        return httpx.Response(201, json=[row])

    def _delete_bookings(self, request: httpx.Request) -> httpx.Response:
        booking_id = _eq_filter(request, "id")
        self.bookings = [b for b in self.bookings if b["id"] != booking_id]
        return httpx.Response(204)

    # -- book_class ------------------------------------------------------

    def _book_class(self, request: httpx.Request) -> httpx.Response:
        self.rpc_calls += 1
        if self.fail_rpc:
            return _store_error(500, "XX000", "function failed")
        schedule_id = json.loads(request.content)["p_schedule_id"]
        user = self.users[self.current_user_id or ""]
        if any(
            b["user_id"] == user["id"] and b["schedule_id"] == schedule_id for b in self.bookings
        ):
            return httpx.Response(
                200,
                json={"status": "already_booked", "credits_remaining": user["credits_remaining"]},
            )
        if user["membership_type"] != "unlimited" and user["credits_remaining"] <= 0:
            return httpx.Response(
                200, json={"status": "no_credits", "credits_remaining": user["credits_remaining"]}
            )
        self.booking_inserts += 1
        booking = self.add_booking(user["id"], schedule_id)
        if user["membership_type"] != "unlimited":
            user["credits_remaining"] -= 1
        return httpx.Response(
            200,
            json={
                "status": "booked",
                "booking": booking,
                "credits_remaining": user["credits_remaining"],
            },
        )


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "supabase_url": BASE_URL,
        "supabase_anon_key": "anon-key",
        "booking_mode": "sequential",
        "local_timezone": "UTC",
    }
    values.update(overrides)
    return Settings(**values)


def make_session(user_id: str = "user-1", *, expires_in: int = 3600) -> AuthSession:
    return AuthSession(
        access_token=f"access-{user_id}",
        refresh_token=f"refresh-{user_id}",
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=expires_in),
        user=AuthUser(id=user_id, email=f"{user_id}@example.com"),
    )


def session_payload(user_id: str = "user-1", *, expires_in: int = 3600) -> dict[str, Any]:
    return {
        "access_token": f"access-{user_id}",
        "refresh_token": f"refresh-{user_id}",
        "expires_in": expires_in,
        "token_type": "bearer",
        "user": {"id": user_id, "email": f"{user_id}@example.com", "user_metadata": {}},
    }


@pytest.fixture
def store():
    fake = FakeStudioStore()
    with respx.mock(assert_all_called=False) as router:
        fake.install(router)
        yield fake


@pytest.fixture
def app_factory() -> Callable[..., StudioApp]:
    def _factory(**overrides: Any) -> StudioApp:
        return StudioApp(make_settings(**overrides))

    return _factory


@pytest.fixture
def sign_in(store: FakeStudioStore):
    async def _sign_in(app: StudioApp, user_id: str = "user-1") -> None:
        store.current_user_id = user_id
        await app.context.apply_session(make_session(user_id))

    return _sign_in
