import json

import httpx
import pytest
import respx
from conftest import REST_URL, make_settings
from theroom_studio.client import STORE_ERROR_KINDS, DataServiceClient
from theroom_studio.errors import (
    DataServiceAuthError,
    DataServiceConnectionError,
    DataServiceNotFoundError,
    DataServiceRequestError,
    UniqueViolationError,
)


@pytest.mark.asyncio
@respx.mock
async def test_client_sends_anon_key_until_token_set():
    client = DataServiceClient(make_settings())
    route = respx.get(f"{REST_URL}/products").respond(200, json=[])

    await client.table("products").select("*").execute()
    client.set_access_token("member-token")
    await client.table("products").select("*").execute()

    first, second = route.calls[0].request, route.calls[1].request
    assert first.headers["apikey"] == "anon-key"
    assert first.headers["Authorization"] == "Bearer anon-key"
    assert second.headers["apikey"] == "anon-key"
    assert second.headers["Authorization"] == "Bearer member-token"
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_unique_violation_code_maps_to_named_error():
    client = DataServiceClient(make_settings())
    respx.post(f"{REST_URL}/bookings").respond(
        409,
        json={
            "code": "23505",
            "message": "duplicate key value violates unique constraint",
            "details": "Key (user_id, schedule_id) already exists.",
            "hint": None,
        },
    )

    with pytest.raises(UniqueViolationError) as exc_info:
        await client.table("bookings").insert({"user_id": "u", "schedule_id": "s"}).execute()

    assert isinstance(exc_info.value, DataServiceRequestError)
    assert exc_info.value.code == "23505"
    assert exc_info.value.status_code == 409
    assert exc_info.value.details == "Key (user_id, schedule_id) already exists."
    await client.aclose()


def test_store_error_table_is_explicit():
    assert STORE_ERROR_KINDS["23505"] is UniqueViolationError
    assert STORE_ERROR_KINDS["PGRST116"] is DataServiceNotFoundError


@pytest.mark.asyncio
@respx.mock
async def test_other_conflicts_are_not_unique_violations():
    client = DataServiceClient(make_settings())
    respx.post(f"{REST_URL}/bookings").respond(
        409, json={"code": "23503", "message": "foreign key violation"}
    )

    with pytest.raises(DataServiceRequestError) as exc_info:
        await client.table("bookings").insert({"user_id": "u", "schedule_id": "s"}).execute()

    assert not isinstance(exc_info.value, UniqueViolationError)
    assert exc_info.value.message == "foreign key violation"
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_auth_error():
    client = DataServiceClient(make_settings())
    respx.get(f"{REST_URL}/users").respond(401, json={"code": "PGRST301", "message": "JWT expired"})

    with pytest.raises(DataServiceAuthError):
        await client.table("users").select("*").execute()
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_single_row_miss_is_not_found():
    client = DataServiceClient(make_settings())
    respx.get(f"{REST_URL}/users").respond(
        406, json={"code": "PGRST116", "message": "JSON object requested, multiple (or no) rows returned"}
    )

    with pytest.raises(DataServiceNotFoundError):
        await client.table("users").select("*").eq("id", "missing").single().execute()
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_non_json_error_body():
    client = DataServiceClient(make_settings())
    respx.get(f"{REST_URL}/users").respond(502, text="Bad Gateway")

    with pytest.raises(DataServiceRequestError) as exc_info:
        await client.table("users").select("*").execute()

    assert exc_info.value.message == "Bad Gateway"
    assert exc_info.value.code is None
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_network_error():
    client = DataServiceClient(make_settings())
    respx.get(f"{REST_URL}/users").mock(side_effect=httpx.ConnectError("boom"))

    with pytest.raises(DataServiceConnectionError):
        await client.table("users").select("*").execute()
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_timeout_error():
    client = DataServiceClient(make_settings())
    respx.get(f"{REST_URL}/users").mock(side_effect=httpx.ReadTimeout("slow"))

    with pytest.raises(DataServiceConnectionError) as exc_info:
        await client.table("users").select("*").execute()

    assert "data_service_timeout" in str(exc_info.value)
    await client.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_rpc_posts_params_and_decodes_result():
    client = DataServiceClient(make_settings())
    route = respx.post(f"{REST_URL}/rpc/book_class").respond(200, json={"status": "booked"})

    result = await client.rpc("book_class", {"p_schedule_id": "sched-1"})

    assert result == {"status": "booked"}
    assert json.loads(route.calls[0].request.content) == {"p_schedule_id": "sched-1"}
    await client.aclose()
