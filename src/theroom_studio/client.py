"""HTTP client for the studio's hosted data service (PostgREST)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

import httpx

from .config import Settings
from .errors import (
    DataServiceAuthError,
    DataServiceConnectionError,
    DataServiceError,
    DataServiceNotFoundError,
    DataServiceRequestError,
    UniqueViolationError,
)

if TYPE_CHECKING:
    from .query import TableQuery

logger = logging.getLogger(__name__)

# Store error codes with a dedicated meaning on the client side. Anything not
# listed falls back to the HTTP status mapping in ``raise_for_store_error``.
STORE_ERROR_KINDS: dict[str, type[DataServiceError]] = {
    "23505": UniqueViolationError,  # unique_violation
    "42501": DataServiceAuthError,  # insufficient_privilege (row level security)
    "PGRST116": DataServiceNotFoundError,  # single row requested, zero or many found
    "PGRST301": DataServiceAuthError,  # JWT rejected
    "PGRST303": DataServiceAuthError,  # JWT claims check failed
}

ParamList = Sequence[tuple[str, str]]


def _error_payload(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"message": response.text or f"data_service_error_{response.status_code}"}
    if isinstance(payload, dict):
        return payload
    return {"message": str(payload)}


def raise_for_store_error(response: httpx.Response) -> None:
    """Translate an error response into the matching ``DataServiceError``."""
    if response.status_code < 400:
        return

    payload = _error_payload(response)
    code = payload.get("code")
    message = payload.get("message") or payload.get("msg") or f"data_service_error_{response.status_code}"
    kwargs = {
        "code": str(code) if code is not None else None,
        "details": payload.get("details"),
        "hint": payload.get("hint"),
        "status_code": response.status_code,
    }

    error_cls = STORE_ERROR_KINDS.get(str(code)) if code is not None else None
    if error_cls is None:
        if response.status_code in {401, 403}:
            error_cls = DataServiceAuthError
        elif response.status_code == 404:
            error_cls = DataServiceNotFoundError
        else:
            error_cls = DataServiceRequestError
    raise error_cls(message, **kwargs)


class DataServiceClient:
    """HTTP client for the relational data service REST API."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self._access_token: str | None = None
        self.http = http or httpx.AsyncClient(
            base_url=settings.rest_url,
            timeout=httpx.Timeout(
                connect=10.0,
                read=settings.request_timeout_seconds,
                write=10.0,
                pool=10.0,
            ),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    def set_access_token(self, token: str | None) -> None:
        """Use ``token`` as the bearer for subsequent requests (``None`` = anon)."""
        self._access_token = token

    def table(self, name: str) -> "TableQuery":
        from .query import TableQuery

        return TableQuery(self, name)

    async def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        """Invoke a server-side function and return its decoded result."""
        response = await self.call("POST", f"/rpc/{function}", json=params or {})
        if not response.content:
            return None
        return response.json()

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        anon_key = self.settings.anon_key()
        headers = {
            "apikey": anon_key,
            "Authorization": f"Bearer {self._access_token or anon_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: ParamList | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self.http.request(
                method,
                path,
                params=list(params) if params else None,
                json=json,
                headers=self._headers(headers),
            )
        except httpx.TimeoutException as exc:
            raise DataServiceConnectionError(
                f"data_service_timeout: Request to {path} timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise DataServiceConnectionError(f"data_service_connection_failed: {exc}") from exc

        logger.debug("data_service_request %s %s -> %s", method, path, response.status_code)
        raise_for_store_error(response)
        return response
