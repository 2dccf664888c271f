"""Fluent PostgREST query builder used by the repositories."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Literal, Optional

from .errors import DataServiceRequestError

if TYPE_CHECKING:
    from .client import DataServiceClient

_RESERVED_CHARS = set(',()":')

OBJECT_ACCEPT = "application/vnd.pgrst.object+json"


@dataclass
class QueryResult:
    data: Any
    count: Optional[int] = None


def encode_value(value: Any) -> str:
    """Render a Python value the way PostgREST expects it in a filter."""
    if isinstance(value, Enum):
        value = value.value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _encode_list_item(value: Any) -> str:
    text = encode_value(value)
    if any(ch in _RESERVED_CHARS or ch.isspace() for ch in text):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def parse_content_range(header: str | None) -> Optional[int]:
    """Return the total from a ``Content-Range: 0-9/42`` header."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1]
    if total == "*":
        return None
    try:
        return int(total)
    except ValueError:
        return None


class TableQuery:
    """Builds and executes one request against a named relation."""

    def __init__(self, client: "DataServiceClient", table: str) -> None:
        self._client = client
        self._table = table
        self._method = "GET"
        self._columns: Optional[str] = None
        self._filters: list[tuple[str, str]] = []
        self._orders: list[str] = []
        self._limit: Optional[int] = None
        self._body: Any = None
        self._count: Optional[Literal["exact"]] = None
        self._single = False
        self._maybe_single = False

    # -- operation -------------------------------------------------------

    def select(
        self,
        columns: str = "*",
        *,
        count: Optional[Literal["exact"]] = None,
        head: bool = False,
    ) -> "TableQuery":
        # Whitespace inside embedded selects is insignificant to the store.
        self._columns = "".join(columns.split())
        self._count = count
        if self._method == "GET" and head:
            self._method = "HEAD"
        return self

    def insert(self, values: dict[str, Any] | list[dict[str, Any]]) -> "TableQuery":
        self._method = "POST"
        self._body = values
        return self

    def update(self, values: dict[str, Any]) -> "TableQuery":
        self._method = "PATCH"
        self._body = values
        return self

    def delete(self) -> "TableQuery":
        self._method = "DELETE"
        return self

    # -- filters ---------------------------------------------------------

    def _filter(self, column: str, operator: str, value: str) -> "TableQuery":
        self._filters.append((column, f"{operator}.{value}"))
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "eq", encode_value(value))

    def neq(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "neq", encode_value(value))

    def gt(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "gt", encode_value(value))

    def gte(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "gte", encode_value(value))

    def lt(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "lt", encode_value(value))

    def lte(self, column: str, value: Any) -> "TableQuery":
        return self._filter(column, "lte", encode_value(value))

    def in_(self, column: str, values: Iterable[Any]) -> "TableQuery":
        items = ",".join(_encode_list_item(v) for v in values)
        return self._filter(column, "in", f"({items})")

    # -- modifiers -------------------------------------------------------

    def order(self, column: str, *, ascending: bool = True) -> "TableQuery":
        self._orders.append(f"{column}.{'asc' if ascending else 'desc'}")
        return self

    def limit(self, count: int) -> "TableQuery":
        self._limit = count
        return self

    def single(self) -> "TableQuery":
        self._single = True
        return self

    def maybe_single(self) -> "TableQuery":
        self._maybe_single = True
        return self

    # -- execution -------------------------------------------------------

    def build_params(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if self._columns is not None:
            params.append(("select", self._columns))
        params.extend(self._filters)
        if self._orders:
            params.append(("order", ",".join(self._orders)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        return params

    def build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        prefer: list[str] = []
        if self._method in {"POST", "PATCH", "DELETE"}:
            prefer.append(
                "return=representation" if self._columns is not None else "return=minimal"
            )
        if self._count:
            prefer.append(f"count={self._count}")
        if prefer:
            headers["Prefer"] = ",".join(prefer)
        if self._single:
            headers["Accept"] = OBJECT_ACCEPT
        return headers

    async def execute(self) -> QueryResult:
        response = await self._client.call(
            self._method,
            f"/{self._table}",
            params=self.build_params(),
            json=self._body,
            headers=self.build_headers(),
        )
        count = parse_content_range(response.headers.get("content-range"))

        if self._method == "HEAD" or not response.content:
            return QueryResult(data=None, count=count)

        data = response.json()
        if self._maybe_single:
            rows = data if isinstance(data, list) else [data]
            if len(rows) > 1:
                raise DataServiceRequestError(
                    f"Expected at most one row from {self._table}, got {len(rows)}",
                    status_code=response.status_code,
                )
            data = rows[0] if rows else None
        return QueryResult(data=data, count=count)
