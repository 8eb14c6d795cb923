"""Record store client: executes QuerySpec requests against the hosted PostgREST API."""

import logging
from datetime import datetime
from typing import Any, Protocol

import httpx

from src.contracts.search_v1 import ActorContext, FilterClause, FilterOperator, QuerySpec
from src.core.config import config

logger = logging.getLogger(__name__)

# Characters that break PostgREST's or=(...) grammar unless the value is quoted
_RESERVED = set(',.:()"\\ ')


class StoreQueryError(RuntimeError):
    """The store rejected or failed a single domain request."""


class RecordStore(Protocol):
    async def fetch(
        self, spec: QuerySpec, actor: ActorContext | None = None
    ) -> list[dict[str, Any]]:
        """Return the rows matching ``spec`` (possibly empty)."""
        ...


def _contains_pattern(term: str) -> str:
    return f"*{term}*"


def _quote(value: str) -> str:
    if not any(ch in _RESERVED for ch in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _clause_param(clause: FilterClause) -> tuple[str, str]:
    value = _format_value(clause.value)
    if clause.operator == FilterOperator.ILIKE:
        value = _contains_pattern(value)
    return clause.field, f"{clause.operator.value}.{value}"


def build_params(spec: QuerySpec) -> list[tuple[str, str]]:
    """Translate a QuerySpec into PostgREST query parameters."""
    params: list[tuple[str, str]] = [("select", " ".join(spec.select.split()))]
    pattern = _contains_pattern(spec.search_term)
    if len(spec.search_columns) == 1:
        params.append((spec.search_columns[0], f"ilike.{pattern}"))
    else:
        alternatives = ",".join(
            f"{column}.ilike.{_quote(pattern)}" for column in spec.search_columns
        )
        params.append(("or", f"({alternatives})"))
    for clause in spec.filters:
        params.append(_clause_param(clause))
    if spec.order_by:
        params.append(("order", f"{spec.order_by}.{'desc' if spec.descending else 'asc'}"))
    params.append(("limit", str(spec.limit)))
    return params


class PostgrestRecordStore:
    """Hosted record store over httpx (Supabase REST endpoint)."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        store_url = base_url if base_url is not None else config.supabase_url
        self._base_url = (store_url or "").rstrip("/")
        if self._base_url and not self._base_url.endswith("/rest/v1"):
            self._base_url = self._base_url + "/rest/v1"
        self._api_key = api_key if api_key is not None else config.supabase_anon_key
        self._timeout = timeout if timeout is not None else config.store_timeout_seconds
        self._client = client

    def _headers(self, actor: ActorContext | None) -> dict[str, str]:
        token = (actor.access_token if actor else None) or self._api_key
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    async def _get(self, url: str, params: list[tuple[str, str]], headers: dict[str, str]) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(url, params=params, headers=headers)
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.get(url, params=params, headers=headers)

    async def fetch(
        self, spec: QuerySpec, actor: ActorContext | None = None
    ) -> list[dict[str, Any]]:
        if not self._base_url:
            raise StoreQueryError("Record store URL is not configured")
        url = f"{self._base_url}/{spec.table}"
        params = build_params(spec)
        try:
            response = await self._get(url, params, self._headers(actor))
            response.raise_for_status()
            data = response.json() if response.content else None
        except httpx.HTTPStatusError as e:
            raise StoreQueryError(
                f"{spec.table}: HTTP {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise StoreQueryError(f"{spec.table}: {e!s}") from e
        except ValueError as e:
            raise StoreQueryError(f"{spec.table}: invalid JSON response") from e

        if data is None:
            return []
        if not isinstance(data, list):
            raise StoreQueryError(f"{spec.table}: expected a list, got {type(data).__name__}")
        logger.debug("Store %s returned %s rows", spec.table, len(data))
        return data

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
