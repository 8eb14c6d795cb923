import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from src.contracts.search_v1 import ActorContext, FilterOperator, QuerySpec

IST = timezone(timedelta(hours=5, minutes=30))


def _column_value(row: dict[str, Any], column: str) -> Any:
    if "->>" in column:
        outer, inner = column.split("->>", 1)
        nested = row.get(outer) or {}
        return nested.get(inner) if isinstance(nested, dict) else None
    return row.get(column)


def _as_datetime(value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _matches(row: dict[str, Any], spec: QuerySpec) -> bool:
    term = spec.search_term.lower()
    if not any(
        term in str(_column_value(row, c) or "").lower() for c in spec.search_columns
    ):
        return False
    for clause in spec.filters:
        value = _column_value(row, clause.field)
        if clause.operator == FilterOperator.EQ and value != clause.value:
            return False
        if clause.operator == FilterOperator.ILIKE and (
            str(clause.value).lower() not in str(value or "").lower()
        ):
            return False
        if clause.operator == FilterOperator.GTE:
            created = _as_datetime(value)
            if created is None or created < clause.value:
                return False
    return True


class FakeRecordStore:
    """Evaluates QuerySpecs against in-memory tables.

    ``gates`` holds an asyncio.Event per search term; requests for that term wait
    on it, which lets tests resolve generations out of order.
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None):
        self.tables = tables or {}
        self.calls: list[QuerySpec] = []
        self.actors: list[ActorContext | None] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.failures: dict[str, Exception] = {}

    async def fetch(
        self, spec: QuerySpec, actor: ActorContext | None = None
    ) -> list[dict[str, Any]]:
        self.calls.append(spec)
        self.actors.append(actor)
        gate = self.gates.get(spec.search_term)
        if gate is not None:
            await gate.wait()
        if spec.table in self.failures:
            raise self.failures[spec.table]
        rows = [r for r in self.tables.get(spec.table, []) if _matches(r, spec)]
        if spec.order_by:
            rows.sort(
                key=lambda r: _as_datetime(r.get(spec.order_by)),
                reverse=spec.descending,
            )
        return rows[: spec.limit]

    def tables_called(self) -> list[str]:
        return [spec.table for spec in self.calls]


@pytest.fixture
def store_factory() -> Callable[..., FakeRecordStore]:
    return FakeRecordStore


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 10, 10, 0, tzinfo=IST)


@pytest.fixture
def ist() -> timezone:
    return IST


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        async def _poll() -> None:
            while not predicate():
                await asyncio.sleep(0.005)

        await asyncio.wait_for(_poll(), timeout)

    return _wait
