"""Issue domain: public civic issue reports, optionally narrowed by issue filters."""

from datetime import datetime
from typing import Any

from src.contracts.search_v1 import (
    ActorContext,
    EntityType,
    FilterClause,
    FilterOperator,
    FilterSelection,
    QuerySpec,
    SearchResult,
)
from src.orchestrators.search.constants import ANONYMOUS_REPORTER
from src.orchestrators.search.interface import SearchBackend


def _reporter_name(row: dict[str, Any]) -> str:
    reporter = row.get("users") or row.get("reporter") or {}
    if isinstance(reporter, list):
        reporter = reporter[0] if reporter else {}
    if not isinstance(reporter, dict):
        return ANONYMOUS_REPORTER
    meta = reporter.get("user_metadata") or {}
    name = meta.get("full_name") if isinstance(meta, dict) else None
    name = name or reporter.get("full_name")
    return str(name).strip() if name and str(name).strip() else ANONYMOUS_REPORTER


class IssueSearchBackend(SearchBackend):
    entity_type = EntityType.ISSUE

    def build_query(
        self,
        query: str,
        filters: FilterSelection,
        date_lower_bound: datetime | None,
        actor: ActorContext,
    ) -> QuerySpec:
        clauses = [FilterClause(field="is_public", operator=FilterOperator.EQ, value=True)]
        category = filters.effective_category()
        if category:
            clauses.append(FilterClause(field="category", operator=FilterOperator.EQ, value=category))
        status = filters.effective_status()
        if status:
            clauses.append(FilterClause(field="status", operator=FilterOperator.EQ, value=status))
        if date_lower_bound is not None:
            clauses.append(
                FilterClause(field="created_at", operator=FilterOperator.GTE, value=date_lower_bound)
            )
        location = filters.effective_location()
        if location:
            clauses.append(FilterClause(field="location", operator=FilterOperator.ILIKE, value=location))
        return QuerySpec(
            table="issues",
            select=(
                "id, title, description, location, created_at, status, category, "
                "users!reporter_id(user_metadata)"
            ),
            search_term=query,
            search_columns=("title", "description", "location"),
            filters=tuple(clauses),
            order_by="created_at",
            descending=True,
            limit=self.result_cap,
        )

    def normalize(self, row: dict[str, Any], now: datetime) -> SearchResult:
        return SearchResult(
            id=row.get("id"),
            title=row.get("title") or "",
            description=row.get("description"),
            entity_type=EntityType.ISSUE,
            location=row.get("location"),
            created_at=row.get("created_at"),
            status=row.get("status"),
            category=row.get("category"),
            attributed_name=_reporter_name(row),
        )
