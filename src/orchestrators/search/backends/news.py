"""News domain: published articles matched on title or body."""

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
from src.orchestrators.search.constants import (
    NEWS_DESCRIPTION_LENGTH,
    NEWS_DESCRIPTION_SUFFIX,
)
from src.orchestrators.search.interface import SearchBackend


def summarize_body(body: str | None) -> str | None:
    """First 100 characters plus an ellipsis, whether or not anything was cut."""
    if body is None:
        return None
    return str(body)[:NEWS_DESCRIPTION_LENGTH] + NEWS_DESCRIPTION_SUFFIX


class NewsSearchBackend(SearchBackend):
    entity_type = EntityType.NEWS

    def build_query(
        self,
        query: str,
        filters: FilterSelection,
        date_lower_bound: datetime | None,
        actor: ActorContext,
    ) -> QuerySpec:
        clauses: list[FilterClause] = []
        if date_lower_bound is not None:
            clauses.append(
                FilterClause(field="created_at", operator=FilterOperator.GTE, value=date_lower_bound)
            )
        return QuerySpec(
            table="news",
            select="id, title, content, created_at",
            search_term=query,
            search_columns=("title", "content"),
            filters=tuple(clauses),
            order_by="created_at",
            descending=True,
            limit=self.result_cap,
        )

    def normalize(self, row: dict[str, Any], now: datetime) -> SearchResult:
        return SearchResult(
            id=row.get("id"),
            title=row.get("title") or "",
            description=summarize_body(row.get("content")),
            entity_type=EntityType.NEWS,
            created_at=row.get("created_at"),
        )
