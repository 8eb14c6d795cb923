"""Poll domain: polls matched on question or description."""

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
from src.orchestrators.search.interface import SearchBackend


class PollSearchBackend(SearchBackend):
    entity_type = EntityType.POLL

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
            table="polls",
            select="id, question, description, created_at",
            search_term=query,
            search_columns=("question", "description"),
            filters=tuple(clauses),
            order_by="created_at",
            descending=True,
            limit=self.result_cap,
        )

    def normalize(self, row: dict[str, Any], now: datetime) -> SearchResult:
        return SearchResult(
            id=row.get("id"),
            title=row.get("question") or "",
            description=row.get("description"),
            entity_type=EntityType.POLL,
            created_at=row.get("created_at"),
        )
