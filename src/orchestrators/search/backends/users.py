"""User directory domain: only visible to privileged actors.

Directory entries carry no creation time in the normalized shape, so every
result is stamped with the query instant and ranks as most recent.
"""

from datetime import datetime
from typing import Any

from src.contracts.search_v1 import (
    ActorContext,
    EntityType,
    FilterSelection,
    QuerySpec,
    SearchResult,
)
from src.orchestrators.search.interface import SearchBackend

DISPLAY_NAME_COLUMN = "user_metadata->>full_name"


class UserDirectorySearchBackend(SearchBackend):
    entity_type = EntityType.USER

    def is_applicable(self, filters: FilterSelection, actor: ActorContext) -> bool:
        return actor.is_privileged and filters.includes(self.entity_type)

    def build_query(
        self,
        query: str,
        filters: FilterSelection,
        date_lower_bound: datetime | None,
        actor: ActorContext,
    ) -> QuerySpec:
        # Date, category and location filters never apply to the directory
        return QuerySpec(
            table="users",
            select="id, email, user_metadata",
            search_term=query,
            search_columns=(DISPLAY_NAME_COLUMN,),
            limit=self.result_cap,
        )

    def normalize(self, row: dict[str, Any], now: datetime) -> SearchResult:
        meta = row.get("user_metadata") or {}
        name = meta.get("full_name") if isinstance(meta, dict) else None
        email = row.get("email")
        return SearchResult(
            id=row.get("id"),
            title=name or email or "",
            description=email,
            entity_type=EntityType.USER,
            created_at=now,
        )
