"""Standard interface for the per-domain query builders used by the orchestrator.

Each backend turns (query, filters, date bound, actor) into an immutable QuerySpec
and normalizes the rows the store returns into SearchResult values.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from src.contracts.search_v1 import (
    ActorContext,
    EntityType,
    FilterSelection,
    QuerySpec,
    SearchResult,
)
from src.orchestrators.search.constants import DOMAIN_RESULT_CAPS
from src.orchestrators.search.store import RecordStore

logger = logging.getLogger(__name__)


class SearchBackend(ABC):
    """Base class for all domain backends."""

    entity_type: EntityType

    @property
    def result_cap(self) -> int:
        return DOMAIN_RESULT_CAPS[self.entity_type]

    def get_source_name(self) -> str:
        return self.entity_type.value

    def is_applicable(self, filters: FilterSelection, actor: ActorContext) -> bool:
        """Whether this domain takes part in a search with these filters."""
        return filters.includes(self.entity_type)

    @abstractmethod
    def build_query(
        self,
        query: str,
        filters: FilterSelection,
        date_lower_bound: datetime | None,
        actor: ActorContext,
    ) -> QuerySpec:
        """Build the bounded store request for this domain."""

    @abstractmethod
    def normalize(self, row: dict[str, Any], now: datetime) -> SearchResult:
        """Map one native row to the common result shape."""

    async def search(
        self,
        store: RecordStore,
        query: str,
        filters: FilterSelection,
        date_lower_bound: datetime | None,
        actor: ActorContext,
        now: datetime,
    ) -> list[SearchResult]:
        """Run this domain's request and normalize its rows.

        Store failures propagate; malformed rows are skipped.
        """
        spec = self.build_query(query, filters, date_lower_bound, actor)
        rows = await store.fetch(spec, actor=actor)
        results: list[SearchResult] = []
        for row in rows or []:
            if not isinstance(row, dict):
                continue
            try:
                results.append(self.normalize(row, now))
            except (ValueError, TypeError) as e:
                logger.debug(
                    "%s: skipping malformed row %r: %s",
                    self.get_source_name(),
                    row.get("id"),
                    e,
                )
        return results[: self.result_cap]
