"""Civic search contract v1: shared types for filters, store requests, and normalized results."""

from src.contracts.search_v1 import (
    ActorContext,
    DateRange,
    EntityType,
    FilterClause,
    FilterOperator,
    FilterSelection,
    QuerySpec,
    SearchResult,
)

__all__ = [
    "ActorContext",
    "DateRange",
    "EntityType",
    "FilterClause",
    "FilterOperator",
    "FilterSelection",
    "QuerySpec",
    "SearchResult",
]
