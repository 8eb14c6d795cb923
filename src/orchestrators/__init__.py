"""Orchestrators: concurrent multi-domain pipelines (e.g. search)."""

from src.contracts.search_v1 import SearchResult
from src.orchestrators.search import (
    SearchBackend,
    SearchOrchestrator,
    SearchResponse,
)

__all__ = [
    "SearchBackend",
    "SearchOrchestrator",
    "SearchResponse",
    "SearchResult",
]
