"""Federated search: debounced orchestrator over the issue, news, poll and user domains."""

from src.contracts.search_v1 import SearchResult
from src.orchestrators.search.interface import SearchBackend
from src.orchestrators.search.models import SearchResponse
from src.orchestrators.search.orchestrator import SearchOrchestrator

__all__ = [
    "SearchBackend",
    "SearchOrchestrator",
    "SearchResponse",
    "SearchResult",
]
