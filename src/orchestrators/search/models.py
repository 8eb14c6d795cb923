"""Search response model published by the orchestrator to the presenter."""

from typing import Any

from pydantic import BaseModel, Field

from src.contracts.search_v1 import SearchResult


class SearchResponse(BaseModel):
    """Displayed search state for one generation."""

    results: list[SearchResult] = Field(default_factory=list, description="Ranked search results")
    errors: list[str] = Field(default_factory=list, description="Per-domain failures")
    loading: bool = Field(default=False, description="A generation is in flight")
    meta: dict[str, Any] = Field(
        default_factory=lambda: {
            "query": "",
            "generation": 0,
            "domains_queried": [],
            "total_results": 0,
            "timing_ms": {},
        },
        description="Query, generation token, domains, timing",
    )

    @property
    def is_empty(self) -> bool:
        """True when the presenter should show the 'No results found' state."""
        return not self.loading and not self.results
