"""Title-match fusion ranker: merges per-domain result lists into one ranked list.

Ranking is two-level and nothing else:
  1. results whose title contains the query (case-insensitive) come first
  2. within each group, newer ``created_at`` first
Python's sort is stable, so fully tied results keep their merge order.
"""

import logging
from collections.abc import Iterable

from src.contracts.search_v1 import SearchResult

logger = logging.getLogger(__name__)


def title_matches(result: SearchResult, query: str) -> bool:
    return query.lower() in result.title.lower()


def merge_domain_results(batches: Iterable[list[SearchResult]]) -> list[SearchResult]:
    """Concatenate per-domain lists in the order given; no re-limiting."""
    merged: list[SearchResult] = []
    for batch in batches:
        merged.extend(batch)
    return merged


class TitleMatchRanker:
    """Ranks merged results by title match, then recency."""

    def rank(self, results: list[SearchResult], query: str) -> list[SearchResult]:
        if not results:
            return []
        ranked = sorted(
            results,
            key=lambda r: (not title_matches(r, query), -r.created_at.timestamp()),
        )
        logger.debug(
            "Ranked %s results for %r (%s title matches)",
            len(ranked),
            query,
            sum(1 for r in ranked if title_matches(r, query)),
        )
        return ranked
