"""Search orchestrator: debounced trigger, concurrent domain fan-out, token-guarded fan-in.

Pipeline:
  1. Every query or filter change restarts the debounce period
  2. Too-short queries clear the results immediately and never hit the store
  3. When the period elapses, bump the generation token and snapshot the inputs
  4. Query every applicable domain backend concurrently
  5. Drop any completion whose token is no longer current
  6. Merge in domain order, rank by title match then recency
  7. Publish the SearchResponse to subscribers
"""

import asyncio
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from typing import Any

from src.contracts.search_v1 import ActorContext, FilterSelection, SearchResult
from src.core.config import config
from src.core.logger import logger
from src.orchestrators.search.backends import default_backends
from src.orchestrators.search.constants import DOMAIN_ORDER
from src.orchestrators.search.date_range import resolve_date_lower_bound
from src.orchestrators.search.fusion import TitleMatchRanker, merge_domain_results
from src.orchestrators.search.interface import SearchBackend
from src.orchestrators.search.models import SearchResponse
from src.orchestrators.search.store import RecordStore
from src.services.recent_searches import RecentSearchCache

SearchListener = Callable[[SearchResponse], None]


@dataclass
class _Generation:
    """Inputs and result buffer of one search round. Owned by that round only."""

    token: int
    query: str
    filters: FilterSelection
    actor: ActorContext
    now: datetime
    date_lower_bound: datetime | None
    backends: list[SearchBackend]
    buffer: dict[str, list[SearchResult]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    timing_ms: dict[str, float] = field(default_factory=dict)
    started: float = field(default_factory=time.monotonic)

    @property
    def domains(self) -> list[str]:
        return [b.get_source_name() for b in self.backends]

    def merged(self) -> list[SearchResult]:
        return merge_domain_results(self.buffer.get(d, []) for d in DOMAIN_ORDER)


class SearchOrchestrator:
    """Keeps the displayed results consistent with the latest query and filters."""

    def __init__(
        self,
        store: RecordStore,
        backends: Iterable[SearchBackend] | None = None,
        recent_searches: RecentSearchCache | None = None,
        actor: ActorContext | None = None,
        debounce_seconds: float | None = None,
        min_query_length: int | None = None,
        clock: Callable[[], datetime] | None = None,
        tz: tzinfo | None = None,
    ):
        self._store = store
        self._backends = list(backends) if backends is not None else default_backends()
        self._recent = recent_searches
        self._actor = actor or ActorContext.anonymous()
        self._debounce_seconds = (
            debounce_seconds
            if debounce_seconds is not None
            else config.search_debounce_ms / 1000
        )
        self._min_query_length = (
            min_query_length
            if min_query_length is not None
            else config.search_min_query_length
        )
        self._clock = clock or (lambda: datetime.now(UTC))
        self._tz = tz
        self._ranker = TitleMatchRanker()

        self._generation = 0
        self._query = ""
        self._filters = FilterSelection()
        self._pending: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        self._response = SearchResponse()
        self._listeners: list[SearchListener] = []

        if self._recent is not None:
            self._recent.load()

    # -- state ---------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def query(self) -> str:
        return self._query

    @property
    def filters(self) -> FilterSelection:
        return self._filters.model_copy()

    @property
    def response(self) -> SearchResponse:
        return self._response

    @property
    def results(self) -> list[SearchResult]:
        return list(self._response.results)

    @property
    def recent_searches(self) -> list[str]:
        return self._recent.entries if self._recent is not None else []

    @property
    def actor(self) -> ActorContext:
        return self._actor

    def set_actor(self, actor: ActorContext) -> None:
        """Takes effect from the next generation."""
        self._actor = actor

    def subscribe(self, listener: SearchListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- input ---------------------------------------------------------------

    def update(self, query: str | None = None, filters: FilterSelection | None = None) -> None:
        """Single re-trigger path for text and filter edits. Needs a running loop."""
        if query is not None:
            self._query = query
        if filters is not None:
            self._filters = filters.model_copy()
        self._cancel_pending()

        trimmed = self._query.strip()
        if len(trimmed) < self._min_query_length:
            self._clear_results()
            return

        logger.search_scheduled(trimmed, self._debounce_seconds)
        self._pending = asyncio.get_running_loop().create_task(
            self._debounced(trimmed, self._filters.model_copy())
        )

    def set_query(self, query: str) -> None:
        self.update(query=query)

    def set_filter(self, **changes: Any) -> None:
        """Apply filter edits (e.g. ``entity_type="news"``) and re-trigger."""
        filters = FilterSelection.model_validate({**self._filters.model_dump(), **changes})
        self.update(filters=filters)

    def reset_filters(self) -> None:
        self.update(filters=FilterSelection())

    def submit(self, query: str) -> None:
        """Accepted submission (Enter or a suggestion click)."""
        if self._recent is not None:
            self._recent.record(query)
        self.update(query=query)

    def clear(self) -> None:
        self._query = ""
        self._cancel_pending()
        self._clear_results()

    def clear_recent_searches(self) -> None:
        if self._recent is not None:
            self._recent.clear()

    # -- scheduling ----------------------------------------------------------

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def _debounced(self, query: str, filters: FilterSelection) -> None:
        await asyncio.sleep(self._debounce_seconds)
        self._pending = None
        self._dispatch(query, filters)

    def _dispatch(self, query: str, filters: FilterSelection) -> asyncio.Task:
        """Claim the next generation token and start its round.

        The token is taken before the task first runs, so a clear issued in
        between already supersedes it.
        """
        self._generation += 1
        task = asyncio.get_running_loop().create_task(
            self._run_generation(self._generation, query, filters)
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    def _clear_results(self) -> None:
        if self._inflight:
            # Supersede rounds still in flight so they can never be shown
            self._generation += 1
        if self._response.results or self._response.loading or self._response.errors:
            self._publish(
                SearchResponse(meta=self._meta(self._query.strip(), [], {}, self._generation))
            )

    async def settle(self) -> None:
        """Wait until no debounce is pending and no generation is in flight."""
        while self._pending is not None or self._inflight:
            if self._pending is not None:
                await asyncio.wait({self._pending})
                if self._pending is not None and self._pending.done():
                    self._pending = None
            else:
                await asyncio.wait(set(self._inflight))

    async def aclose(self) -> None:
        self._cancel_pending()
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)

    # -- fan-out / fan-in ----------------------------------------------------

    async def _run_generation(
        self, token: int, query: str, filters: FilterSelection
    ) -> SearchResponse | None:
        if token != self._generation:
            logger.stale_discarded(token, self._generation)
            return None
        now = self._clock()
        gen = _Generation(
            token=token,
            query=query,
            filters=filters,
            actor=self._actor,
            now=now,
            date_lower_bound=resolve_date_lower_bound(filters.date_range, now=now, tz=self._tz),
            backends=[b for b in self._backends if b.is_applicable(filters, self._actor)],
        )
        logger.search_dispatched(gen.token, query, gen.domains)
        self._publish(
            SearchResponse(
                results=self._response.results,
                loading=True,
                meta=self._meta(query, gen.domains, {}, gen.token),
            )
        )

        outcomes = await asyncio.gather(
            *(self._execute_one(gen, backend) for backend in gen.backends),
            return_exceptions=True,
        )
        for backend, outcome in zip(gen.backends, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    "Unexpected failure collecting %s", backend.get_source_name(), exception=outcome
                )

        if gen.token != self._generation:
            logger.stale_discarded(gen.token, self._generation)
            return None

        ranked = self._ranker.rank(gen.merged(), query)
        elapsed = time.monotonic() - gen.started
        gen.timing_ms["total"] = round(elapsed * 1000, 1)
        response = SearchResponse(
            results=ranked,
            errors=gen.errors,
            loading=False,
            meta=self._meta(query, gen.domains, gen.timing_ms, gen.token),
        )
        self._publish(response)
        logger.search_published(gen.token, len(ranked), len(gen.errors), elapsed)
        return response

    async def _execute_one(self, gen: _Generation, backend: SearchBackend) -> None:
        """Run one domain and buffer its results if the round is still current."""
        domain = backend.get_source_name()
        t0 = time.monotonic()
        try:
            results = await backend.search(
                self._store,
                gen.query,
                gen.filters,
                gen.date_lower_bound,
                gen.actor,
                gen.now,
            )
            error = None
        except Exception as e:
            results = []
            error = f"{domain}: {e!s}"
        elapsed = time.monotonic() - t0

        if gen.token != self._generation:
            logger.stale_discarded(gen.token, self._generation, domain)
            return

        gen.timing_ms[domain] = round(elapsed * 1000, 1)
        if error is not None:
            gen.errors.append(error)
            logger.domain_failed(gen.token, domain, error)
        else:
            logger.domain_completed(gen.token, domain, len(results), elapsed)
        gen.buffer[domain] = results

    # -- output --------------------------------------------------------------

    def _meta(
        self,
        query: str,
        domains: list[str],
        timing_ms: dict[str, float],
        generation: int,
    ) -> dict[str, Any]:
        return {
            "query": query,
            "generation": generation,
            "domains_queried": domains,
            "total_results": 0,
            "timing_ms": dict(timing_ms),
        }

    def _publish(self, response: SearchResponse) -> None:
        response.meta["total_results"] = len(response.results)
        self._response = response
        for listener in list(self._listeners):
            try:
                listener(response)
            except Exception as e:
                logger.error("Search listener failed", exception=e)
