"""Search subsystem wiring at startup: store client, recent-search cache, orchestrator."""

from src.contracts.search_v1 import ActorContext
from src.core.config import config
from src.core.logger import logger
from src.orchestrators.search.backends import default_backends
from src.orchestrators.search.orchestrator import SearchOrchestrator
from src.orchestrators.search.store import PostgrestRecordStore, RecordStore
from src.services.local_storage import JsonFileStorage, KeyValueStore
from src.services.recent_searches import RecentSearchCache


def build_search_orchestrator(
    actor: ActorContext | None = None,
    store: RecordStore | None = None,
    storage: KeyValueStore | None = None,
) -> SearchOrchestrator:
    """Create an orchestrator with the configured store and persisted history.

    Configuration problems are logged, not raised: every domain then fails
    individually and the search degrades to "no results".
    """
    if store is None:
        for problem in config.validate():
            logger.warning("Config: %s", problem)
        store = PostgrestRecordStore()
    recent = RecentSearchCache(storage or JsonFileStorage())
    orchestrator = SearchOrchestrator(
        store=store,
        backends=default_backends(),
        recent_searches=recent,
        actor=actor,
    )
    logger.info(
        "Search ready: domains=%s privileged=%s recent=%s",
        [b.get_source_name() for b in default_backends()],
        orchestrator.actor.is_privileged,
        len(orchestrator.recent_searches),
    )
    return orchestrator
