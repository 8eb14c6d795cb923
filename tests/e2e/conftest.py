from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from src.contracts.search_v1 import ActorContext
from src.core.bootstrap import build_search_orchestrator
from src.core.config import config
from src.orchestrators.search.orchestrator import SearchOrchestrator
from src.orchestrators.search.store import PostgrestRecordStore
from src.services.local_storage import MemoryStorage


@pytest_asyncio.fixture
async def live_store() -> AsyncIterator[PostgrestRecordStore]:
    """Real store client for e2e/integration suites only."""
    if config.validate():
        pytest.skip("record store is not configured: " + "; ".join(config.validate()))
    store = PostgrestRecordStore()
    try:
        yield store
    finally:
        await store.aclose()


@pytest_asyncio.fixture
async def orchestrator(live_store: PostgrestRecordStore) -> AsyncIterator[SearchOrchestrator]:
    instance = build_search_orchestrator(
        actor=ActorContext.anonymous(),
        store=live_store,
        storage=MemoryStorage(),
    )
    try:
        yield instance
    finally:
        await instance.aclose()
