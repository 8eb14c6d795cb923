"""Recent-search cache: bounded most-recently-used list of submitted queries.

The list is read from storage once (``load``) and rewritten in full on every
``record``. Unreadable or malformed storage means "no history".
"""

import json
import logging

from src.core.config import config
from src.services.local_storage import KeyValueStore

logger = logging.getLogger(__name__)


class RecentSearchCache:
    def __init__(
        self,
        storage: KeyValueStore,
        key: str | None = None,
        limit: int | None = None,
    ):
        self._storage = storage
        self._key = key or config.recent_searches_key
        self._limit = max(1, limit if limit is not None else config.recent_searches_limit)
        self._entries: list[str] = []

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    def load(self) -> list[str]:
        """Read the persisted list; any failure yields an empty history."""
        try:
            raw = self._storage.get_item(self._key)
        except Exception as e:
            logger.warning("Recent searches unreadable: %s", e)
            raw = None
        self._entries = self._parse(raw)
        return self.entries

    def _parse(self, raw: str | None) -> list[str]:
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Recent searches malformed, ignoring stored value")
            return []
        if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
            logger.warning("Recent searches malformed, ignoring stored value")
            return []
        # Older writers may have left duplicates or a longer list
        return list(dict.fromkeys(data))[: self._limit]

    def record(self, query: str) -> list[str]:
        """Move ``query`` to the front, drop older copies, cap, persist."""
        if not query or not query.strip():
            return self.entries
        self._entries = [query, *(s for s in self._entries if s != query)][: self._limit]
        self._persist()
        return self.entries

    def clear(self) -> None:
        self._entries = []
        try:
            self._storage.remove_item(self._key)
        except Exception as e:
            logger.warning("Could not clear recent searches: %s", e)

    def _persist(self) -> None:
        try:
            self._storage.set_item(self._key, json.dumps(self._entries))
        except Exception as e:
            logger.warning("Could not persist recent searches: %s", e)
