"""Shared typed constants for search orchestration."""

from src.contracts.search_v1 import EntityType

# Per-domain result caps, applied by each backend's store request.
DOMAIN_RESULT_CAPS: dict[EntityType, int] = {
    EntityType.ISSUE: 10,
    EntityType.NEWS: 5,
    EntityType.POLL: 5,
    EntityType.USER: 5,
}

# Merge order before ranking; ties keep this order.
DOMAIN_ORDER: tuple[EntityType, ...] = (
    EntityType.ISSUE,
    EntityType.NEWS,
    EntityType.POLL,
    EntityType.USER,
)

NEWS_DESCRIPTION_LENGTH = 100
NEWS_DESCRIPTION_SUFFIX = "..."
ANONYMOUS_REPORTER = "Anonymous"
