"""Civic Search Contract v1.

Defines the canonical types for:
  - Filter selection driven by the search UI (FilterSelection)
  - Identity inputs that gate domains (ActorContext)
  - Immutable per-domain store requests (QuerySpec, FilterClause)
  - The normalized result every domain produces (SearchResult)
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.config import config

ALL = "all"

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------


class EntityType(StrEnum):
    ALL = "all"
    ISSUE = "issue"
    NEWS = "news"
    POLL = "poll"
    USER = "user"


class DateRange(StrEnum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


class IssueCategory(StrEnum):
    """Categories offered by the filter UI. FilterSelection accepts any string."""

    INFRASTRUCTURE = "infrastructure"
    SANITATION = "sanitation"
    TRANSPORTATION = "transportation"
    SAFETY = "safety"
    ENVIRONMENT = "environment"
    UTILITIES = "utilities"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    OTHER = "other"


class IssueStatus(StrEnum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


class ActorRole(StrEnum):
    CITIZEN = "citizen"
    GOVERNMENT = "government"
    JOURNALIST = "journalist"


# ---------------------------------------------------------------------------
# Filter selection
# ---------------------------------------------------------------------------


class FilterSelection(BaseModel):
    """Structured filters currently selected in the search UI.

    Mutated in place by the filter UI; the orchestrator snapshots it at trigger time.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    entity_type: EntityType = Field(default=EntityType.ALL)
    category: str = Field(default=ALL, description="Issue category or 'all'")
    status: str = Field(default=ALL, description="Issue status or 'all'")
    date_range: DateRange = Field(default=DateRange.ALL)
    location: str = Field(default="", description="Free-text location substring; empty = no filter")

    @field_validator("category", "status")
    @classmethod
    def _blank_means_all(cls, v: str) -> str:
        v = (v or "").strip()
        return v or ALL

    def issue_filters_apply(self) -> bool:
        """Category and status only mean something for issue searches."""
        return self.entity_type in (EntityType.ALL, EntityType.ISSUE)

    def effective_category(self) -> str | None:
        if not self.issue_filters_apply() or self.category == ALL:
            return None
        return self.category

    def effective_status(self) -> str | None:
        if not self.issue_filters_apply() or self.status == ALL:
            return None
        return self.status

    def effective_location(self) -> str | None:
        loc = self.location.strip()
        return loc or None

    def includes(self, entity_type: EntityType) -> bool:
        return self.entity_type in (EntityType.ALL, entity_type)


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class ActorContext(BaseModel):
    """Current actor as seen by the search subsystem."""

    model_config = ConfigDict(frozen=True)

    actor_id: str | None = None
    is_privileged: bool = False
    access_token: str | None = Field(
        default=None, description="Session token forwarded to the store for row-level access"
    )

    @classmethod
    def anonymous(cls) -> ActorContext:
        return cls()

    @classmethod
    def from_user_metadata(
        cls,
        actor_id: str | None,
        user_metadata: dict[str, Any] | None,
        privileged_role: str | None = None,
        access_token: str | None = None,
    ) -> ActorContext:
        """Privileged when ``user_metadata.role`` equals ``privileged_role``
        (default ``config.privileged_role``), case-insensitively."""
        privileged_role = privileged_role or config.privileged_role
        role = str((user_metadata or {}).get("role") or "").strip().lower()
        return cls(
            actor_id=actor_id,
            is_privileged=bool(role) and role == str(privileged_role).lower(),
            access_token=access_token,
        )


# ---------------------------------------------------------------------------
# Store requests
# ---------------------------------------------------------------------------


class FilterOperator(StrEnum):
    EQ = "eq"
    ILIKE = "ilike"  # case-insensitive substring
    GTE = "gte"


class FilterClause(BaseModel):
    """One AND-ed constraint on a store request."""

    model_config = ConfigDict(frozen=True)

    field: str
    operator: FilterOperator
    value: Any


class QuerySpec(BaseModel):
    """Immutable description of one bounded request against one table.

    Rows match when any of ``search_columns`` contains ``search_term``
    (case-insensitive) and every clause in ``filters`` holds.
    """

    model_config = ConfigDict(frozen=True)

    table: str
    select: str = "*"
    search_term: str
    search_columns: tuple[str, ...]
    filters: tuple[FilterClause, ...] = ()
    order_by: str | None = None
    descending: bool = True
    limit: int = Field(ge=1)

    @field_validator("search_columns")
    @classmethod
    def _at_least_one_column(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        if not v:
            raise ValueError("search_columns must name at least one column")
        return v

    def filter_for(self, field: str, operator: FilterOperator | None = None) -> FilterClause | None:
        for clause in self.filters:
            if clause.field == field and (operator is None or clause.operator == operator):
                return clause
        return None


# ---------------------------------------------------------------------------
# Normalized result
# ---------------------------------------------------------------------------


class SearchResult(BaseModel):
    """Normalized result shared by every domain. ``id`` is unique per entity_type only."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str | None = None
    entity_type: EntityType
    location: str | None = None
    created_at: datetime
    status: str | None = None
    category: str | None = None
    attributed_name: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            raise ValueError("id is required")
        return str(v)

    @field_validator("entity_type")
    @classmethod
    def _concrete_entity_type(cls, v: EntityType) -> EntityType:
        if v == EntityType.ALL:
            raise ValueError("entity_type must name a concrete domain")
        return v

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, v: Any) -> Any:
        if isinstance(v, str):
            # PostgREST emits a trailing Z on some columns
            v = datetime.fromisoformat(v.replace("Z", "+00:00"))
        return v

    @field_validator("created_at")
    @classmethod
    def _aware_created_at(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def display_key(self) -> tuple[str, str]:
        return (self.entity_type.value, self.id)
