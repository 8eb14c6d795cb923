from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from src.contracts.search_v1 import (
    ActorContext,
    EntityType,
    FilterOperator,
    FilterSelection,
)
from src.orchestrators.search.backends import (
    IssueSearchBackend,
    NewsSearchBackend,
    PollSearchBackend,
    UserDirectorySearchBackend,
    default_backends,
)
from src.orchestrators.search.backends.news import summarize_body
from src.orchestrators.search.store import StoreQueryError

CITIZEN = ActorContext(actor_id="c1")
OFFICIAL = ActorContext(actor_id="g1", is_privileged=True)


def _issue(i: int, **overrides) -> dict:
    row = {
        "id": f"issue-{i}",
        "title": f"Pothole {i}",
        "description": "Deep pothole near the market",
        "location": "MG Road",
        "created_at": (datetime(2024, 3, 1, tzinfo=UTC) + timedelta(hours=i)).isoformat(),
        "status": "submitted",
        "category": "infrastructure",
        "is_public": True,
        "users": {"user_metadata": {"full_name": "Asha"}},
    }
    row.update(overrides)
    return row


class TestApplicability:
    @pytest.mark.parametrize(
        ("entity_type", "expected"),
        [
            ("all", ["issue", "news", "poll"]),
            ("issue", ["issue"]),
            ("news", ["news"]),
            ("poll", ["poll"]),
            ("user", []),
        ],
    )
    def test_citizen(self, entity_type, expected):
        filters = FilterSelection(entity_type=entity_type)
        names = [b.get_source_name() for b in default_backends() if b.is_applicable(filters, CITIZEN)]
        assert names == expected

    @pytest.mark.parametrize(
        ("entity_type", "expected"),
        [
            ("all", ["issue", "news", "poll", "user"]),
            ("user", ["user"]),
            ("poll", ["poll"]),
        ],
    )
    def test_privileged(self, entity_type, expected):
        filters = FilterSelection(entity_type=entity_type)
        names = [b.get_source_name() for b in default_backends() if b.is_applicable(filters, OFFICIAL)]
        assert names == expected


class TestIssueQuery:
    def test_default_filters(self):
        spec = IssueSearchBackend().build_query("road", FilterSelection(), None, CITIZEN)
        assert spec.table == "issues"
        assert spec.search_columns == ("title", "description", "location")
        assert spec.search_term == "road"
        assert spec.order_by == "created_at" and spec.descending is True
        assert spec.limit == 10
        assert [(c.field, c.operator, c.value) for c in spec.filters] == [
            ("is_public", FilterOperator.EQ, True)
        ]

    def test_all_optional_filters(self, now):
        filters = FilterSelection(
            entity_type="issue", category="sanitation", status="in_progress", location="Pune"
        )
        spec = IssueSearchBackend().build_query("drain", filters, now, CITIZEN)
        assert spec.filter_for("category").value == "sanitation"
        assert spec.filter_for("status").value == "in_progress"
        assert spec.filter_for("created_at", FilterOperator.GTE).value == now
        assert spec.filter_for("location", FilterOperator.ILIKE).value == "Pune"

    def test_sentinels_add_no_clauses(self):
        filters = FilterSelection(category="all", status="all", location="")
        spec = IssueSearchBackend().build_query("drain", filters, None, CITIZEN)
        assert spec.filter_for("category") is None
        assert spec.filter_for("status") is None
        assert spec.filter_for("location") is None

    def test_query_spec_is_immutable(self):
        spec = IssueSearchBackend().build_query("road", FilterSelection(), None, CITIZEN)
        with pytest.raises(ValidationError):
            spec.limit = 50

    def test_normalize_attaches_reporter(self, now):
        result = IssueSearchBackend().normalize(_issue(1), now)
        assert result.entity_type == EntityType.ISSUE
        assert result.attributed_name == "Asha"
        assert result.status == "submitted"
        assert result.category == "infrastructure"

    @pytest.mark.parametrize("users", [None, {}, {"user_metadata": None}, {"user_metadata": {"full_name": ""}}])
    def test_missing_reporter_is_anonymous(self, now, users):
        result = IssueSearchBackend().normalize(_issue(1, users=users), now)
        assert result.attributed_name == "Anonymous"


class TestNewsQuery:
    def test_query_shape(self, now):
        spec = NewsSearchBackend().build_query("water", FilterSelection(), now, CITIZEN)
        assert spec.table == "news"
        assert spec.search_columns == ("title", "content")
        assert spec.limit == 5
        assert spec.filter_for("created_at", FilterOperator.GTE).value == now

    def test_category_filters_never_reach_news(self):
        filters = FilterSelection(category="sanitation", status="resolved", location="Pune")
        spec = NewsSearchBackend().build_query("water", filters, None, CITIZEN)
        assert spec.filters == ()

    def test_description_always_gets_ellipsis(self):
        assert summarize_body("Short body") == "Short body..."
        assert summarize_body("x" * 250) == "x" * 100 + "..."
        assert summarize_body(None) is None


class TestPollQuery:
    def test_query_shape(self, now):
        spec = PollSearchBackend().build_query("park", FilterSelection(), None, CITIZEN)
        assert spec.table == "polls"
        assert spec.search_columns == ("question", "description")
        assert spec.limit == 5
        assert spec.filters == ()

    def test_question_becomes_title(self, now):
        result = PollSearchBackend().normalize(
            {"id": 3, "question": "New park?", "description": "Vote", "created_at": "2024-03-01T00:00:00Z"},
            now,
        )
        assert result.title == "New park?"
        assert result.id == "3"


class TestUserDirectoryQuery:
    def test_no_date_or_category_filters(self, now):
        filters = FilterSelection(category="sanitation", date_range="week", location="Pune")
        spec = UserDirectorySearchBackend().build_query("asha", filters, now, OFFICIAL)
        assert spec.table == "users"
        assert spec.search_columns == ("user_metadata->>full_name",)
        assert spec.filters == ()
        assert spec.limit == 5

    def test_created_at_is_query_instant(self, now):
        result = UserDirectorySearchBackend().normalize(
            {"id": "u1", "email": "asha@example.org", "user_metadata": {"full_name": "Asha Rao"}},
            now,
        )
        assert result.created_at == now
        assert result.title == "Asha Rao"
        assert result.description == "asha@example.org"

    def test_title_falls_back_to_email(self, now):
        result = UserDirectorySearchBackend().normalize(
            {"id": "u2", "email": "x@example.org", "user_metadata": {}}, now
        )
        assert result.title == "x@example.org"


class TestBackendSearch:
    @pytest.mark.asyncio
    async def test_caps_issue_results(self, store_factory, now):
        store = store_factory({"issues": [_issue(i, title=f"Road damage {i}") for i in range(30)]})
        results = await IssueSearchBackend().search(store, "road", FilterSelection(), None, CITIZEN, now)
        assert len(results) == 10
        # newest first
        assert results[0].title == "Road damage 29"

    @pytest.mark.asyncio
    async def test_private_issues_are_excluded(self, store_factory, now):
        store = store_factory({"issues": [_issue(1, is_public=False), _issue(2)]})
        results = await IssueSearchBackend().search(store, "pothole", FilterSelection(), None, CITIZEN, now)
        assert [r.id for r in results] == ["issue-2"]

    @pytest.mark.asyncio
    async def test_no_rows_is_empty_not_error(self, store_factory, now):
        results = await NewsSearchBackend().search(store_factory(), "water", FilterSelection(), None, CITIZEN, now)
        assert results == []

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self, now):
        class RawStore:
            async def fetch(self, spec, actor=None):
                return [
                    {"id": None, "question": "park?", "created_at": "2024-03-01T00:00:00Z"},
                    {"id": "p2", "question": "park again?", "created_at": "not a date"},
                    "not a row",
                    {"id": "p3", "question": "park third?", "created_at": "2024-03-02T00:00:00Z"},
                ]

        results = await PollSearchBackend().search(RawStore(), "park", FilterSelection(), None, CITIZEN, now)
        assert [r.id for r in results] == ["p3"]

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self, store_factory, now):
        store = store_factory()
        store.failures["news"] = StoreQueryError("news: HTTP 500")
        with pytest.raises(StoreQueryError):
            await NewsSearchBackend().search(store, "water", FilterSelection(), None, CITIZEN, now)
