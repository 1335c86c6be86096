"""필터/정렬/페이지네이션 파이프라인 테스트.

Filter–sort–paginate pipeline tests — boost-first grouping, filters,
sort keys, and page slicing.
"""

import pytest

from civic_portal.utils.exceptions import BadRequestError
from civic_portal.utils.pagination import (
    IssueFilters,
    IssueSort,
    available_categories,
    paginate,
    resolve_sort_field,
    summarize,
)
from tests.conftest import make_issue


@pytest.fixture
def mixed_issues():
    """부스트 2건(High/Normal), 일반 3건(Normal/High/Normal) — 입력 순서 섞음."""
    return [
        make_issue("n1", priority="Normal", createdAt="2024-03-01T09:00:00Z"),
        make_issue("b-normal", priority="Normal", isBoosted=True, createdAt="2024-03-02T09:00:00Z"),
        make_issue("n-high", priority="High", createdAt="2024-03-03T09:00:00Z"),
        make_issue("b-high", priority="High", isBoosted=True, createdAt="2024-03-04T09:00:00Z"),
        make_issue("n2", priority="Normal", createdAt="2024-03-05T09:00:00Z"),
    ]


def _ids(page) -> list[str]:
    return [issue.id for issue in page.items]


class TestBoostFirst:
    """부스트 우선 규칙 테스트."""

    async def test_priority_ascending_groups_boosted_first(self, mixed_issues):
        """부스트 High/Normal, 일반 High/Normal/Normal 순서."""
        page = paginate(mixed_issues, sort=IssueSort(field="priority", order="asc"))
        assert _ids(page) == ["b-high", "b-normal", "n-high", "n1", "n2"]

    @pytest.mark.parametrize("field", ["createdAt", "updatedAt", "priority", "title", "status", "upVotes"])
    @pytest.mark.parametrize("order", ["asc", "desc"])
    async def test_boosted_never_after_normal(self, mixed_issues, field, order):
        page = paginate(mixed_issues, sort=IssueSort(field=field, order=order))
        flags = [issue.is_boosted for issue in page.items]
        assert flags == sorted(flags, reverse=True)

    async def test_boost_first_survives_filtering(self, mixed_issues):
        """필터 후에도 부스트 이슈가 먼저 (Filtering keeps boosted ahead)."""
        page = paginate(mixed_issues, IssueFilters(priority="Normal"), IssueSort(field="createdAt", order="asc"))
        assert _ids(page) == ["b-normal", "n1", "n2"]

    async def test_boost_first_spans_pages(self, mixed_issues):
        first = paginate(mixed_issues, sort=IssueSort(field="createdAt", order="asc"), per_page=2)
        second = paginate(mixed_issues, sort=IssueSort(field="createdAt", order="asc"), page=2, per_page=2)
        assert _ids(first) == ["b-normal", "b-high"]
        assert _ids(second) == ["n1", "n-high"]


class TestSorting:
    """정렬 키 테스트."""

    async def test_default_sort_is_created_at_desc(self, mixed_issues):
        page = paginate(mixed_issues)
        assert _ids(page) == ["b-high", "b-normal", "n2", "n-high", "n1"]

    async def test_ties_keep_input_order_in_both_directions(self):
        issues = [make_issue(f"t{i}", priority="Normal") for i in range(4)]
        asc = paginate(issues, sort=IssueSort(field="priority", order="asc"))
        desc = paginate(issues, sort=IssueSort(field="priority", order="desc"))
        assert _ids(asc) == ["t0", "t1", "t2", "t3"]
        assert _ids(desc) == ["t0", "t1", "t2", "t3"]

    async def test_missing_dates_sort_as_oldest(self):
        issues = [
            make_issue("resolved", resolvedAt="2024-03-10T00:00:00Z"),
            make_issue("open", resolvedAt=""),
        ]
        page = paginate(issues, sort=IssueSort(field="resolvedAt", order="asc"))
        assert _ids(page) == ["open", "resolved"]

    async def test_naive_and_aware_dates_compare(self):
        issues = [
            make_issue("naive", createdAt="2024-03-02T00:00:00"),
            make_issue("aware", createdAt="2024-03-01T00:00:00+00:00"),
        ]
        page = paginate(issues, sort=IssueSort(field="createdAt", order="asc"))
        assert _ids(page) == ["aware", "naive"]

    async def test_unknown_sort_field_rejected(self, mixed_issues):
        with pytest.raises(BadRequestError):
            paginate(mixed_issues, sort=IssueSort(field="reporter"))

    async def test_attribute_names_accepted(self):
        assert resolve_sort_field("updated_at") == "updated_at"
        assert resolve_sort_field("upVotes") == "up_votes"


class TestFilters:
    """필터 테스트 — 모든 조건은 AND."""

    async def test_search_matches_title_description_and_id(self):
        issues = [
            make_issue("abc123", title="Broken streetlight"),
            make_issue("def456", description="Garbage piling near the STREET corner"),
            make_issue("ghi789", title="Water leak"),
        ]
        assert _ids(paginate(issues, IssueFilters(search="street"))) == ["abc123", "def456"]
        assert _ids(paginate(issues, IssueFilters(search="GHI7"))) == ["ghi789"]

    async def test_all_means_inactive(self, seed_issues):
        page = paginate(seed_issues, IssueFilters(status="all", priority="all", category="all"))
        assert page.total == len(seed_issues)

    async def test_filters_are_conjunctive(self):
        issues = [
            make_issue("a", status="Working", category="Road"),
            make_issue("b", status="Working", category="Water"),
            make_issue("c", status="Pending", category="Road"),
        ]
        page = paginate(issues, IssueFilters(status="Working", category="Road"))
        assert _ids(page) == ["a"]

    async def test_status_filter_accepts_spelling_variants(self, seed_issues):
        page = paginate(seed_issues, IssueFilters(status="in progress"))
        assert _ids(page) == ["i-progress"]

    async def test_unknown_status_filter_rejected(self, seed_issues):
        with pytest.raises(BadRequestError):
            paginate(seed_issues, IssueFilters(status="Archived"))

    async def test_available_categories_distinct_in_order(self):
        issues = [
            make_issue("a", category="Water"),
            make_issue("b", category="Road"),
            make_issue("c", category="Water"),
            make_issue("d", category=""),
        ]
        assert available_categories(issues) == ["Water", "Road"]


class TestPagination:
    """페이지 분할 테스트."""

    async def test_page_beyond_last_is_empty(self, mixed_issues):
        page = paginate(mixed_issues, page=4, per_page=2)
        assert page.items == []
        assert page.total == 5
        assert page.pages == 3

    async def test_empty_input(self):
        page = paginate([])
        assert page.items == []
        assert page.total == 0
        assert page.pages == 0

    @pytest.mark.parametrize("page_no, per_page", [(0, 10), (1, 0), (-1, 5)])
    async def test_invalid_page_arguments(self, mixed_issues, page_no, per_page):
        with pytest.raises(BadRequestError):
            paginate(mixed_issues, page=page_no, per_page=per_page)

    async def test_idempotent_and_input_untouched(self, mixed_issues):
        before = [issue.model_copy(deep=True) for issue in mixed_issues]
        filters = IssueFilters(search="issue")
        sort = IssueSort(field="priority", order="asc")

        first = paginate(mixed_issues, filters, sort, page=1, per_page=3)
        second = paginate(mixed_issues, filters, sort, page=1, per_page=3)

        assert first == second
        assert mixed_issues == before


class TestSummary:
    """상태별 개수 테스트."""

    async def test_one_of_each_status(self, seed_issues):
        summary = summarize(seed_issues)
        assert summary.total == 6
        assert (summary.pending, summary.in_progress, summary.working) == (1, 1, 1)
        assert (summary.resolved, summary.closed, summary.rejected) == (1, 1, 1)
        assert summary.boosted == 0

    async def test_boosted_counted_alongside_status(self):
        issues = [
            make_issue("a", isBoosted=True),
            make_issue("b", status="Resolved", isBoosted=True),
            make_issue("c", status="In Progress"),
        ]
        summary = summarize(issues)
        assert summary.total == 3
        assert summary.pending == 1
        assert summary.resolved == 1
        assert summary.in_progress == 1
        assert summary.boosted == 2

    async def test_empty_input(self):
        assert summarize([]).model_dump() == dict.fromkeys(
            ["total", "pending", "in_progress", "working", "resolved", "closed", "rejected", "boosted"], 0
        )
