"""페이지네이션 유틸리티 모듈 — 필터/정렬/페이지 파이프라인.

Filter–sort–paginate pipeline for cached issue collections.
Every issue listing (admin table, staff assigned issues, citizen
"my issues", public list) goes through ``paginate`` so the rules below
live in exactly one place.

Rules:
    1. 부스트 우선 — 입력을 부스트/일반으로 먼저 분할하고, 각각 필터·정렬 후
       [부스트..., 일반...] 순서로 연결합니다. 정렬 필드와 무관하게 유지됩니다.
       (Boost-first: partition before filtering, filter and sort each part
       with the same predicate/comparator, concatenate boosted first.)
    2. 필터는 모두 AND 조건 (Filters are conjunctive).
    3. 날짜 필드는 시각으로, priority는 순위표로, 나머지는 원시 값으로 비교.
       동일 값은 입력 순서 유지 (stable).
    4. 오프셋 기반, 1부터 시작하는 페이지. 범위를 넘은 페이지는 빈 목록.
"""

import math
from collections.abc import Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Literal

from pydantic import BaseModel

from civic_portal.models.issue import IssuePriority, IssueRecord, IssueStatus
from civic_portal.utils.exceptions import BadRequestError

# 우선순위 순위표 — 오름차순에서 낮은 순위가 먼저 (Lower rank sorts first ascending)
PRIORITY_RANK: dict[IssuePriority, int] = {
    IssuePriority.HIGH: 2,
    IssuePriority.NORMAL: 5,
}
_UNKNOWN_PRIORITY_RANK: int = 999

# 정렬 가능 필드 — 원격 표기와 파이썬 이름 모두 허용 (Wire or attribute names)
SORT_FIELDS: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "resolvedAt": "resolved_at",
    "priority": "priority",
    "status": "status",
    "title": "title",
    "category": "category",
    "location": "location",
    "upVotes": "up_votes",
}
_DATE_FIELDS: frozenset[str] = frozenset({"created_at", "updated_at", "resolved_at"})
_EPOCH: datetime = datetime(1970, 1, 1, tzinfo=timezone.utc)

_ALL: str = "all"


class IssueFilters(BaseModel):
    """목록 필터 — None 또는 "all"이면 비활성 (None or "all" disables a filter).

    Attributes:
        search: 제목/설명/ID 부분 일치, 대소문자 무시 (Case-insensitive substring)
        status: 상태 정확 일치 (Exact status match)
        priority: 우선순위 정확 일치 (Exact priority match)
        category: 카테고리 정확 일치 (Exact category match)
    """

    search: str | None = None
    status: str | None = None
    priority: str | None = None
    category: str | None = None


class IssueSort(BaseModel):
    """정렬 조건 (Sort field and direction)."""

    field: str = "createdAt"
    order: Literal["asc", "desc"] = "desc"


class IssuePage(BaseModel):
    """페이지네이션 결과 모델.

    Pagination result model for typed responses.

    Attributes:
        items: 현재 페이지 항목 목록 (Items for the current page)
        total: 필터 후 전체 항목 수 (Filtered total across all pages)
        page: 현재 페이지 번호 — 1부터 시작 (Current page, 1-indexed)
        per_page: 페이지당 항목 수 (Items per page)
        pages: 전체 페이지 수 (Total pages, ceil(total/per_page))
    """

    items: list[IssueRecord]
    total: int
    page: int
    per_page: int
    pages: int


def _is_active(value: str | None) -> bool:
    return value is not None and value.strip() != "" and value.strip().lower() != _ALL


def _build_predicate(filters: IssueFilters) -> Callable[[IssueRecord], bool]:
    """필터 조건을 하나의 술어로 합칩니다 (Fold active filters into one predicate)."""
    search: str | None = filters.search.strip().lower() if _is_active(filters.search) else None

    status: IssueStatus | None = None
    if _is_active(filters.status):
        try:
            status = IssueStatus(filters.status.strip())
        except ValueError:
            raise BadRequestError(f"Unknown status filter: {filters.status}")

    priority: IssuePriority | None = None
    if _is_active(filters.priority):
        try:
            priority = IssuePriority(filters.priority.strip())
        except ValueError:
            raise BadRequestError(f"Unknown priority filter: {filters.priority}")

    category: str | None = filters.category if _is_active(filters.category) else None

    def _matches(issue: IssueRecord) -> bool:
        if search is not None and not (
            search in issue.title.lower()
            or search in issue.description.lower()
            or search in issue.id.lower()
        ):
            return False
        if status is not None and issue.status != status:
            return False
        if priority is not None and issue.priority != priority:
            return False
        if category is not None and issue.category != category:
            return False
        return True

    return _matches


def _sort_key(field: str) -> Callable[[IssueRecord], Any]:
    """정렬 필드에 맞는 비교 키 함수 (Comparison key for the resolved field)."""
    if field == "priority":
        return lambda issue: PRIORITY_RANK.get(issue.priority, _UNKNOWN_PRIORITY_RANK)

    if field in _DATE_FIELDS:
        def _instant(issue: IssueRecord) -> datetime:
            value: datetime | None = getattr(issue, field)
            if value is None:
                return _EPOCH
            # naive 시각은 UTC로 간주 (Treat naive timestamps as UTC)
            return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)

        return _instant

    def _raw(issue: IssueRecord) -> Any:
        value = getattr(issue, field)
        if isinstance(value, Enum):
            return value.value
        return "" if value is None else value

    return _raw


def resolve_sort_field(field: str) -> str:
    """원격 표기 또는 속성 이름을 속성 이름으로 변환합니다.

    Raises:
        BadRequestError: 지원하지 않는 정렬 필드 (Unsupported sort field)
    """
    if field in SORT_FIELDS:
        return SORT_FIELDS[field]
    if field in SORT_FIELDS.values():
        return field
    raise BadRequestError(f"Unsupported sort field: {field}")


def paginate(
    issues: Sequence[IssueRecord],
    filters: IssueFilters | None = None,
    sort: IssueSort | None = None,
    page: int = 1,
    per_page: int = 10,
) -> IssuePage:
    """이슈 목록에 필터, 정렬, 페이지네이션을 적용합니다.

    Filter, sort and paginate an issue collection with boosted issues
    grouped ahead of normal ones. Pure: the input sequence and its records
    are never modified, so identical arguments give identical pages.

    Args:
        issues: 원본 이슈 목록 (Raw issue collection, in cache order)
        filters: 필터 조건 (Filter parameters, default: none active)
        sort: 정렬 조건 (Sort parameters, default: createdAt desc)
        page: 요청 페이지 번호, 1부터 시작 (Page number, 1-indexed)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        IssuePage: 현재 페이지 항목과 필터 후 전체 개수
            (Items of the requested page and the filtered total)

    Raises:
        BadRequestError: page/per_page가 1 미만이거나 필터·정렬 값이 잘못됨
            (page or per_page below 1, or invalid filter/sort values)
    """
    if page < 1:
        raise BadRequestError("page must be 1 or greater")
    if per_page < 1:
        raise BadRequestError("per_page must be 1 or greater")

    filters = filters or IssueFilters()
    sort = sort or IssueSort()

    matches = _build_predicate(filters)
    key = _sort_key(resolve_sort_field(sort.field))
    descending: bool = sort.order == "desc"

    # 부스트 우선 분할 — 필터 전에 분할 (Partition before filtering)
    boosted: list[IssueRecord] = [i for i in issues if i.is_boosted]
    normal: list[IssueRecord] = [i for i in issues if not i.is_boosted]

    # sorted()는 안정 정렬이며 reverse=True도 동일 값의 입력 순서를 유지
    ordered: list[IssueRecord] = [
        *sorted(filter(matches, boosted), key=key, reverse=descending),
        *sorted(filter(matches, normal), key=key, reverse=descending),
    ]

    total: int = len(ordered)
    start_index: int = (page - 1) * per_page
    return IssuePage(
        items=ordered[start_index:start_index + per_page],
        total=total,
        page=page,
        per_page=per_page,
        pages=math.ceil(total / per_page),
    )


def available_categories(issues: Sequence[IssueRecord]) -> list[str]:
    """중복 없는 카테고리 목록 — 처음 등장 순서 (Distinct non-empty categories)."""
    seen: dict[str, None] = {}
    for issue in issues:
        if issue.category:
            seen.setdefault(issue.category, None)
    return list(seen)


class IssueSummary(BaseModel):
    """상태별 이슈 개수 — 대시보드 요약 카드용.

    Per-status counters over one slice of the cache, as shown on the
    admin, staff and citizen dashboards.
    """

    total: int = 0
    pending: int = 0
    in_progress: int = 0
    working: int = 0
    resolved: int = 0
    closed: int = 0
    rejected: int = 0
    boosted: int = 0


_SUMMARY_FIELDS: dict[IssueStatus, str] = {
    IssueStatus.PENDING: "pending",
    IssueStatus.IN_PROGRESS: "in_progress",
    IssueStatus.WORKING: "working",
    IssueStatus.RESOLVED: "resolved",
    IssueStatus.CLOSED: "closed",
    IssueStatus.REJECTED: "rejected",
}


def summarize(issues: Sequence[IssueRecord]) -> IssueSummary:
    """이슈 목록의 상태별 개수를 셉니다 (Count issues per status, plus boosted)."""
    counts: dict[str, int] = dict.fromkeys(_SUMMARY_FIELDS.values(), 0)
    boosted: int = 0
    for issue in issues:
        counts[_SUMMARY_FIELDS[issue.status]] += 1
        if issue.is_boosted:
            boosted += 1
    return IssueSummary(total=len(issues), boosted=boosted, **counts)
