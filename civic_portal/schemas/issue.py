"""이슈 Pydantic 스키마.

Issue request/response schemas.
Issue records themselves are returned in the remote store's JSON shape
(``IssueRecord.to_wire()``) so the portal frontend reads one format.
"""

from typing import Any

from pydantic import BaseModel, Field

from civic_portal.models.issue import IssueStatus
from civic_portal.utils.pagination import IssuePage


class AssignStaffRequest(BaseModel):
    staff_id: str = Field(min_length=1)  # 배정할 직원 ID (Staff identity id)
    note: str | None = None  # 타임라인 메모 (Timeline note override)


class RejectIssueRequest(BaseModel):
    note: str | None = None


class StatusUpdateRequest(BaseModel):
    status: IssueStatus  # 요청 상태 (Requested status, wire value e.g. "Working")
    note: str | None = None


class IssueEditRequest(BaseModel):
    """신고자 수정 요청 — Pending 상태에서만 허용 (Reporter edit, Pending only)."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = None
    location: str | None = None


class IssueListResponse(BaseModel):
    """페이지네이션 이슈 목록 응답 스키마.

    Attributes:
        items: 현재 페이지 이슈 (Issues of the page, remote JSON shape)
        total: 필터 후 전체 수 (Filtered total)
        page: 현재 페이지 — 1부터 시작 (Current page, 1-indexed)
        per_page: 페이지당 항목 수 (Items per page)
        pages: 전체 페이지 수 (Total pages)
    """

    items: list[dict[str, Any]]
    total: int
    page: int
    per_page: int
    pages: int

    @classmethod
    def from_page(cls, page: IssuePage) -> "IssueListResponse":
        return cls(
            items=[issue.to_wire() for issue in page.items],
            total=page.total,
            page=page.page,
            per_page=page.per_page,
            pages=page.pages,
        )


class NextStatusResponse(BaseModel):
    current: IssueStatus
    next: list[IssueStatus]


class MessageResponse(BaseModel):
    """범용 메시지 응답 스키마 (Generic confirmation message)."""

    message: str
