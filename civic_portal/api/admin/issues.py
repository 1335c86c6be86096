"""관리자 이슈 라우터 — 이슈 관리 테이블 API.

Admin Issue Router — issue management table endpoints.
Listing, staff assignment, rejection and status updates. All endpoints
require the admin role.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from civic_portal.api.deps import ListParams, get_controller, get_list_params, require_admin
from civic_portal.models.issue import CurrentUser
from civic_portal.schemas.issue import (
    AssignStaffRequest,
    IssueListResponse,
    MessageResponse,
    RejectIssueRequest,
    StatusUpdateRequest,
)
from civic_portal.services.assignment_service import assignment_service
from civic_portal.services.issue_query_service import issue_query_service
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.services.status_update_service import status_update_service
from civic_portal.utils.pagination import IssueSummary

router: APIRouter = APIRouter()


@router.get("", response_model=IssueListResponse)
async def list_issues(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    params: Annotated[ListParams, Depends(get_list_params)],
) -> IssueListResponse:
    """전체 이슈 목록 — 부스트 이슈 우선."""
    page = await issue_query_service.list_all(
        controller, params.filters, params.sort, params.page, params.per_page
    )
    return IssueListResponse.from_page(page)


@router.get("/categories")
async def list_categories(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> list[str]:
    return await issue_query_service.categories(controller)


@router.get("/summary", response_model=IssueSummary)
async def get_summary(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> IssueSummary:
    """전체 이슈 상태별 개수 (Per-status counts over every issue)."""
    return await issue_query_service.status_summary(controller)


@router.post("/refresh", response_model=MessageResponse)
async def refresh_issues(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> dict:
    """원격 저장소와 즉시 동기화 (Reconcile with the remote store now)."""
    await controller.refresh()
    return {"message": "이슈 목록을 동기화했습니다 (Issues refreshed)"}


@router.get("/{issue_id}")
async def get_issue(
    issue_id: str,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> dict:
    issue = await issue_query_service.get_issue(controller, issue_id)
    return issue.to_wire()


@router.post("/{issue_id}/assign")
async def assign_staff(
    issue_id: str,
    data: AssignStaffRequest,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> dict:
    """Pending 이슈에 직원 배정 — In-Progress로 전이."""
    issue = await assignment_service.assign_staff(
        controller, issue_id, data.staff_id, current_user, data.note
    )
    return issue.to_wire()


@router.post("/{issue_id}/reject")
async def reject_issue(
    issue_id: str,
    data: RejectIssueRequest,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> dict:
    """Pending, 미배정 이슈 반려 — 되돌릴 수 없음."""
    issue = await assignment_service.reject_issue(controller, issue_id, current_user, data.note)
    return issue.to_wire()


@router.patch("/{issue_id}/status")
async def update_issue_status(
    issue_id: str,
    data: StatusUpdateRequest,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> dict:
    issue = await status_update_service.update_status(
        controller, issue_id, data.status, current_user, data.note
    )
    return issue.to_wire()
