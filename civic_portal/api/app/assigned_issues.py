"""직원 배정 이슈 라우터 — 내게 배정된 이슈 처리.

Staff Assigned Issue Router — issues assigned to the current staff member.
Staff move their own issues along the transition table; admins may use
the same endpoints for any issue.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from civic_portal.api.deps import ListParams, get_controller, get_list_params, require_staff_or_admin
from civic_portal.models.issue import CurrentUser
from civic_portal.schemas.issue import IssueListResponse, NextStatusResponse, StatusUpdateRequest
from civic_portal.services.issue_query_service import issue_query_service
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.services.status_update_service import status_update_service
from civic_portal.utils.pagination import IssueSummary

router: APIRouter = APIRouter()


@router.get("", response_model=IssueListResponse)
async def list_my_assigned_issues(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_staff_or_admin)],
    params: Annotated[ListParams, Depends(get_list_params)],
) -> IssueListResponse:
    """내게 배정된 이슈 목록 (My assigned issues, newest update first)."""
    page = await issue_query_service.list_assigned(
        controller, current_user, params.filters, params.sort, params.page, params.per_page
    )
    return IssueListResponse.from_page(page)


@router.get("/summary", response_model=IssueSummary)
async def get_my_assigned_summary(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_staff_or_admin)],
) -> IssueSummary:
    """내게 배정된 이슈 상태별 개수 (Per-status counts of my assigned issues)."""
    return await issue_query_service.status_summary(controller, "assigned", current_user)


@router.get("/{issue_id}/next-statuses", response_model=NextStatusResponse)
async def get_next_statuses(
    issue_id: str,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_staff_or_admin)],
) -> NextStatusResponse:
    issue = await issue_query_service.get_issue(controller, issue_id)
    return NextStatusResponse(
        current=issue.status,
        next=list(status_update_service.allowed_statuses(issue)),
    )


@router.patch("/{issue_id}/status")
async def update_my_issue_status(
    issue_id: str,
    data: StatusUpdateRequest,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_staff_or_admin)],
) -> dict:
    """배정된 이슈 상태 변경 (Advance an assigned issue's status)."""
    issue = await status_update_service.update_status(
        controller, issue_id, data.status, current_user, data.note
    )
    return issue.to_wire()
