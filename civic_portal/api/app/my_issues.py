"""시민 내 이슈 라우터 — 내가 신고한 이슈 관리.

Citizen My Issues Router — the reporter's own issues.
Editing and deletion are allowed only while the issue is Pending.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from civic_portal.api.deps import ListParams, get_controller, get_current_user, get_list_params
from civic_portal.models.issue import CurrentUser
from civic_portal.schemas.issue import IssueEditRequest, IssueListResponse, MessageResponse
from civic_portal.services.citizen_issue_service import citizen_issue_service
from civic_portal.services.issue_query_service import issue_query_service
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.utils.pagination import IssueSummary

router: APIRouter = APIRouter()


@router.get("", response_model=IssueListResponse)
async def list_my_issues(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    params: Annotated[ListParams, Depends(get_list_params)],
) -> IssueListResponse:
    page = await issue_query_service.list_reported(
        controller, current_user, params.filters, params.sort, params.page, params.per_page
    )
    return IssueListResponse.from_page(page)


@router.get("/summary", response_model=IssueSummary)
async def get_my_issues_summary(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> IssueSummary:
    return await issue_query_service.status_summary(controller, "reported", current_user)


@router.patch("/{issue_id}")
async def edit_my_issue(
    issue_id: str,
    data: IssueEditRequest,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict:
    """Pending 이슈 수정 (Edit own Pending issue)."""
    issue = await citizen_issue_service.edit_issue(
        controller, issue_id, data.model_dump(exclude_unset=True), current_user
    )
    return issue.to_wire()


@router.delete("/{issue_id}", response_model=MessageResponse)
async def delete_my_issue(
    issue_id: str,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict:
    """Pending 이슈 삭제 (Delete own Pending issue)."""
    await citizen_issue_service.delete_issue(controller, issue_id, current_user)
    return {"message": "이슈가 삭제되었습니다 (Issue deleted)"}
