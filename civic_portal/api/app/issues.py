"""공개 이슈 라우터 — 전체 이슈 열람 및 추천.

Public Issue Router — browse all issues and upvote.
Listing and detail are anonymous; upvoting requires a signed-in citizen.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from civic_portal.api.deps import ListParams, get_controller, get_current_user, get_list_params
from civic_portal.models.issue import CurrentUser
from civic_portal.schemas.issue import IssueListResponse
from civic_portal.services.citizen_issue_service import citizen_issue_service
from civic_portal.services.issue_query_service import issue_query_service
from civic_portal.services.optimistic_mutation import OptimisticMutationController

router: APIRouter = APIRouter()


@router.get("", response_model=IssueListResponse)
async def list_issues(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    params: Annotated[ListParams, Depends(get_list_params)],
) -> IssueListResponse:
    """전체 이슈 목록 — 부스트 이슈 우선 (Boosted issues first)."""
    page = await issue_query_service.list_all(
        controller, params.filters, params.sort, params.page, params.per_page
    )
    return IssueListResponse.from_page(page)


@router.get("/categories")
async def list_categories(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
) -> list[str]:
    return await issue_query_service.categories(controller)


@router.get("/{issue_id}")
async def get_issue(
    issue_id: str,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
) -> dict:
    issue = await issue_query_service.get_issue(controller, issue_id)
    return issue.to_wire()


@router.post("/{issue_id}/upvote")
async def upvote_issue(
    issue_id: str,
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> dict:
    """이슈 추천 — 사용자당 한 번 (One upvote per user)."""
    issue = await citizen_issue_service.upvote_issue(controller, issue_id, current_user)
    return issue.to_wire()
