"""관리자 직원 라우터 — 배정 대상 직원 목록.

Admin Staff Router — staff identities offered by the assignment picker.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from civic_portal.api.deps import get_controller, require_admin
from civic_portal.models.issue import CurrentUser
from civic_portal.services.issue_query_service import issue_query_service
from civic_portal.services.optimistic_mutation import OptimisticMutationController

router: APIRouter = APIRouter()


@router.get("")
async def list_staff(
    controller: Annotated[OptimisticMutationController, Depends(get_controller)],
    current_user: Annotated[CurrentUser, Depends(require_admin)],
) -> list[dict]:
    staff_members = await issue_query_service.list_staff(controller)
    return [s.model_dump(by_alias=True) for s in staff_members]
