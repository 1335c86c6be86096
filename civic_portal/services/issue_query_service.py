"""이슈 조회 서비스 — 모든 목록 화면의 얇은 호출자.

Issue Query Service — thin per-surface callers of the single
filter–sort–paginate pipeline. Each surface only decides which slice of
the cache it sees and its default sort; the rules live in ``paginate``.
"""

from typing import Literal

from civic_portal.models.issue import CurrentUser, IssueRecord, IssueStatus, StaffIdentity
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.services.status_update_service import status_update_service
from civic_portal.utils.exceptions import NotFoundError
from civic_portal.utils.pagination import (
    IssueFilters,
    IssuePage,
    IssueSort,
    IssueSummary,
    available_categories,
    paginate,
    summarize,
)

SummaryScope = Literal["all", "assigned", "reported"]


class IssueQueryService:

    async def list_all(
        self,
        controller: OptimisticMutationController,
        filters: IssueFilters | None = None,
        sort: IssueSort | None = None,
        page: int = 1,
        per_page: int = 10,
    ) -> IssuePage:
        """전체 이슈 목록 — 관리자 테이블 및 공개 목록 (Admin table and public list)."""
        await controller.ensure_loaded()
        return paginate(controller.cache.all(), filters, sort, page, per_page)

    async def list_assigned(
        self,
        controller: OptimisticMutationController,
        actor: CurrentUser,
        filters: IssueFilters | None = None,
        sort: IssueSort | None = None,
        page: int = 1,
        per_page: int = 10,
    ) -> IssuePage:
        """내게 배정된 이슈 — 직원 화면, 기본 정렬 updatedAt desc."""
        await controller.ensure_loaded()
        return paginate(_assigned_to(controller, actor), filters, sort or IssueSort(field="updatedAt"), page, per_page)

    async def list_reported(
        self,
        controller: OptimisticMutationController,
        actor: CurrentUser,
        filters: IssueFilters | None = None,
        sort: IssueSort | None = None,
        page: int = 1,
        per_page: int = 10,
    ) -> IssuePage:
        """내가 신고한 이슈 — 시민 "내 이슈" 화면 (Citizen "my issues")."""
        await controller.ensure_loaded()
        return paginate(_reported_by(controller, actor), filters, sort, page, per_page)

    async def status_summary(
        self,
        controller: OptimisticMutationController,
        scope: SummaryScope = "all",
        actor: CurrentUser | None = None,
    ) -> IssueSummary:
        """상태별 개수 — 대시보드 요약 카드.

        Per-status counts for one dashboard: every issue (admin), issues
        assigned to ``actor`` (staff) or issues ``actor`` reported (citizen).
        """
        await controller.ensure_loaded()
        if scope == "all":
            return summarize(controller.cache.all())
        if actor is None:
            raise ValueError(f"scope {scope!r} needs an actor")
        if scope == "assigned":
            return summarize(_assigned_to(controller, actor))
        return summarize(_reported_by(controller, actor))

    async def get_issue(self, controller: OptimisticMutationController, issue_id: str) -> IssueRecord:
        await controller.ensure_loaded()
        issue = controller.cache.get(issue_id)
        if issue is None:
            raise NotFoundError("이슈를 찾을 수 없습니다 (Issue not found)")
        return issue

    async def next_statuses(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
    ) -> tuple[IssueStatus, ...]:
        issue = await self.get_issue(controller, issue_id)
        return status_update_service.allowed_statuses(issue)

    async def categories(self, controller: OptimisticMutationController) -> list[str]:
        await controller.ensure_loaded()
        return available_categories(controller.cache.all())

    async def list_staff(self, controller: OptimisticMutationController) -> list[StaffIdentity]:
        """배정 가능한 직원 목록 (Staff identities for the assignment picker)."""
        return await controller.store.list_staff()


def _assigned_to(controller: OptimisticMutationController, actor: CurrentUser) -> list[IssueRecord]:
    return [i for i in controller.cache.all() if actor.same_email(i.assigned_staff_email)]


def _reported_by(controller: OptimisticMutationController, actor: CurrentUser) -> list[IssueRecord]:
    return [i for i in controller.cache.all() if actor.same_email(i.reported_by_email)]


issue_query_service: IssueQueryService = IssueQueryService()
