"""상태 변경 서비스 — 직원/관리자 공용 상태 전이 워크플로우.

Status Update Service — the one status transition workflow shared by the
staff assigned-issues screen and the admin issues table.
"""

from civic_portal.models.issue import (
    CurrentUser,
    IssueRecord,
    IssueStatus,
    TimelineAction,
    TimelineEntry,
    UserRole,
    utcnow,
)
from civic_portal.services.optimistic_mutation import MutationPlan, OptimisticMutationController
from civic_portal.services.status_transitions import (
    WORKFLOW_ONLY_EDGES,
    ensure_transition,
    status_update_options,
)
from civic_portal.utils.exceptions import ForbiddenError, InvalidTransition

STATUS_ACTION: str = "update status"

# 워크플로우 전용 간선 안내 — Which workflow owns an edge out of Pending
_EDGE_OWNER: dict[IssueStatus, str] = {
    IssueStatus.IN_PROGRESS: "use staff assignment to start work on a Pending issue",
    IssueStatus.REJECTED: "use the reject action to reject a Pending issue",
}


class StatusUpdateService:
    """상태 변경 서비스.

    Advances an issue along the transition table on behalf of a staff
    member (only for issues assigned to them) or an admin.
    """

    def _check_actor(self, issue: IssueRecord, actor: CurrentUser) -> None:
        if actor.role not in (UserRole.STAFF, UserRole.ADMIN):
            raise ForbiddenError("직원 또는 관리자만 상태를 변경할 수 있습니다 (Staff or admin role required)")
        if actor.role == UserRole.STAFF and not actor.same_email(issue.assigned_staff_email):
            raise ForbiddenError("배정된 이슈만 변경할 수 있습니다 (Issue is not assigned to you)")

    def _check_transition(self, issue: IssueRecord, requested: IssueStatus) -> None:
        """요청 상태가 상태 변경 워크플로우로 허용되는지 검증합니다.

        Raises:
            InvalidTransition: 테이블에 없거나 배정/반려 전용 간선
                (Edge missing from the table, or owned by the assignment workflow)
        """
        ensure_transition(issue.status, requested)
        if (issue.status, requested) in WORKFLOW_ONLY_EDGES:
            raise InvalidTransition(issue.status.value, requested.value, _EDGE_OWNER[requested])

    def allowed_statuses(self, issue: IssueRecord) -> tuple[IssueStatus, ...]:
        """UI 드롭다운용 다음 상태 목록 (Next states offered to staff/admin)."""
        return status_update_options(issue.status)

    async def update_status(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
        requested: IssueStatus,
        actor: CurrentUser,
        note: str | None = None,
    ) -> IssueRecord:
        """이슈 상태를 다음 단계로 변경합니다.

        Move an issue to ``requested`` if the transition table allows it.
        Appends a Status_Changed timeline entry naming the from/to pair and
        the actor; entering Resolved also stamps ``resolved_at``.

        Args:
            controller: 낙관적 변경 컨트롤러 (Optimistic mutation controller)
            issue_id: 이슈 ID (Issue id)
            requested: 요청 상태 (Requested status)
            actor: 행위자 — 직원 또는 관리자 (Acting staff member or admin)
            note: 타임라인 메모, 기본값은 전이 설명 (Timeline note override)

        Returns:
            IssueRecord: 변경이 적용된 레코드 (Record with the new status)

        Raises:
            ForbiddenError: 권한 없음 또는 타인에게 배정된 이슈 (Role or ownership violation)
            ConcurrentMutationRejected: 같은 이슈에 변경 진행 중 (Mutation in flight)
            NotFoundError: 이슈 없음 (Issue not found)
            InvalidTransition: 허용되지 않는 전이 (Transition not allowed)
            RemoteError: 원격 쓰기 실패 — 롤백됨 (Remote write failed, rolled back)
        """
        await controller.ensure_loaded()

        def _plan(issue: IssueRecord) -> MutationPlan:
            self._check_actor(issue, actor)
            self._check_transition(issue, requested)

            now = utcnow()
            entry = TimelineEntry(
                action=TimelineAction.STATUS_CHANGED,
                timestamp=now,
                by=actor.email,
                note=note or f"Status changed from {issue.status.value} to {requested.value}",
            )
            changes: dict = {"status": requested}
            if requested == IssueStatus.RESOLVED:
                changes["resolved_at"] = now
            updated = issue.evolve(entry=entry, at=now, **changes)

            fields = updated.wire_fields("status", "updated_at", "timeline", *changes)
            return MutationPlan(updated, lambda: controller.store.patch(issue.id, fields))

        return await controller.mutate(issue_id, STATUS_ACTION, _plan)


status_update_service: StatusUpdateService = StatusUpdateService()
