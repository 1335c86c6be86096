"""직원 배정 서비스 — 관리자 전용 배정 및 반려 워크플로우.

Assignment Service — admin-only workflows that act on Pending issues:
binding a staff identity (which moves the issue to In-Progress in the
same mutation) and rejecting an issue (terminal).

Both run as a single optimistic mutation through the controller.
"""

from civic_portal.models.issue import (
    CurrentUser,
    IssueRecord,
    IssueStatus,
    StaffIdentity,
    TimelineAction,
    TimelineEntry,
    utcnow,
)
from civic_portal.services.optimistic_mutation import MutationPlan, OptimisticMutationController
from civic_portal.services.status_transitions import ensure_transition
from civic_portal.utils.exceptions import ForbiddenError, InvalidTransition, NotFoundError

ASSIGN_ACTION: str = "assign staff"
REJECT_ACTION: str = "reject issue"


class AssignmentService:
    """직원 배정 서비스.

    Assignment workflow: staff assignment and issue rejection.
    Preconditions are checked against the cache before any network call,
    and again inside the mutation plan.
    """

    def _require_admin(self, actor: CurrentUser) -> None:
        if not actor.is_admin:
            raise ForbiddenError("관리자만 수행할 수 있습니다 (Admin role required)")

    def _check_unassigned_pending(self, issue: IssueRecord, requested: IssueStatus) -> None:
        """Pending이고 미배정인지 검증합니다.

        Raises:
            InvalidTransition: Pending이 아니거나 이미 배정됨
                (Not Pending, or staff already assigned)
        """
        if issue.status != IssueStatus.PENDING:
            raise InvalidTransition(issue.status.value, requested.value, "issue is not Pending")
        if issue.assigned_staff_id is not None:
            raise InvalidTransition(
                issue.status.value, requested.value, "issue already has assigned staff"
            )
        ensure_transition(issue.status, requested)

    async def _find_staff(self, controller: OptimisticMutationController, staff_id: str) -> StaffIdentity:
        staff_members = await controller.store.list_staff()
        for staff in staff_members:
            if staff.id == staff_id:
                return staff
        raise NotFoundError("직원을 찾을 수 없습니다 (Staff member not found)")

    async def assign_staff(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
        staff_id: str,
        actor: CurrentUser,
        note: str | None = None,
    ) -> IssueRecord:
        """Pending 이슈에 직원을 배정하고 In-Progress로 전이합니다.

        Assign a staff member to a Pending, unassigned issue. The staff
        fields, the In-Progress status and the Staff_Assigned timeline entry
        are applied and sent in one mutation, so no state with only one of
        them is ever observable.

        Args:
            controller: 낙관적 변경 컨트롤러 (Optimistic mutation controller)
            issue_id: 이슈 ID (Issue id)
            staff_id: 배정할 직원 ID (Staff identity id)
            actor: 행위자, 관리자여야 함 (Acting identity, must be admin)
            note: 타임라인 메모 (Optional timeline note)

        Returns:
            IssueRecord: 배정이 적용된 레코드 (Record with the assignment applied)

        Raises:
            ForbiddenError: 관리자가 아님 (Actor is not admin)
            ConcurrentMutationRejected: 같은 이슈에 변경 진행 중 (Mutation in flight)
            NotFoundError: 이슈 또는 직원이 없음 (Issue or staff not found)
            InvalidTransition: Pending이 아니거나 이미 배정됨 (Not assignable)
            RemoteError: 원격 쓰기 실패 — 롤백됨 (Remote write failed, rolled back)
        """
        self._require_admin(actor)
        await controller.ensure_loaded()
        controller.ensure_idle(issue_id, ASSIGN_ACTION)

        # 네트워크 호출 전 로컬 검증 — Validate locally before any network call
        current = controller.cache.get(issue_id)
        if current is None:
            raise NotFoundError("이슈를 찾을 수 없습니다 (Issue not found)")
        self._check_unassigned_pending(current, IssueStatus.IN_PROGRESS)

        staff: StaffIdentity = await self._find_staff(controller, staff_id)

        def _plan(issue: IssueRecord) -> MutationPlan:
            # 직원 조회 중 캐시가 바뀌었을 수 있어 다시 검증 (Re-check after the await)
            self._check_unassigned_pending(issue, IssueStatus.IN_PROGRESS)
            now = utcnow()
            entry = TimelineEntry(
                action=TimelineAction.STAFF_ASSIGNED,
                timestamp=now,
                by=actor.email,
                note=note or f"Issue assigned to {staff.email} by admin",
            )
            updated = issue.evolve(
                entry=entry,
                at=now,
                status=IssueStatus.IN_PROGRESS,
                assigned_staff_id=staff.id,
                assigned_staff_name=staff.name,
                assigned_staff_email=staff.email,
            )
            fields = updated.wire_fields(
                "status",
                "assigned_staff_id",
                "assigned_staff_name",
                "assigned_staff_email",
                "updated_at",
                "timeline",
            )
            return MutationPlan(updated, lambda: controller.store.patch(issue.id, fields))

        return await controller.mutate(issue_id, ASSIGN_ACTION, _plan)

    async def reject_issue(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
        actor: CurrentUser,
        note: str | None = None,
    ) -> IssueRecord:
        """Pending, 미배정 이슈를 반려합니다 — 되돌릴 수 없음.

        Reject a Pending issue that has no assigned staff. Rejected is
        terminal; no transition leaves it.

        Raises:
            ForbiddenError: 관리자가 아님 (Actor is not admin)
            ConcurrentMutationRejected: 같은 이슈에 변경 진행 중 (Mutation in flight)
            NotFoundError: 이슈 없음 (Issue not found)
            InvalidTransition: Pending이 아니거나 이미 배정됨 (Not rejectable)
            RemoteError: 원격 쓰기 실패 — 롤백됨 (Remote write failed, rolled back)
        """
        self._require_admin(actor)
        await controller.ensure_loaded()

        def _plan(issue: IssueRecord) -> MutationPlan:
            self._check_unassigned_pending(issue, IssueStatus.REJECTED)
            now = utcnow()
            entry = TimelineEntry(
                action=TimelineAction.REJECTED,
                timestamp=now,
                by=actor.email,
                note=note or "Issue rejected by admin",
            )
            updated = issue.evolve(entry=entry, at=now, status=IssueStatus.REJECTED)
            fields = updated.wire_fields("status", "updated_at", "timeline")
            return MutationPlan(updated, lambda: controller.store.patch(issue.id, fields))

        return await controller.mutate(issue_id, REJECT_ACTION, _plan)


assignment_service: AssignmentService = AssignmentService()
