"""시민 이슈 서비스 — 신고자 수정/삭제 및 추천.

Citizen Issue Service — reporter-side edits and deletion of Pending
issues, and upvotes. All three are optimistic mutations through the
controller; none of them touches status or assignment, so none appends a
timeline entry.
"""

from typing import Any

from civic_portal.models.issue import CurrentUser, IssueRecord, IssueStatus, utcnow
from civic_portal.services.optimistic_mutation import MutationPlan, OptimisticMutationController
from civic_portal.utils.exceptions import BadRequestError, ForbiddenError, PreconditionFailed

EDIT_ACTION: str = "update issue"
DELETE_ACTION: str = "delete issue"
UPVOTE_ACTION: str = "upvote issue"

# 신고자가 수정할 수 있는 텍스트 필드 (Citizen-authored text fields)
EDITABLE_FIELDS: tuple[str, ...] = ("title", "description", "category", "location")


class CitizenIssueService:

    def _require_owner_pending(self, issue: IssueRecord, actor: CurrentUser) -> None:
        if not actor.same_email(issue.reported_by_email):
            raise ForbiddenError("본인이 신고한 이슈만 변경할 수 있습니다 (You can only change your own issues)")
        if issue.status != IssueStatus.PENDING:
            raise PreconditionFailed(
                f"Only Pending issues can be changed (current status: {issue.status.value})"
            )

    async def edit_issue(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
        changes: dict[str, Any],
        actor: CurrentUser,
    ) -> IssueRecord:
        """Pending 이슈의 텍스트 필드를 수정합니다.

        Edit citizen-authored text fields of the reporter's own Pending issue.
        Unknown keys are ignored; at least one editable field must change.

        Raises:
            BadRequestError: 변경할 필드 없음 (Nothing to change)
            ForbiddenError: 신고자가 아님 (Not the reporter)
            PreconditionFailed: Pending이 아님 (Issue left Pending)
        """
        await controller.ensure_loaded()

        def _plan(issue: IssueRecord) -> MutationPlan:
            self._require_owner_pending(issue, actor)
            updates = {
                name: value
                for name, value in changes.items()
                if name in EDITABLE_FIELDS and value is not None and getattr(issue, name) != value
            }
            if not updates:
                raise BadRequestError("변경할 내용이 없습니다 (No changes to apply)")

            updated = issue.evolve(**updates)
            fields = updated.wire_fields("updated_at", *updates)
            return MutationPlan(updated, lambda: controller.store.patch(issue.id, fields))

        return await controller.mutate(issue_id, EDIT_ACTION, _plan)

    async def delete_issue(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
        actor: CurrentUser,
    ) -> None:
        """Pending 이슈를 삭제합니다 — 실패 시 원래 위치로 복원.

        Delete the reporter's own Pending issue. The issue disappears from
        the cache immediately and is re-inserted at its position if the
        remote delete fails.
        """
        await controller.ensure_loaded()

        def _plan(issue: IssueRecord) -> MutationPlan:
            self._require_owner_pending(issue, actor)
            return MutationPlan(None, lambda: controller.store.delete(issue.id))

        await controller.mutate(issue_id, DELETE_ACTION, _plan)

    async def upvote_issue(
        self,
        controller: OptimisticMutationController,
        issue_id: str,
        actor: CurrentUser,
    ) -> IssueRecord:
        """이슈를 추천합니다 — 사용자당 한 번, 본인 이슈 제외.

        Raises:
            ForbiddenError: 차단된 계정 또는 본인이 신고한 이슈
                (Blocked account, or reporter upvoting own issue)
            PreconditionFailed: 이미 추천함 (Already upvoted)
        """
        await controller.ensure_loaded()

        def _plan(issue: IssueRecord) -> MutationPlan:
            if actor.is_blocked:
                raise ForbiddenError("차단된 계정은 추천할 수 없습니다 (Your account is blocked)")
            if actor.same_email(issue.reported_by_email):
                raise ForbiddenError("본인 이슈는 추천할 수 없습니다 (You cannot upvote your own issue)")
            if any(actor.same_email(email) for email in issue.upvoted_by):
                raise PreconditionFailed("이미 추천했습니다 (Already upvoted)")

            updated = issue.evolve(
                at=utcnow(),
                up_votes=issue.up_votes + 1,
                upvoted_by=[*issue.upvoted_by, actor.email],
            )
            fields = updated.wire_fields("upvoted_by", "up_votes", "updated_at")
            return MutationPlan(updated, lambda: controller.store.upvote(issue.id, fields))

        return await controller.mutate(issue_id, UPVOTE_ACTION, _plan)


citizen_issue_service: CitizenIssueService = CitizenIssueService()
