"""직원 배정 및 반려 워크플로우 테스트.

Assignment workflow tests — staff assignment and issue rejection.
"""

import asyncio

import pytest

from civic_portal.models.issue import IssueStatus, TimelineAction
from civic_portal.services.assignment_service import assignment_service
from civic_portal.services.issue_cache import IssueCache
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.services.status_transitions import is_valid_path
from civic_portal.services.status_update_service import status_update_service
from civic_portal.utils.events import EventLogger
from civic_portal.utils.exceptions import ForbiddenError, InvalidTransition, NotFoundError
from tests.conftest import FakeIssueStore, make_issue, wait_until


class TestAssignStaff:
    """직원 배정 테스트."""

    async def test_pending_issue_assigned_and_in_progress(self, loaded_controller, fake_store, admin):
        before = loaded_controller.cache.get("i-pending")

        issue = await assignment_service.assign_staff(loaded_controller, "i-pending", "staff-1", admin)

        assert issue.status == IssueStatus.IN_PROGRESS
        assert issue.assigned_staff_id == "staff-1"
        assert issue.assigned_staff_name == "Karim Hossain"
        assert issue.assigned_staff_email == "staff1@city.gov"
        assert len(issue.timeline) == len(before.timeline) + 1
        entry = issue.timeline[-1]
        assert entry.action == TimelineAction.STAFF_ASSIGNED
        assert entry.by == "admin@city.gov"
        assert entry.note == "Issue assigned to staff1@city.gov by admin"
        assert loaded_controller.cache.get("i-pending") == issue

    async def test_single_patch_carries_staff_and_status(self, loaded_controller, fake_store, admin):
        await assignment_service.assign_staff(loaded_controller, "i-pending", "staff-2", admin)

        assert len(fake_store.writes) == 1
        method, issue_id, fields = fake_store.writes[0]
        assert (method, issue_id) == ("patch", "i-pending")
        assert set(fields) == {
            "status",
            "assignedStaffId",
            "assignedStaffName",
            "assignedStaffEmail",
            "updatedAt",
            "timelineEntry",
        }
        assert fields["status"] == "In-Progress"
        assert fields["assignedStaffId"] == "staff-2"
        assert fields["timelineEntry"][-1]["action"] == "Staff_Assigned"

    async def test_no_intermediate_state_observable(self, loaded_controller, fake_store, admin):
        """배정과 상태가 함께 보임 (Staff and status appear together)."""
        fake_store.gate = asyncio.Event()
        task = asyncio.create_task(
            assignment_service.assign_staff(loaded_controller, "i-pending", "staff-1", admin)
        )
        await wait_until(lambda: loaded_controller.is_in_flight("i-pending"))

        cached = loaded_controller.cache.get("i-pending")
        assert cached.assigned_staff_id == "staff-1"
        assert cached.status == IssueStatus.IN_PROGRESS

        fake_store.gate.set()
        await task

    async def test_custom_note(self, loaded_controller, admin):
        issue = await assignment_service.assign_staff(
            loaded_controller, "i-pending", "staff-1", admin, note="Urgent, school route"
        )
        assert issue.timeline[-1].note == "Urgent, school route"

    async def test_requires_admin(self, loaded_controller, fake_store, staff):
        with pytest.raises(ForbiddenError):
            await assignment_service.assign_staff(loaded_controller, "i-pending", "staff-1", staff)
        assert fake_store.writes == []

    async def test_already_assigned_rejected_locally(self, loaded_controller, fake_store, admin):
        with pytest.raises(InvalidTransition) as exc_info:
            await assignment_service.assign_staff(loaded_controller, "i-progress", "staff-2", admin)
        assert "not Pending" in exc_info.value.detail
        assert fake_store.writes == []
        assert loaded_controller.cache.get("i-progress").assigned_staff_id == "staff-1"

    async def test_unknown_staff(self, loaded_controller, fake_store, admin):
        with pytest.raises(NotFoundError):
            await assignment_service.assign_staff(loaded_controller, "i-pending", "staff-9", admin)
        assert fake_store.writes == []

    async def test_unknown_issue(self, loaded_controller, admin):
        with pytest.raises(NotFoundError):
            await assignment_service.assign_staff(loaded_controller, "missing", "staff-1", admin)


class TestRejectIssue:
    """이슈 반려 테스트."""

    async def test_pending_issue_rejected(self, loaded_controller, fake_store, admin):
        issue = await assignment_service.reject_issue(loaded_controller, "i-pending", admin)

        assert issue.status == IssueStatus.REJECTED
        assert issue.timeline[-1].action == TimelineAction.REJECTED
        assert issue.timeline[-1].note == "Issue rejected by admin"
        assert fake_store.writes[0][2]["status"] == "Rejected"

    async def test_rejected_is_terminal(self, loaded_controller, admin):
        await assignment_service.reject_issue(loaded_controller, "i-pending", admin)

        with pytest.raises(InvalidTransition):
            await assignment_service.assign_staff(loaded_controller, "i-pending", "staff-1", admin)
        with pytest.raises(InvalidTransition):
            await status_update_service.update_status(
                loaded_controller, "i-pending", IssueStatus.IN_PROGRESS, admin
            )

    async def test_in_progress_issue_cannot_be_rejected(self, loaded_controller, fake_store, admin):
        with pytest.raises(InvalidTransition):
            await assignment_service.reject_issue(loaded_controller, "i-progress", admin)
        assert fake_store.writes == []

    async def test_pending_issue_with_staff_cannot_be_rejected(self, staff_members, admin):
        """Pending이지만 직원이 지정된 불일치 데이터 — 반려 불가."""
        odd = make_issue("odd", assignedStaffId="staff-1", assignedStaffEmail="staff1@city.gov")
        store = FakeIssueStore([odd], staff_members)
        controller = OptimisticMutationController(store, IssueCache(), events=EventLogger(dataset=""))

        with pytest.raises(InvalidTransition) as exc_info:
            await assignment_service.reject_issue(controller, "odd", admin)
        assert "already has assigned staff" in exc_info.value.detail
        assert store.writes == []

    async def test_requires_admin(self, loaded_controller, citizen):
        with pytest.raises(ForbiddenError):
            await assignment_service.reject_issue(loaded_controller, "i-pending", citizen)


class TestLifecycle:
    """배정부터 종료까지 전체 흐름."""

    async def test_full_lifecycle_follows_table(self, loaded_controller, admin, staff):
        observed = [loaded_controller.cache.get("i-pending").status]

        issue = await assignment_service.assign_staff(loaded_controller, "i-pending", "staff-1", admin)
        observed.append(issue.status)
        for target in (IssueStatus.WORKING, IssueStatus.RESOLVED):
            issue = await status_update_service.update_status(loaded_controller, "i-pending", target, staff)
            observed.append(issue.status)
        issue = await status_update_service.update_status(
            loaded_controller, "i-pending", IssueStatus.CLOSED, admin
        )
        observed.append(issue.status)

        assert observed == [
            IssueStatus.PENDING,
            IssueStatus.IN_PROGRESS,
            IssueStatus.WORKING,
            IssueStatus.RESOLVED,
            IssueStatus.CLOSED,
        ]
        assert is_valid_path(observed)
        assert [e.action for e in issue.timeline] == [
            TimelineAction.ISSUE_REPORTED,
            TimelineAction.STAFF_ASSIGNED,
            TimelineAction.STATUS_CHANGED,
            TimelineAction.STATUS_CHANGED,
            TimelineAction.STATUS_CHANGED,
        ]
