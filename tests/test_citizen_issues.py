"""시민 이슈 기능 테스트 — 수정, 삭제, 추천.

Citizen issue tests — edit, delete and upvote.
"""

import pytest

from civic_portal.models.issue import CurrentUser
from civic_portal.services.citizen_issue_service import citizen_issue_service
from civic_portal.services.issue_query_service import issue_query_service
from civic_portal.utils.exceptions import BadRequestError, ForbiddenError, PreconditionFailed


class TestEditIssue:
    """신고자 수정 테스트."""

    async def test_edit_own_pending_issue(self, loaded_controller, fake_store, citizen):
        before = loaded_controller.cache.get("i-pending")

        issue = await citizen_issue_service.edit_issue(
            loaded_controller, "i-pending", {"title": "Open manhole", "priority": "High"}, citizen
        )

        assert issue.title == "Open manhole"
        assert issue.priority == before.priority
        assert issue.timeline == before.timeline
        assert set(fake_store.writes[0][2]) == {"title", "updatedAt"}

    async def test_unchanged_values_rejected(self, loaded_controller, fake_store, citizen):
        current = loaded_controller.cache.get("i-pending")
        with pytest.raises(BadRequestError):
            await citizen_issue_service.edit_issue(
                loaded_controller, "i-pending", {"title": current.title}, citizen
            )
        assert fake_store.writes == []

    async def test_only_pending_issues_editable(self, loaded_controller, citizen):
        with pytest.raises(PreconditionFailed):
            await citizen_issue_service.edit_issue(
                loaded_controller, "i-rejected", {"title": "Try again"}, citizen
            )

    async def test_only_reporter_may_edit(self, loaded_controller, neighbour):
        with pytest.raises(ForbiddenError):
            await citizen_issue_service.edit_issue(
                loaded_controller, "i-pending", {"title": "Hijacked"}, neighbour
            )


class TestDeleteIssue:
    """신고자 삭제 테스트."""

    async def test_delete_own_pending_issue(self, loaded_controller, fake_store, citizen):
        await citizen_issue_service.delete_issue(loaded_controller, "i-pending", citizen)

        assert loaded_controller.cache.get("i-pending") is None
        assert "i-pending" not in fake_store.issues
        page = await issue_query_service.list_reported(loaded_controller, citizen)
        assert "i-pending" not in [i.id for i in page.items]

    async def test_assigned_issue_cannot_be_deleted(self, loaded_controller, fake_store, citizen):
        with pytest.raises(PreconditionFailed):
            await citizen_issue_service.delete_issue(loaded_controller, "i-progress", citizen)
        assert fake_store.writes == []


class TestUpvote:
    """추천 테스트."""

    async def test_neighbour_upvotes_once(self, loaded_controller, fake_store, neighbour):
        issue = await citizen_issue_service.upvote_issue(loaded_controller, "i-pending", neighbour)

        assert issue.up_votes == 1
        assert issue.upvoted_by == ["neighbour@example.com"]
        method, _, fields = fake_store.writes[0]
        assert method == "upvote"
        assert fields["upVotes"] == 1
        assert fields["isUpvoted"] == ["neighbour@example.com"]

        with pytest.raises(PreconditionFailed):
            await citizen_issue_service.upvote_issue(
                loaded_controller, "i-pending", CurrentUser(email="Neighbour@Example.com")
            )

    async def test_reporter_cannot_upvote(self, loaded_controller, citizen):
        with pytest.raises(ForbiddenError):
            await citizen_issue_service.upvote_issue(loaded_controller, "i-pending", citizen)

    async def test_blocked_account_cannot_upvote(self, loaded_controller, fake_store, neighbour):
        blocked = neighbour.model_copy(update={"is_blocked": True})
        with pytest.raises(ForbiddenError):
            await citizen_issue_service.upvote_issue(loaded_controller, "i-pending", blocked)

        assert fake_store.writes == []
        assert loaded_controller.cache.get("i-pending").up_votes == 0


class TestListings:
    """화면별 목록 테스트."""

    async def test_assigned_list_for_staff(self, loaded_controller, staff):
        page = await issue_query_service.list_assigned(loaded_controller, staff)
        assert {i.id for i in page.items} == {"i-progress", "i-working", "i-resolved", "i-closed"}

    async def test_reported_list_for_citizen(self, loaded_controller, citizen, neighbour):
        mine = await issue_query_service.list_reported(loaded_controller, citizen)
        theirs = await issue_query_service.list_reported(loaded_controller, neighbour)
        assert mine.total == 6
        assert theirs.total == 0

    async def test_categories(self, loaded_controller):
        assert await issue_query_service.categories(loaded_controller) == ["Road"]

    async def test_summary_per_dashboard(self, loaded_controller, staff, citizen, neighbour):
        everything = await issue_query_service.status_summary(loaded_controller)
        assert everything.total == 6
        assert everything.pending == 1

        assigned = await issue_query_service.status_summary(loaded_controller, "assigned", staff)
        assert assigned.total == 4
        assert assigned.pending == 0
        assert assigned.rejected == 0
        assert (assigned.in_progress, assigned.working, assigned.resolved, assigned.closed) == (1, 1, 1, 1)

        reported = await issue_query_service.status_summary(loaded_controller, "reported", citizen)
        assert reported.total == 6
        assert (await issue_query_service.status_summary(loaded_controller, "reported", neighbour)).total == 0

    async def test_summary_reflects_deleted_issue(self, loaded_controller, citizen):
        await citizen_issue_service.delete_issue(loaded_controller, "i-pending", citizen)

        summary = await issue_query_service.status_summary(loaded_controller, "reported", citizen)
        assert summary.total == 5
        assert summary.pending == 0

    async def test_scoped_summary_needs_actor(self, loaded_controller):
        with pytest.raises(ValueError):
            await issue_query_service.status_summary(loaded_controller, "assigned")
