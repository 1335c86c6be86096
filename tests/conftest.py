"""테스트 인프라 — 가짜 원격 저장소, 컨트롤러, httpx 클라이언트 픽스처.

Test infrastructure — in-memory remote store, controller, and httpx client
fixtures. The fake store keeps issues in the remote JSON shape and can be
told to fail writes or to hold them on an asyncio.Event, so in-flight
behaviour can be observed deterministically.
"""

import asyncio
from collections.abc import AsyncGenerator, Callable
from typing import Any, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from civic_portal.main import app
from civic_portal.models.issue import CurrentUser, IssueRecord, StaffIdentity, UserRole
from civic_portal.services.issue_cache import IssueCache
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.utils.events import EventLogger
from civic_portal.utils.jwt import create_access_token

CITIZEN_EMAIL = "citizen@example.com"
STAFF_EMAIL = "staff1@city.gov"


# ---------------------------------------------------------------------------
# 가짜 원격 저장소 — In-memory RemoteIssueStore
# ---------------------------------------------------------------------------
class FakeIssueStore:
    """메모리 기반 원격 저장소.

    Attributes:
        fail_writes: 설정 시 모든 쓰기가 이 예외로 실패 (Raised by every write)
        fail_list: 설정 시 list()가 이 예외로 실패 (Raised by list())
        gate: 설정 시 쓰기가 이 이벤트를 기다림 (Writes wait on this event)
        hold_next_list: 다음 list() 한 번만 응답을 만든 뒤 대기 (Next list() call snapshots, then waits)
        writes: 받은 쓰기 기록 (Received writes: (method, issue_id, fields))
    """

    def __init__(self, issues: list[IssueRecord], staff: list[StaffIdentity]) -> None:
        self.issues: dict[str, dict[str, Any]] = {i.id: i.to_wire() for i in issues}
        self.staff: list[StaffIdentity] = list(staff)
        self.fail_writes: BaseException | None = None
        self.fail_list: Exception | None = None
        self.gate: asyncio.Event | None = None
        self.hold_next_list: asyncio.Event | None = None
        self.writes: list[tuple[str, str, dict[str, Any]]] = []
        self.list_calls: int = 0

    async def _write(self, method: str, issue_id: str, fields: dict[str, Any]) -> None:
        self.writes.append((method, issue_id, fields))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_writes is not None:
            raise self.fail_writes

    async def list(self) -> List[IssueRecord]:
        self.list_calls += 1
        if self.fail_list is not None:
            raise self.fail_list
        records = [IssueRecord.model_validate(data) for data in self.issues.values()]
        hold, self.hold_next_list = self.hold_next_list, None
        if hold is not None:
            # 응답을 먼저 만든 뒤 대기 — the held call returns the older server view
            await hold.wait()
        return records

    async def patch(self, issue_id: str, fields: dict[str, Any]) -> IssueRecord | None:
        await self._write("patch", issue_id, fields)
        self.issues[issue_id].update(fields)
        return None

    async def delete(self, issue_id: str) -> None:
        await self._write("delete", issue_id, {})
        self.issues.pop(issue_id, None)

    async def upvote(self, issue_id: str, fields: dict[str, Any]) -> None:
        await self._write("upvote", issue_id, fields)
        self.issues[issue_id].update(fields)

    async def list_staff(self) -> List[StaffIdentity]:
        return list(self.staff)


def make_issue(issue_id: str, **wire: Any) -> IssueRecord:
    """원격 표기 필드로 이슈를 생성합니다 (Build an issue from wire-named fields)."""
    data: dict[str, Any] = {
        "_id": issue_id,
        "title": f"Issue {issue_id}",
        "description": "Reported by a citizen",
        "category": "Road",
        "location": "Mirpur 10, Dhaka",
        "priority": "Normal",
        "status": "Pending",
        "isBoosted": False,
        "reportedByEmail": CITIZEN_EMAIL,
        "reportedByName": "Rahim Uddin",
        "createdAt": "2024-03-01T09:00:00Z",
        "updatedAt": "2024-03-01T09:00:00Z",
        "upVotes": 0,
        "isUpvoted": [],
        "timelineEntry": [
            {
                "action": "Issue_Reported",
                "timestamp": "2024-03-01T09:00:00Z",
                "by": CITIZEN_EMAIL,
                "note": "Issue reported by citizen",
            }
        ],
    }
    data.update(wire)
    return IssueRecord.model_validate(data)


def _assigned(**wire: Any) -> dict[str, Any]:
    return {
        "assignedStaffId": "staff-1",
        "assignedStaffName": "Karim Hossain",
        "assignedStaffEmail": STAFF_EMAIL,
        **wire,
    }


# ---------------------------------------------------------------------------
# 픽스처 — Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def staff_members() -> list[StaffIdentity]:
    return [
        StaffIdentity.model_validate({"_id": "staff-1", "name": "Karim Hossain", "email": STAFF_EMAIL}),
        StaffIdentity.model_validate({"_id": "staff-2", "name": "Nadia Akter", "email": "staff2@city.gov"}),
    ]


@pytest.fixture
def seed_issues() -> list[IssueRecord]:
    """상태별 이슈 한 건씩 (One issue per lifecycle status)."""
    return [
        make_issue("i-pending"),
        make_issue("i-progress", status="In-Progress", **_assigned()),
        make_issue("i-working", status="Working", **_assigned()),
        make_issue("i-resolved", status="Resolved", resolvedAt="2024-03-05T12:00:00Z", **_assigned()),
        make_issue("i-closed", status="Closed", **_assigned()),
        make_issue("i-rejected", status="Rejected"),
    ]


@pytest.fixture
def fake_store(seed_issues, staff_members) -> FakeIssueStore:
    return FakeIssueStore(seed_issues, staff_members)


@pytest_asyncio.fixture
async def controller(fake_store: FakeIssueStore) -> AsyncGenerator[OptimisticMutationController, None]:
    """Axiom 비활성 컨트롤러 — 종료 시 백그라운드 작업을 정리합니다."""
    ctrl = OptimisticMutationController(fake_store, IssueCache(), events=EventLogger(dataset=""))
    yield ctrl
    if fake_store.gate is not None:
        fake_store.gate.set()
    await ctrl.wait_for_background()


@pytest_asyncio.fixture
async def loaded_controller(controller: OptimisticMutationController) -> OptimisticMutationController:
    await controller.ensure_loaded()
    return controller


@pytest_asyncio.fixture
async def client(controller: OptimisticMutationController) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 — 가짜 저장소 기반 컨트롤러를 주입합니다."""
    app.state.controller = controller

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.state.controller = None


# ---------------------------------------------------------------------------
# 행위자 및 토큰 — Actors and tokens
# ---------------------------------------------------------------------------
@pytest.fixture
def admin() -> CurrentUser:
    return CurrentUser(email="admin@city.gov", display_name="City Admin", role=UserRole.ADMIN)


@pytest.fixture
def staff() -> CurrentUser:
    return CurrentUser(email=STAFF_EMAIL, display_name="Karim Hossain", role=UserRole.STAFF)


@pytest.fixture
def other_staff() -> CurrentUser:
    return CurrentUser(email="staff2@city.gov", display_name="Nadia Akter", role=UserRole.STAFF)


@pytest.fixture
def citizen() -> CurrentUser:
    return CurrentUser(email=CITIZEN_EMAIL, display_name="Rahim Uddin", role=UserRole.CITIZEN)


@pytest.fixture
def neighbour() -> CurrentUser:
    return CurrentUser(email="neighbour@example.com", display_name="Salma Begum", role=UserRole.CITIZEN)


def make_token(user: CurrentUser) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    claims: dict[str, Any] = {
        "sub": user.email,
        "name": user.display_name,
        "role": user.role.value,
    }
    if user.is_blocked:
        claims["blocked"] = True
    return create_access_token(claims)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def wait_until(predicate: Callable[[], bool], attempts: int = 100) -> None:
    """이벤트 루프를 양보하며 조건을 기다립니다 (Yield to the loop until predicate holds)."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
