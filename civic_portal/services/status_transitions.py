"""이슈 상태 전이 테이블 — 모든 화면이 공유하는 단일 상태 기계.

Issue status transition table — the single state machine shared by every
listing surface and workflow.

    Pending → In-Progress → Working → Resolved → Closed
    Pending → Rejected

Closed와 Rejected는 종료 상태입니다 (Closed and Rejected are terminal).
Pending에서 나가는 두 간선은 배정/반려 워크플로우 전용입니다
(The two edges out of Pending belong to the assignment and reject workflows).
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

from civic_portal.models.issue import IssueStatus
from civic_portal.utils.exceptions import InvalidTransition

# 상태별 허용 다음 상태 — Allowed next states per current state (ordered)
STATUS_TRANSITIONS: Mapping[IssueStatus, tuple[IssueStatus, ...]] = MappingProxyType(
    {
        IssueStatus.PENDING: (IssueStatus.IN_PROGRESS, IssueStatus.REJECTED),
        IssueStatus.IN_PROGRESS: (IssueStatus.WORKING,),
        IssueStatus.WORKING: (IssueStatus.RESOLVED,),
        IssueStatus.RESOLVED: (IssueStatus.CLOSED,),
        IssueStatus.CLOSED: (),
        IssueStatus.REJECTED: (),
    }
)

# 배정/반려 워크플로우만 사용할 수 있는 간선 — Edges owned by AssignmentService
WORKFLOW_ONLY_EDGES: frozenset[tuple[IssueStatus, IssueStatus]] = frozenset(
    {
        (IssueStatus.PENDING, IssueStatus.IN_PROGRESS),
        (IssueStatus.PENDING, IssueStatus.REJECTED),
    }
)


def next_statuses(current: IssueStatus) -> tuple[IssueStatus, ...]:
    """현재 상태에서 가능한 다음 상태 목록 (All table edges out of ``current``)."""
    return STATUS_TRANSITIONS[current]


def status_update_options(current: IssueStatus) -> tuple[IssueStatus, ...]:
    """상태 변경 워크플로우로 요청 가능한 다음 상태.

    Next states a staff member or admin may request through the status
    update workflow, i.e. the table edges minus assignment and rejection.
    """
    return tuple(s for s in STATUS_TRANSITIONS[current] if (current, s) not in WORKFLOW_ONLY_EDGES)


def is_allowed(current: IssueStatus, requested: IssueStatus) -> bool:
    return requested in STATUS_TRANSITIONS[current]


def is_terminal(status: IssueStatus) -> bool:
    return not STATUS_TRANSITIONS[status]


def ensure_transition(current: IssueStatus, requested: IssueStatus) -> None:
    """전이가 테이블에 없으면 InvalidTransition을 발생시킵니다.

    Raises:
        InvalidTransition: 테이블에 없는 간선 (Edge not in the table)
    """
    if not is_allowed(current, requested):
        reason = "status is terminal" if is_terminal(current) else None
        raise InvalidTransition(current.value, requested.value, reason)


def is_valid_path(statuses: Iterable[IssueStatus]) -> bool:
    """연속된 상태 목록이 테이블의 경로인지 확인합니다.

    Check that consecutive observed statuses only follow table edges.
    Repeated identical statuses (no change) are not edges and are skipped.
    """
    previous: IssueStatus | None = None
    for status in statuses:
        if previous is not None and status != previous and not is_allowed(previous, status):
            return False
        previous = status
    return True
