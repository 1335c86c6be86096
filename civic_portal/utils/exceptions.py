"""커스텀 HTTP 예외 클래스 모듈.

Custom HTTP exception classes module.
Provides pre-configured HTTPException subclasses for the issue lifecycle
error taxonomy. Services raise these directly; the HTTP layer returns them
without translation.

Taxonomy:
    InvalidTransition: 현재 상태에서 허용되지 않는 변경 — 네트워크 호출 전 로컬 감지
        (Change not allowed from the current state, detected before any network call)
    ConcurrentMutationRejected: 같은 이슈에 진행 중인 변경이 있음
        (Another mutation is already in flight for the same issue id)
    PreconditionFailed: 오래된 캐시 또는 원격 저장소가 거부한 전제 조건
        (Stale precondition, detected locally or returned by the remote store)
    RemoteError: 원격 쓰기 실패 — 자동 롤백 후 전달
        (Remote write failed; surfaced after automatic rollback)

Usage:
    from civic_portal.utils.exceptions import InvalidTransition, NotFoundError
    raise NotFoundError("Issue not found")
    raise InvalidTransition("Resolved", "Pending")
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """404 Not Found 예외 — 이슈 또는 직원을 찾을 수 없을 때 사용.

    Raised when a requested issue or staff identity does not exist
    in the cache or the remote store.
    """

    def __init__(self, detail: str = "Resource not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """403 Forbidden 예외 — 역할 또는 소유권 부족 시 사용.

    Raised when the acting identity lacks the required role
    (e.g. citizen attempting to assign staff) or does not own the issue.
    """

    def __init__(self, detail: str = "Insufficient permissions") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UnauthorizedError(HTTPException):
    """401 Unauthorized 예외 — 신원 토큰이 없거나 유효하지 않을 때 사용."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class BadRequestError(HTTPException):
    """400 Bad Request 예외 — 잘못된 목록 파라미터(페이지, 정렬 필드 등) 시 사용."""

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidTransition(HTTPException):
    """409 Conflict 예외 — 허용되지 않는 상태/배정 변경.

    Raised when a requested status or assignment change is not permitted
    from the issue's current state. Always raised before any cache write
    or network call, so the caller may assume no side effect occurred.

    Args:
        current: 현재 상태 (Current status value)
        requested: 요청된 상태 (Requested status value or action label)
        reason: 추가 사유 (Optional extra reason)
    """

    def __init__(self, current: str, requested: str, reason: str | None = None) -> None:
        self.current: str = current
        self.requested: str = requested
        detail = f"Invalid transition from {current} to {requested}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ConcurrentMutationRejected(HTTPException):
    """409 Conflict 예외 — 같은 이슈에 대한 변경이 이미 진행 중.

    Raised synchronously when a mutation is requested while another one
    for the same issue id has not resolved yet. The request is refused,
    not queued.
    """

    def __init__(self, issue_id: str) -> None:
        self.issue_id: str = issue_id
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Another update for issue {issue_id} is still in progress",
        )


class PreconditionFailed(HTTPException):
    """412 Precondition Failed 예외 — 전제 조건 불일치.

    Raised when the issue no longer satisfies an operation's precondition,
    e.g. assigning an issue that is no longer Pending, or editing an issue
    that has left Pending. May originate locally or from the remote store.
    """

    def __init__(self, detail: str = "Precondition failed") -> None:
        super().__init__(status_code=status.HTTP_412_PRECONDITION_FAILED, detail=detail)


class RemoteError(HTTPException):
    """502 Bad Gateway 예외 — 원격 저장소 쓰기/조회 실패.

    Raised when the remote issue store fails (network, auth, validation).
    The optimistic mutation controller re-raises it with the attempted
    action attached once the local cache has been rolled back.

    Args:
        cause: 실패 원인 메시지 (Underlying failure message)
        action: 시도한 작업 이름 (Attempted action, e.g. "assign staff")
        status_code: 원격 응답 상태 코드 (Remote HTTP status, if any)
    """

    def __init__(
        self,
        cause: str,
        action: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.cause: str = cause
        self.action: str | None = action
        self.remote_status: int | None = status_code
        detail = f"Failed to {action}: {cause}" if action else cause
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)

    def for_action(self, action: str) -> "RemoteError":
        """작업 이름을 붙인 새 예외를 반환합니다 (Return a copy naming the attempted action)."""
        return RemoteError(self.cause, action=action, status_code=self.remote_status)
