"""FastAPI 의존성 주입 모듈 — 신원 확인, 역할 검사, 컨트롤러 주입.

FastAPI dependency injection module — Identity, role checks and the
shared optimistic mutation controller.

Identity Flow (IdentityProvider.currentUser):
    1. 클라이언트가 Authorization: Bearer <token> 헤더를 전송
       (Client sends Authorization: Bearer <token> header)
    2. decode_token()이 JWT를 검증하고 페이로드를 반환
       (decode_token verifies the JWT and returns its payload)
    3. 페이로드의 sub/name/role로 CurrentUser 구성
       (CurrentUser is built from the sub/name/role claims)

Authorization Flow (require_role):
    역할이 허용 목록에 없으면 403 Forbidden
    (Returns 403 when the role is not in the allowed set)
"""

from dataclasses import dataclass
from typing import Annotated, Awaitable, Callable, Literal

import jwt
from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from civic_portal.config import settings
from civic_portal.models.issue import CurrentUser, UserRole
from civic_portal.services.optimistic_mutation import OptimisticMutationController
from civic_portal.utils.exceptions import ForbiddenError, UnauthorizedError
from civic_portal.utils.jwt import decode_token
from civic_portal.utils.pagination import IssueFilters, IssueSort

# HTTP Bearer 토큰 추출기 — auto_error=False로 401 응답을 직접 구성
security: HTTPBearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> CurrentUser:
    """JWT 토큰에서 현재 행위자 신원을 추출합니다.

    Decode the bearer token and return the acting identity.

    Raises:
        UnauthorizedError: 토큰 없음, 만료, 위조, 또는 필수 클레임 누락
            (Missing, expired or invalid token, or missing claims)
    """
    if credentials is None:
        raise UnauthorizedError()
    try:
        payload: dict = decode_token(credentials.credentials)
    except (jwt.ExpiredSignatureError, jwt.InvalidTokenError):
        raise UnauthorizedError("Invalid or expired token")

    if payload.get("type") != "access":
        raise UnauthorizedError("Invalid token type")
    email: str | None = payload.get("sub") or payload.get("email")
    if not email:
        raise UnauthorizedError("Invalid token")

    try:
        return CurrentUser(
            email=email,
            display_name=payload.get("name") or "",
            role=payload.get("role") or UserRole.CITIZEN,
            is_blocked=bool(payload.get("blocked") or payload.get("isBlocked")),
        )
    except ValidationError:
        raise UnauthorizedError("Unknown role in token")


def require_role(*roles: UserRole) -> Callable[..., Awaitable[CurrentUser]]:
    """역할 기반 권한 검사 의존성 팩토리.

    Dependency factory enforcing that the acting identity has one of
    ``roles``.
    """
    allowed: frozenset[UserRole] = frozenset(roles)

    async def _check(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise ForbiddenError()
        return current_user

    return _check


# 편의 의존성 — Pre-configured role dependencies
require_admin = require_role(UserRole.ADMIN)
require_staff_or_admin = require_role(UserRole.STAFF, UserRole.ADMIN)


@dataclass(frozen=True)
class ListParams:
    """목록 화면 공통 쿼리 파라미터 (Query parameters shared by every listing)."""

    filters: IssueFilters
    sort: IssueSort | None
    page: int
    per_page: int


def get_list_params(
    search: str | None = Query(None),
    status: str | None = Query(None),
    priority: str | None = Query(None),
    category: str | None = Query(None),
    sort_field: str | None = Query(None),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1),
) -> ListParams:
    """쿼리 파라미터를 파이프라인 입력으로 변환합니다.

    Build pipeline inputs from query parameters. Without ``sort_field``
    each surface applies its own default sort.
    """
    size: int = min(per_page or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)
    sort: IssueSort | None = IssueSort(field=sort_field, order=sort_order) if sort_field else None
    return ListParams(
        filters=IssueFilters(search=search, status=status, priority=priority, category=category),
        sort=sort,
        page=page,
        per_page=size,
    )


def get_controller(request: Request) -> OptimisticMutationController:
    """앱 수명주기에서 생성한 공유 컨트롤러 (Shared controller created at startup)."""
    return request.app.state.controller
