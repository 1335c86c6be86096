"""원격 이슈 저장소 레포지토리 — 포털 백엔드와의 네트워크 경계.

Remote issue store repository — the network boundary to the portal's REST
backend. The core only talks to the backend through the ``RemoteIssueStore``
protocol; ``HttpIssueStore`` is the httpx implementation.

Backend endpoints:
    GET    /allIssues              전체 이슈 목록 (All issues)
    PATCH  /myIssueUpdate/{id}     부분 업데이트 (Partial update)
    DELETE /myIssueDelete/{id}     이슈 삭제 (Delete, Pending only)
    PATCH  /upvoteIssue/{id}       추천 (Upvote)
    GET    /staffs                 직원 목록 (Staff identities)

Error mapping:
    연결 실패, 401/403/404, 5xx → RemoteError
    409/412 → PreconditionFailed
"""

from typing import Any, List, Protocol

import httpx
from pydantic import ValidationError

from civic_portal.config import settings
from civic_portal.models.issue import IssueRecord, StaffIdentity
from civic_portal.utils.exceptions import PreconditionFailed, RemoteError


class RemoteIssueStore(Protocol):
    """원격 이슈 저장소 계약 (Contract every remote store implementation fulfils)."""

    async def list(self) -> List[IssueRecord]: ...

    async def patch(self, issue_id: str, fields: dict[str, Any]) -> IssueRecord | None: ...

    async def delete(self, issue_id: str) -> None: ...

    async def upvote(self, issue_id: str, fields: dict[str, Any]) -> None: ...

    async def list_staff(self) -> List[StaffIdentity]: ...


def _error_message(response: httpx.Response) -> str:
    """응답 본문에서 오류 사유 추출 (Extract the error reason from a response body)."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or body.get("error") or body)
    return str(body)


class HttpIssueStore:
    """httpx 기반 원격 이슈 저장소.

    httpx-backed RemoteIssueStore. The async client is owned by the store
    unless one is injected, in which case the caller closes it.

    Args:
        base_url: 백엔드 주소 (Backend base URL, default from settings)
        token: 베어러 토큰 (Bearer token sent with every request)
        client: 주입할 httpx 클라이언트 (Injected client, e.g. with MockTransport)
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers: dict[str, str] = {}
        bearer = token if token is not None else settings.REMOTE_API_TOKEN
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        self._owns_client: bool = client is None
        self._client: httpx.AsyncClient = client or httpx.AsyncClient(
            base_url=base_url or settings.REMOTE_API_BASE_URL,
            headers=headers,
            timeout=settings.REMOTE_TIMEOUT_SECONDS,
        )
        if client is not None and headers:
            self._client.headers.update(headers)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """요청을 보내고 실패를 도메인 예외로 변환합니다.

        Send a request and translate transport and HTTP failures into
        RemoteError / PreconditionFailed.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteError(f"{type(exc).__name__}: {exc}") from exc

        if response.status_code in (409, 412):
            raise PreconditionFailed(_error_message(response))
        if response.is_error:
            raise RemoteError(_error_message(response), status_code=response.status_code)
        return response

    async def list(self) -> List[IssueRecord]:
        response = await self._request("GET", "/allIssues")
        payload = response.json() or []
        try:
            return [IssueRecord.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise RemoteError(f"Malformed issue payload: {exc.error_count()} errors") from exc

    async def patch(self, issue_id: str, fields: dict[str, Any]) -> IssueRecord | None:
        """이슈를 부분 업데이트합니다.

        Apply a partial update. The backend answers with either the updated
        record or a bare update acknowledgement; only the former is parsed.
        """
        response = await self._request("PATCH", f"/myIssueUpdate/{issue_id}", json=fields)
        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict) and ("_id" in body or "id" in body):
            try:
                return IssueRecord.model_validate(body)
            except ValidationError:
                return None
        # 수정 결과 확인 — Mongo update acknowledgement
        if isinstance(body, dict) and body.get("matchedCount") == 0:
            raise PreconditionFailed(f"Issue {issue_id} no longer exists")
        return None

    async def delete(self, issue_id: str) -> None:
        response = await self._request("DELETE", f"/myIssueDelete/{issue_id}")
        if not response.content:
            return
        try:
            body = response.json()
        except ValueError:
            return
        if isinstance(body, dict) and body.get("deletedCount") == 0:
            raise PreconditionFailed(f"Issue {issue_id} could not be deleted")

    async def upvote(self, issue_id: str, fields: dict[str, Any]) -> None:
        await self._request("PATCH", f"/upvoteIssue/{issue_id}", json=fields)

    async def list_staff(self) -> List[StaffIdentity]:
        response = await self._request("GET", "/staffs")
        payload = response.json() or []
        return [StaffIdentity.model_validate(item) for item in payload]
