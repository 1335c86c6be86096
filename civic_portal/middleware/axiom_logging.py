"""Axiom API 로깅 미들웨어.

Axiom API logging middleware.
Captures request/response data and sends structured logs to Axiom.
Logs: endpoint, method, acting user, issue id, request body, status code,
error reason. Sensitive fields (password, token, secret) are masked.
"""

import json
import re
import time
from typing import Any

import jwt
from axiom_py import Client as AxiomClient
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from civic_portal.config import settings
from civic_portal.utils.jwt import decode_token

# 마스킹 대상 필드 패턴 — Fields to mask in request/response bodies
_SENSITIVE_KEYS = re.compile(
    r"(password|passwd|secret|token|authorization|api_key|apikey|access_token|refresh_token|credential)",
    re.IGNORECASE,
)

# 로깅 제외 경로 — Paths excluded from logging
_SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

# 이슈 변경 요청 메서드 — Methods that mutate issues
_MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


def _mask_dict(data: Any, depth: int = 0) -> Any:
    """민감 필드 자동 마스킹 — Recursively mask sensitive fields in dicts/lists."""
    if depth > 5:
        return "..."
    if isinstance(data, dict):
        return {
            k: "***" if _SENSITIVE_KEYS.search(k) else _mask_dict(v, depth + 1)
            for k, v in data.items()
        }
    if isinstance(data, list):
        return [_mask_dict(item, depth + 1) for item in data[:20]]
    return data


def _actor_from_request(request: Request) -> dict[str, str] | None:
    """베어러 토큰에서 행위자 추출 — 검증 실패 시 None.

    The endpoint itself answers 401 for a bad token; here it is only omitted.
    """
    header: str = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        return None
    return {"email": payload.get("sub") or payload.get("email"), "role": payload.get("role")}


class AxiomLoggingMiddleware(BaseHTTPMiddleware):
    """모든 API 요청/응답을 Axiom에 로깅하는 미들웨어.

    Middleware that logs API requests and responses to Axiom. Issue
    mutations additionally carry the issue id and the acting user so that
    rejections and rollbacks can be traced per issue.
    """

    def __init__(self, app: Any, client: AxiomClient | None = None) -> None:
        super().__init__(app)
        self._client: AxiomClient | None = client
        self._dataset: str = settings.AXIOM_DATASET

        if self._client is None and settings.AXIOM_API_TOKEN and settings.AXIOM_DATASET:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in _SKIP_PATHS or not self._client:
            return await call_next(request)

        start_time = time.time()
        method = request.method
        path = request.url.path
        query_params = dict(request.query_params) if request.query_params else None
        actor = _actor_from_request(request)

        request_body: Any = None
        if method in ("POST", "PUT", "PATCH"):
            try:
                body_bytes = await request.body()
                if body_bytes:
                    request_body = _mask_dict(json.loads(body_bytes))
            except (json.JSONDecodeError, UnicodeDecodeError):
                request_body = "(non-json body)"

        error_detail: str | None = None
        status_code: int = 500
        try:
            response = await call_next(request)
            status_code = response.status_code

            # 에러 응답시 body에서 사유 추출 — Extract error detail from error responses
            if status_code >= 400:
                resp_body = b""
                async for chunk in response.body_iterator:
                    resp_body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

                try:
                    error_data = json.loads(resp_body)
                    error_detail = str(error_data.get("detail", error_data))[:500]
                except (json.JSONDecodeError, UnicodeDecodeError, AttributeError):
                    error_detail = resp_body.decode("utf-8", errors="replace")[:500]

                # 소비한 body를 다시 응답으로 반환 — Re-wrap consumed body
                response = Response(
                    content=resp_body,
                    status_code=status_code,
                    headers=dict(response.headers),
                    media_type=response.media_type,
                )
        except Exception as exc:
            error_detail = f"{type(exc).__name__}: {str(exc)[:300]}"
            raise
        finally:
            # 라우팅 후에만 path_params가 채워짐 — path_params are set after routing
            path_params = dict(request.path_params) if request.path_params else None
            log_event: dict[str, Any] = {
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
                "mutation": method in _MUTATING_METHODS,
            }
            if actor:
                log_event["actor"] = actor
            if path_params:
                log_event["path_params"] = path_params
                if "issue_id" in path_params:
                    log_event["issue_id"] = path_params["issue_id"]
            if query_params:
                log_event["query_params"] = _mask_dict(query_params)
            if request_body is not None:
                log_event["request_body"] = request_body
            if error_detail:
                log_event["error"] = error_detail

            try:
                self._client.ingest_events(self._dataset, [log_event])
            except Exception:
                pass  # 로깅 실패가 요청 처리에 영향주지 않도록 — Never break request on log failure

        return response
