"""FastAPI 애플리케이션 엔트리포인트 — 미들웨어, 라우터, 동기화 계층 수명주기.

FastAPI application entry point — Middleware and router registration.
The lifespan owns the sync layer: one remote store, one issue cache and
one optimistic mutation controller shared by every request.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from civic_portal.api.admin import admin_router
from civic_portal.api.app import app_router
from civic_portal.config import settings
from civic_portal.middleware.axiom_logging import AxiomLoggingMiddleware
from civic_portal.repositories.remote_issue_store import HttpIssueStore
from civic_portal.services.issue_cache import IssueCache
from civic_portal.services.optimistic_mutation import OptimisticMutationController


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """동기화 계층 생성 및 종료 (Create and tear down the sync layer).

    A controller already placed on ``app.state`` (e.g. by tests) is kept.
    """
    store: HttpIssueStore | None = None
    if getattr(app.state, "controller", None) is None:
        store = HttpIssueStore()
        app.state.controller = OptimisticMutationController(store, IssueCache())
    try:
        yield
    finally:
        # 진행 중인 백그라운드 동기화 정리 — Drain background refreshes
        await app.state.controller.wait_for_background()
        if store is not None:
            await store.aclose()


app: FastAPI = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Axiom API 로깅 미들웨어 — CORS보다 먼저 등록하여 모든 요청을 캡처
app.add_middleware(AxiomLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """서버 상태 확인 엔드포인트.

    Health check endpoint for load balancers and monitoring.
    """
    return {"status": "ok"}


app.include_router(admin_router, prefix="/api/v1/admin")
app.include_router(app_router, prefix="/api/v1/app")
