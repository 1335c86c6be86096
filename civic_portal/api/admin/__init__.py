"""관리자 API 라우터 패키지 — 모든 관리자 엔드포인트 통합.

Admin API Router package — Aggregates all admin-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - issues: 이슈 관리 테이블 — 목록, 배정, 반려, 상태 변경
              (Issue table: listing, assignment, rejection, status updates)
    - staff: 배정 대상 직원 목록 (Staff identities for assignment)
"""

from fastapi import APIRouter

from civic_portal.api.admin.issues import router as issues_router
from civic_portal.api.admin.staff import router as staff_router

admin_router: APIRouter = APIRouter()

admin_router.include_router(issues_router, prefix="/issues", tags=["Admin Issues"])
admin_router.include_router(staff_router, prefix="/staff", tags=["Admin Staff"])
