"""앱 API 라우터 패키지 — 직원 및 시민용 엔드포인트 통합.

App API Router package — Aggregates staff- and citizen-facing endpoints
into a single router for inclusion in the FastAPI application.

Included routers:
    - issues: 공개 이슈 목록 및 추천 (Public issue list and upvotes)
    - my_issues: 내가 신고한 이슈 (Issues reported by me)
    - assigned_issues: 내게 배정된 이슈 (Issues assigned to me)
"""

from fastapi import APIRouter

from civic_portal.api.app.assigned_issues import router as assigned_issues_router
from civic_portal.api.app.issues import router as issues_router
from civic_portal.api.app.my_issues import router as my_issues_router

app_router: APIRouter = APIRouter()

app_router.include_router(issues_router, prefix="/issues", tags=["Issues"])
# 시민: /my/issues 하위 (Citizen's own reports)
app_router.include_router(my_issues_router, prefix="/my/issues", tags=["My Issues"])
# 직원: /my/assigned-issues 하위 (Staff assignments)
app_router.include_router(assigned_issues_router, prefix="/my/assigned-issues", tags=["My Assigned Issues"])
