"""도메인 모델 패키지 — 이슈와 신원 모델의 중앙 임포트 지점.

Domain models package — Central import point for issue and identity models.

Modules:
    issue: 이슈 레코드, 타임라인, 상태/우선순위, 직원 및 사용자 신원
           (IssueRecord, TimelineEntry, status/priority enums, staff and user identities)
"""

from civic_portal.models.issue import (
    CurrentUser,
    IssuePriority,
    IssueRecord,
    IssueStatus,
    StaffIdentity,
    TimelineAction,
    TimelineEntry,
    UserRole,
    utcnow,
)
