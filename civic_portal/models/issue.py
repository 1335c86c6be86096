"""이슈 도메인 모델 — IssueRecord, 타임라인, 직원/사용자 신원.

Issue domain models — the canonical IssueRecord shape and its timeline,
plus the staff and acting-user identities the workflows consume.

Records arrive from the remote store in its JSON shape (camelCase,
Mongo-style ``_id``) and are serialized back the same way with
``to_wire()``. Python code always uses the snake_case attribute names.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """현재 UTC 시각 (Current timezone-aware UTC time)."""
    return datetime.now(timezone.utc)


class IssueStatus(str, Enum):
    """이슈 상태 — 값은 원격 저장소의 표기를 따름 (Wire values of the remote store)."""

    PENDING = "Pending"
    IN_PROGRESS = "In-Progress"
    WORKING = "Working"
    RESOLVED = "Resolved"
    CLOSED = "Closed"
    REJECTED = "Rejected"

    @classmethod
    def _missing_(cls, value: object) -> "IssueStatus | None":
        # "InProgress", "in progress", "in_progress" 등 변형 허용
        if isinstance(value, str):
            key = value.replace("-", "").replace("_", "").replace(" ", "").lower()
            for member in cls:
                if member.value.replace("-", "").lower() == key:
                    return member
        return None


class IssuePriority(str, Enum):
    """이슈 우선순위 — 정렬 가중치에만 영향 (Affects sort weight only)."""

    NORMAL = "Normal"
    HIGH = "High"

    @classmethod
    def _missing_(cls, value: object) -> "IssuePriority | None":
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.strip().lower():
                    return member
        return None


class UserRole(str, Enum):
    CITIZEN = "citizen"
    STAFF = "staff"
    ADMIN = "admin"


class TimelineAction:
    """타임라인 액션 이름 상수 (Timeline action names as stored remotely)."""

    ISSUE_REPORTED = "Issue_Reported"
    STAFF_ASSIGNED = "Staff_Assigned"
    STATUS_CHANGED = "Status_Changed"
    REJECTED = "Rejected"


class TimelineEntry(BaseModel):
    """타임라인 항목 — 변경 불가 감사 기록.

    Immutable audit record appended on every status or assignment change.

    Attributes:
        action: 액션 이름 (Action name, see TimelineAction)
        timestamp: 발생 시각 (When the change happened)
        by: 행위자 이메일 (Acting identity's email)
        note: 설명 (Human readable note)
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    action: str
    timestamp: datetime
    by: str = ""
    note: str = ""


class StaffIdentity(BaseModel):
    """직원 신원 — 배정 대상 (Staff identity an issue can be assigned to)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    name: str = Field(default="", validation_alias=AliasChoices("name", "displayName"))
    email: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        return _object_id(value)


class CurrentUser(BaseModel):
    """현재 행위자 신원 — IdentityProvider.currentUser() 결과.

    The acting identity resolved from the caller's credentials.
    """

    email: str
    display_name: str = ""
    role: UserRole = UserRole.CITIZEN
    # 관리자가 차단한 계정 (Account blocked by an admin)
    is_blocked: bool = False

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def same_email(self, other: str | None) -> bool:
        """이메일 비교 — 대소문자 무시 (Case-insensitive email comparison)."""
        return bool(other) and other.strip().lower() == self.email.strip().lower()


def _object_id(value: Any) -> str:
    # Mongo 확장 JSON {"$oid": "..."} 형식 지원
    if isinstance(value, dict) and "$oid" in value:
        return str(value["$oid"])
    return str(value)


class IssueRecord(BaseModel):
    """이슈 레코드 — 이슈와 타임라인의 표준 형태.

    Canonical shape of a citizen-reported issue.

    Mutation rules (enforced by the workflows, never by free assignment):
        - status는 StatusTransitionTable의 간선으로만 변경
          (status changes only along transition table edges)
        - assigned_staff_*는 Pending 상태에서 한 번만 설정, In-Progress로 동시 전이
          (assignment happens once, while Pending, together with In-Progress)
        - timeline은 추가만 가능 (timeline is append-only)
        - 텍스트 필드는 Pending 상태에서만 수정 (text fields editable only while Pending)
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    title: str = ""
    description: str = ""
    category: str = ""
    location: str = ""
    priority: IssuePriority = IssuePriority.NORMAL
    status: IssueStatus = IssueStatus.PENDING
    is_boosted: bool = Field(default=False, alias="isBoosted")

    assigned_staff_id: str | None = Field(default=None, alias="assignedStaffId")
    assigned_staff_name: str | None = Field(default=None, alias="assignedStaffName")
    assigned_staff_email: str | None = Field(default=None, alias="assignedStaffEmail")

    timeline: list[TimelineEntry] = Field(default_factory=list, alias="timelineEntry")

    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    resolved_at: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("resolvedAt", "resolvedDate", "resolved_at"),
        serialization_alias="resolvedAt",
    )

    reported_by_email: str | None = Field(default=None, alias="reportedByEmail")
    reported_by_name: str | None = Field(default=None, alias="reportedByName")
    up_votes: int = Field(default=0, alias="upVotes")
    upvoted_by: list[str] = Field(default_factory=list, alias="isUpvoted")

    @field_validator("id", "assigned_staff_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return _object_id(value)

    @field_validator("created_at", "updated_at", "resolved_at", mode="before")
    @classmethod
    def _empty_date(cls, value: Any) -> Any:
        # 원격 저장소는 미설정 날짜를 ""로 보냄 (Remote store sends "" for unset dates)
        return None if value == "" else value

    @field_validator("location", mode="before")
    @classmethod
    def _location_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, dict):
            return ", ".join(str(v) for v in value.values() if v)
        return value

    @field_validator("timeline", "upvoted_by", mode="before")
    @classmethod
    def _none_list(cls, value: Any) -> Any:
        return [] if value is None else value

    def evolve(
        self,
        *,
        entry: TimelineEntry | None = None,
        at: datetime | None = None,
        **changes: Any,
    ) -> "IssueRecord":
        """변경 사항을 적용한 새 레코드를 반환합니다.

        Return a deep copy with ``changes`` applied, ``updated_at`` rewritten
        and, when given, exactly one timeline entry appended. The original
        record is never modified.

        Args:
            entry: 추가할 타임라인 항목 (Timeline entry to append, optional)
            at: 변경 시각, 기본값 현재 (Mutation time, default now)
            **changes: 필드 변경 값 (Field values by attribute name)
        """
        update: dict[str, Any] = dict(changes)
        update["updated_at"] = at or utcnow()
        if entry is not None:
            update["timeline"] = [*self.timeline, entry]
        return self.model_copy(deep=True, update=update)

    def to_wire(self) -> dict[str, Any]:
        """원격 저장소 JSON 형태로 직렬화 (Serialize to the remote store's JSON shape)."""
        return self.model_dump(mode="json", by_alias=True)

    def wire_fields(self, *names: str) -> dict[str, Any]:
        """선택한 필드만 원격 표기로 직렬화 — PATCH 본문용.

        Serialize only the named attributes, keyed by their wire names,
        e.g. ``wire_fields("status", "updated_at")`` →
        ``{"status": "Working", "updatedAt": "..."}``.
        """
        return self.model_dump(mode="json", by_alias=True, include=set(names))
