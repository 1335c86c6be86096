"""낙관적 변경 컨트롤러 — 로컬 우선 적용, 원격 쓰기, 수렴 또는 롤백.

Optimistic mutation controller — applies a change to the cached issue
collection first, dispatches the matching remote write, then converges
or rolls back.

Protocol (모든 변경에 동일하게 적용 — applies to every mutation):
    1. 스냅샷 — capture the cached collection
    2. 로컬 적용 — apply the change synchronously, zero latency for readers
    3. 원격 쓰기 — await the remote write (the only suspension point)
    4. 성공 — local state is authoritative; schedule a background refresh
    5. 실패 — restore the snapshotted entry exactly, raise naming the action
    6. 항상 — release the per-issue in-flight mark

이슈 ID당 진행 중인 변경은 최대 하나입니다. 두 번째 요청은 대기하지 않고
즉시 거부됩니다 (At most one mutation in flight per issue id; a second
request is rejected synchronously, never queued).
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from civic_portal.models.issue import IssueRecord
from civic_portal.repositories.remote_issue_store import RemoteIssueStore
from civic_portal.services.issue_cache import IssueCache
from civic_portal.utils.events import EventLogger, event_logger
from civic_portal.utils.exceptions import (
    ConcurrentMutationRejected,
    NotFoundError,
    PreconditionFailed,
    RemoteError,
)


@dataclass(frozen=True)
class MutationPlan:
    """변경 계획 — 적용할 레코드와 원격 쓰기.

    Attributes:
        record: 캐시에 적용할 새 레코드, None이면 캐시에서 제거
                (Record to place in the cache; None removes the issue)
        remote_write: 원격 쓰기를 수행하는 코루틴 함수
                      (Coroutine function performing the equivalent remote write)
    """

    record: IssueRecord | None
    remote_write: Callable[[], Awaitable[Any]]


# 현재 레코드로부터 변경 계획을 만드는 함수. 검증 실패 시 예외를 발생시켜야 함
# Builds a plan from the current record; raises to refuse the mutation
PlanBuilder = Callable[[IssueRecord], MutationPlan]


class OptimisticMutationController:
    """이슈 캐시의 유일한 쓰기 주체.

    Sole writer of the issue cache. Owns the per-issue in-flight lock map
    and the background reconciliation tasks.

    Args:
        store: 원격 이슈 저장소 (Remote issue store)
        cache: 공유 이슈 캐시 (Shared issue cache, default: a new empty cache)
        events: 이벤트 로거 (Event logger, default: global Axiom logger)
    """

    def __init__(
        self,
        store: RemoteIssueStore,
        cache: IssueCache | None = None,
        events: EventLogger | None = None,
    ) -> None:
        self._store: RemoteIssueStore = store
        self._cache: IssueCache = cache if cache is not None else IssueCache()
        self._events: EventLogger = events or event_logger
        self._in_flight: set[str] = set()
        # 이슈별 변경 세대 — 동기화 중 바뀐 이슈를 구분하기 위함
        self._versions: dict[str, int] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def cache(self) -> IssueCache:
        return self._cache

    @property
    def store(self) -> RemoteIssueStore:
        return self._store

    @property
    def in_flight_ids(self) -> frozenset[str]:
        return frozenset(self._in_flight)

    def is_in_flight(self, issue_id: str) -> bool:
        return issue_id in self._in_flight

    def ensure_idle(self, issue_id: str, action: str = "update issue") -> None:
        """진행 중인 변경이 있으면 즉시 거부합니다.

        Raises:
            ConcurrentMutationRejected: 같은 이슈에 변경이 진행 중 (Mutation in flight)
        """
        if issue_id in self._in_flight:
            self._events.emit("mutation.rejected_concurrent", issue_id=issue_id, action=action)
            raise ConcurrentMutationRejected(issue_id)

    # --- 동기화 (Reconciliation) ---

    async def ensure_loaded(self) -> None:
        """캐시가 비어 있으면 원격 목록을 가져옵니다 (Fetch once before first use)."""
        if not self._cache.loaded:
            await self.refresh()

    async def refresh(self) -> None:
        """원격 목록을 가져와 ID 단위로 병합합니다.

        Fetch the remote list and merge it id by id. Issues with a mutation
        in flight when the fetch started or when it returned, or mutated while
        the fetch was outstanding, keep their local value so an older server
        view never overwrites them.

        Raises:
            RemoteError: 원격 목록 조회 실패 (Remote list failed)
        """
        versions_at_start: dict[str, int] = dict(self._versions)
        in_flight_at_start: set[str] = set(self._in_flight)
        records = await self._store.list()

        # 조회 시작 시점에 진행 중이던 변경은 조회 결과에 반영되지 않았을 수 있음
        protected: set[str] = in_flight_at_start | self._in_flight
        protected.update(
            issue_id
            for issue_id, version in self._versions.items()
            if versions_at_start.get(issue_id) != version
        )
        self._cache.merge(records, protected)
        self._events.emit("cache.refreshed", total=len(records), protected=len(protected))

    async def _background_refresh(self) -> None:
        try:
            await self.refresh()
        except (RemoteError, PreconditionFailed) as exc:
            # 최선 노력 동기화 — 다음 동기화에서 다시 시도 (Best effort; next refresh retries)
            self._events.emit("cache.refresh_failed", error=str(exc.detail))

    def schedule_refresh(self) -> None:
        """백그라운드 동기화를 예약합니다 (Schedule a background refresh)."""
        self._track(asyncio.get_running_loop().create_task(self._background_refresh()))

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        # 호출자가 취소된 경우에도 예외를 회수 (Retrieve errors nobody awaited)
        if not task.cancelled():
            task.exception()

    async def wait_for_background(self) -> None:
        """진행 중인 백그라운드 작업이 모두 끝날 때까지 기다립니다.

        Await outstanding settle and refresh tasks, including refreshes
        scheduled by tasks that finish while waiting.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- 변경 (Mutation) ---

    async def mutate(self, issue_id: str, action: str, build: PlanBuilder) -> IssueRecord | None:
        """낙관적 변경을 수행합니다.

        Run one optimistic mutation. Everything up to the remote write runs
        synchronously: the in-flight check, the plan (which validates and may
        raise), the snapshot and the local apply. The remote write and its
        settlement run in a task shielded from the caller, so a dispatched
        mutation always settles even if the caller goes away.

        Args:
            issue_id: 대상 이슈 ID (Target issue id)
            action: 사용자에게 보일 작업 이름 (Action name used in error messages)
            build: 현재 레코드로부터 계획을 만드는 함수 (Plan builder)

        Returns:
            IssueRecord | None: 적용된 레코드, 삭제 시 None (Applied record; None on removal)

        Raises:
            ConcurrentMutationRejected: 같은 이슈에 변경이 진행 중
            NotFoundError: 캐시에 이슈가 없음
            InvalidTransition / PreconditionFailed / ForbiddenError: 계획 단계의 검증 실패
            RemoteError: 원격 쓰기 실패, 롤백 완료 후 발생
            PreconditionFailed: 원격 저장소가 전제 조건 거부, 롤백 완료 후 발생
        """
        self.ensure_idle(issue_id, action)

        current = self._cache.get(issue_id)
        if current is None:
            raise NotFoundError("이슈를 찾을 수 없습니다 (Issue not found)")

        # 검증 실패는 여기서 발생 — 상태 변경 없음 (Validation errors leave no trace)
        plan: MutationPlan = build(current)

        snapshot = self._cache.snapshot()
        if plan.record is None:
            self._cache.remove(issue_id)
        else:
            self._cache.replace(plan.record)
        self._in_flight.add(issue_id)
        self._versions[issue_id] = self._versions.get(issue_id, 0) + 1
        self._events.emit("mutation.applied", issue_id=issue_id, action=action)

        task = asyncio.get_running_loop().create_task(
            self._settle(issue_id, action, plan, snapshot)
        )
        self._track(task)
        return await asyncio.shield(task)

    async def _settle(
        self,
        issue_id: str,
        action: str,
        plan: MutationPlan,
        snapshot: list[IssueRecord],
    ) -> IssueRecord | None:
        try:
            await plan.remote_write()
        except RemoteError as exc:
            self._rollback(snapshot, issue_id, action, exc.cause)
            raise exc.for_action(action) from exc
        except PreconditionFailed as exc:
            self._rollback(snapshot, issue_id, action, str(exc.detail))
            # 캐시가 오래됨 — 동기화 예약 (Cache was stale; reconcile)
            self.schedule_refresh()
            raise PreconditionFailed(f"Failed to {action}: {exc.detail}") from exc
        except BaseException as exc:
            # 취소 포함 — 확인되지 않은 변경은 남기지 않음 (Includes cancellation)
            self._rollback(snapshot, issue_id, action, f"{type(exc).__name__}: {exc}")
            raise
        finally:
            self._in_flight.discard(issue_id)

        self._events.emit("mutation.confirmed", issue_id=issue_id, action=action)
        self.schedule_refresh()
        return plan.record

    def _rollback(self, snapshot: list[IssueRecord], issue_id: str, action: str, cause: str) -> None:
        self._cache.restore(snapshot, issue_id)
        self._events.emit("mutation.rolled_back", issue_id=issue_id, action=action, error=cause)
