"""Axiom 이벤트 로거 — 낙관적 변경 및 캐시 동기화 이벤트 기록.

Axiom event logger for mutation and cache reconciliation events.
Sends structured events to the same Axiom dataset as the API logging
middleware. Acts as a no-op when Axiom is not configured.

Event names:
    mutation.applied             로컬 캐시에 낙관적 적용 (Applied to the local cache)
    mutation.confirmed           원격 쓰기 성공 (Remote write succeeded)
    mutation.rolled_back         원격 쓰기 실패 후 롤백 (Rolled back after remote failure)
    mutation.rejected_concurrent 진행 중 변경으로 거부 (Refused, another mutation in flight)
    cache.refreshed              백그라운드 동기화 완료 (Background refresh merged)
    cache.refresh_failed         백그라운드 동기화 실패 (Background refresh failed)
"""

from datetime import datetime, timezone
from typing import Any

from axiom_py import Client as AxiomClient

from civic_portal.config import settings


class EventLogger:
    """구조화 이벤트를 Axiom으로 전송합니다.

    Ingests structured events into Axiom. Ingestion failures are dropped
    so that logging never changes the outcome of a mutation.
    """

    def __init__(self, client: AxiomClient | None = None, dataset: str | None = None) -> None:
        self._dataset: str = dataset if dataset is not None else settings.AXIOM_DATASET
        self._client: AxiomClient | None = client
        if self._client is None and settings.AXIOM_API_TOKEN and self._dataset:
            self._client = AxiomClient(token=settings.AXIOM_API_TOKEN)

    @property
    def enabled(self) -> bool:
        return self._client is not None and bool(self._dataset)

    def emit(self, event: str, **fields: Any) -> None:
        """이벤트 한 건을 전송합니다 (Send one event with the given fields)."""
        if not self.enabled:
            return

        log_event: dict[str, Any] = {
            "_time": datetime.now(timezone.utc).isoformat(),
            "event": event,
        }
        log_event.update({k: v for k, v in fields.items() if v is not None})

        try:
            self._client.ingest_events(self._dataset, [log_event])
        except Exception:
            pass  # 로깅 실패가 변경 처리에 영향주지 않도록 — Never break a mutation on log failure


# 전역 이벤트 로거 — Global event logger instance
event_logger: EventLogger = EventLogger()
