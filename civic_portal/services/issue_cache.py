"""이슈 캐시 — 로컬에 보관하는 공유 이슈 목록.

Issue cache — the single shared, ordered, in-memory issue collection.
Read by the listing pipeline; written only by the optimistic mutation
controller (plus the initial load).

Order matters: the pipeline breaks sort ties by collection order, so
every write keeps each record at its position.
"""

from collections.abc import Collection, Iterable

from civic_portal.models.issue import IssueRecord


class IssueCache:
    """순서를 유지하는 이슈 캐시.

    Ordered issue cache keyed by issue id.
    """

    def __init__(self, records: Iterable[IssueRecord] = ()) -> None:
        self._records: list[IssueRecord] = list(records)
        self._loaded: bool = bool(self._records)

    @property
    def loaded(self) -> bool:
        """원격 목록을 한 번이라도 받았는지 (Whether a remote list has been loaded)."""
        return self._loaded

    def __len__(self) -> int:
        return len(self._records)

    def load(self, records: Iterable[IssueRecord]) -> None:
        """캐시 전체를 교체합니다 — 최초 로드 전용 (Wholesale fill, initial load only)."""
        self._records = list(records)
        self._loaded = True

    def all(self) -> list[IssueRecord]:
        """현재 목록의 얕은 복사본 (Shallow copy of the current ordered list)."""
        return list(self._records)

    def _index(self, issue_id: str) -> int | None:
        for index, record in enumerate(self._records):
            if record.id == issue_id:
                return index
        return None

    def get(self, issue_id: str) -> IssueRecord | None:
        index = self._index(issue_id)
        return None if index is None else self._records[index]

    def replace(self, record: IssueRecord) -> None:
        """같은 ID의 레코드를 제자리에서 교체하거나, 없으면 끝에 추가합니다."""
        index = self._index(record.id)
        if index is None:
            self._records.append(record)
        else:
            self._records[index] = record

    def remove(self, issue_id: str) -> IssueRecord | None:
        index = self._index(issue_id)
        if index is None:
            return None
        return self._records.pop(index)

    def snapshot(self) -> list[IssueRecord]:
        """캐시의 깊은 복사본 (Deep copy of the whole collection)."""
        return [record.model_copy(deep=True) for record in self._records]

    def restore(self, snapshot: list[IssueRecord], issue_id: str) -> None:
        """스냅샷에 있던 그대로 해당 이슈를 복원합니다.

        Restore the snapshotted entry for ``issue_id`` exactly: same value,
        same position. An entry that was removed is re-inserted; an entry the
        snapshot did not contain is dropped. Other ids are left as they are,
        so concurrent mutations on different issues never undo each other.
        """
        current = self._index(issue_id)
        if current is not None:
            self._records.pop(current)

        for position, record in enumerate(snapshot):
            if record.id == issue_id:
                # 스냅샷 이후 앞쪽 항목이 바뀌었을 수 있어 이웃 기준으로 위치 계산
                anchor = self._position_after(snapshot[:position])
                self._records.insert(anchor, record.model_copy(deep=True))
                return

    def _position_after(self, preceding: list[IssueRecord]) -> int:
        # 스냅샷에서 바로 앞에 있던 항목 중 아직 캐시에 있는 것 뒤에 삽입
        for record in reversed(preceding):
            index = self._index(record.id)
            if index is not None:
                return index + 1
        return 0

    def merge(self, records: Iterable[IssueRecord], protected_ids: Collection[str] = ()) -> None:
        """원격 목록을 ID 단위로 병합합니다.

        Id-scoped reconciliation with a freshly fetched remote list.
        The remote order wins; records whose id is protected (a mutation is
        still in flight) keep their local optimistic value, and are kept
        even when the remote list no longer contains them.

        Args:
            records: 원격에서 받은 최신 목록 (Freshly fetched remote records)
            protected_ids: 진행 중인 변경이 있는 ID (Ids with a mutation in flight)
        """
        local: dict[str, IssueRecord] = {r.id: r for r in self._records}
        merged: list[IssueRecord] = []
        seen: set[str] = set()

        for record in records:
            if record.id in seen:
                continue
            seen.add(record.id)
            if record.id not in protected_ids:
                merged.append(record)
            elif record.id in local:
                merged.append(local[record.id])
            # 보호 대상이지만 로컬에 없음 — 진행 중인 삭제 (In-flight delete stays removed)

        # 원격 목록에 없지만 진행 중인 항목은 유지 (Keep in-flight records missing remotely)
        for record in self._records:
            if record.id in protected_ids and record.id not in seen:
                merged.append(record)

        self._records = merged
        self._loaded = True
