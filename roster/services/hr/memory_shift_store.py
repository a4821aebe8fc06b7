from datetime import date
from itertools import count
from typing import Any, Dict, Iterable, List, Optional, Sequence

from roster.core.exceptions import NotFoundError
from roster.schemas.hr.shift_schema import ShiftDraft, ShiftRecord
from roster.services.hr.shift_store import InsertManyResult, ShiftStore, UserDirectory


class InMemoryShiftStore(ShiftStore):
    """Process-local shift store for development and tests."""

    def __init__(self, shifts: Optional[Iterable[ShiftRecord]] = None):
        self._rows: Dict[int, ShiftRecord] = {}
        self._ids = count(1)
        for shift in shifts or []:
            self._rows[shift.id] = shift
        if self._rows:
            self._ids = count(max(self._rows) + 1)
        self.calls: List[str] = []

    @property
    def shifts(self) -> List[ShiftRecord]:
        return sorted(self._rows.values(), key=lambda s: (s.shift_date, s.user_id, s.id))

    def for_key(self, user_id: str, shift_date: date) -> List[ShiftRecord]:
        return [s for s in self.shifts if s.user_id == user_id and s.shift_date == shift_date]

    async def fetch_by_users_and_date_range(
        self, user_ids: Sequence[str], start: date, end: date
    ) -> List[ShiftRecord]:
        self.calls.append("fetch")
        wanted = set(user_ids)
        return [s for s in self.shifts if s.user_id in wanted and start <= s.shift_date <= end]

    async def get(self, shift_id: int) -> Optional[ShiftRecord]:
        self.calls.append("get")
        return self._rows.get(shift_id)

    async def insert(self, shift: ShiftDraft) -> ShiftRecord:
        self.calls.append("insert")
        return self._store(shift)

    async def insert_many(self, shifts: Sequence[ShiftDraft]) -> InsertManyResult:
        self.calls.append("insert_many")
        return InsertManyResult(inserted=[self._store(shift) for shift in shifts])

    async def update(self, shift_id: int, patch: Dict[str, Any]) -> ShiftRecord:
        self.calls.append("update")
        current = self._rows.get(shift_id)
        if current is None:
            raise NotFoundError(f"Shift {shift_id} not found")
        updated = ShiftRecord.model_validate({**current.model_dump(), **patch, "id": shift_id})
        self._rows[shift_id] = updated
        return updated

    async def delete(self, shift_id: int) -> None:
        self.calls.append("delete")
        if self._rows.pop(shift_id, None) is None:
            raise NotFoundError(f"Shift {shift_id} not found")

    def _store(self, shift: ShiftDraft) -> ShiftRecord:
        record = ShiftRecord(id=next(self._ids), **shift.model_dump())
        self._rows[record.id] = record
        return record


class InMemoryUserDirectory(UserDirectory):
    def __init__(self, active_user_ids: Iterable[str] = ()):
        self.active_user_ids = list(active_user_ids)

    async def list_active_user_ids(self) -> List[str]:
        return list(self.active_user_ids)
