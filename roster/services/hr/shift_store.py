"""Contracts of the persistence collaborators used by the shift engine."""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from roster.schemas.hr.shift_schema import ShiftDraft, ShiftRecord


class InsertFailure(BaseModel):
    """A single item refused by the store; `index` points into the submitted list."""
    index: int
    message: str


class InsertManyResult(BaseModel):
    inserted: List[ShiftRecord] = []
    failed: List[InsertFailure] = []


class ShiftStore(ABC):
    """
    Durable storage of shift records.

    Every method may raise ``StoreError``. Snapshots returned by
    ``fetch_by_users_and_date_range`` are not kept up to date: callers fetch
    right before they decide.
    """

    @abstractmethod
    async def fetch_by_users_and_date_range(
        self, user_ids: Sequence[str], start: date, end: date
    ) -> List[ShiftRecord]:
        """Shifts of the given users with `start <= shift_date <= end`."""
        pass

    @abstractmethod
    async def get(self, shift_id: int) -> Optional[ShiftRecord]:
        pass

    @abstractmethod
    async def insert(self, shift: ShiftDraft) -> ShiftRecord:
        pass

    @abstractmethod
    async def insert_many(self, shifts: Sequence[ShiftDraft]) -> InsertManyResult:
        """
        Insert several shifts in one round trip.

        Items refused individually are reported in ``failed``; a failure of the
        whole call raises ``StoreError``.
        """
        pass

    @abstractmethod
    async def update(self, shift_id: int, patch: Dict[str, Any]) -> ShiftRecord:
        pass

    @abstractmethod
    async def delete(self, shift_id: int) -> None:
        pass


class UserDirectory(ABC):
    """Source of the "all active employees" target of a batch."""

    @abstractmethod
    async def list_active_user_ids(self) -> List[str]:
        pass
