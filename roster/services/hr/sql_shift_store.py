import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from roster.core.exceptions import NotFoundError, StoreError
from roster.models.hr.employee import Employee
from roster.models.hr.shift import Shift
from roster.schemas.hr.shift_schema import ShiftDraft, ShiftRecord
from roster.services.hr.shift_store import InsertManyResult, ShiftStore, UserDirectory

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = {
    "user_id", "shift_date", "shift_type", "start_time", "end_time", "half_day_type",
    "start_date", "end_date", "notes", "updated_at", "updated_by",
}


class SqlAlchemyShiftStore(ShiftStore):
    """Shift store backed by the async SQLAlchemy session; every write commits on its own."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def fetch_by_users_and_date_range(
        self, user_ids: Sequence[str], start: date, end: date
    ) -> List[ShiftRecord]:
        if not user_ids:
            return []
        try:
            result = await self.session.execute(
                select(Shift)
                .where(
                    Shift.user_id.in_(list(user_ids)),
                    Shift.shift_date >= start,
                    Shift.shift_date <= end,
                )
                .order_by(Shift.shift_date, Shift.user_id, Shift.id)
            )
            return [ShiftRecord.model_validate(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error fetching shifts for {len(user_ids)} users between {start} and {end}: {e}")
            raise StoreError("Error fetching existing shifts")

    async def get(self, shift_id: int) -> Optional[ShiftRecord]:
        try:
            shift = await self.session.get(Shift, shift_id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting shift {shift_id}: {e}")
            raise StoreError(f"Error loading shift {shift_id}")
        return ShiftRecord.model_validate(shift) if shift else None

    async def insert(self, shift: ShiftDraft) -> ShiftRecord:
        try:
            row = Shift(**self._row_values(shift))
            self.session.add(row)
            await self.session.commit()
            await self.session.refresh(row)
            return ShiftRecord.model_validate(row)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error inserting shift for user {shift.user_id} on {shift.shift_date}: {e}")
            raise StoreError(f"Error inserting shift: {e.__class__.__name__}")

    async def insert_many(self, shifts: Sequence[ShiftDraft]) -> InsertManyResult:
        # One transaction per call: either every row lands or the call raises.
        if not shifts:
            return InsertManyResult()
        try:
            rows = [Shift(**self._row_values(shift)) for shift in shifts]
            self.session.add_all(rows)
            await self.session.commit()
            for row in rows:
                await self.session.refresh(row)
            return InsertManyResult(inserted=[ShiftRecord.model_validate(row) for row in rows])
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error inserting {len(shifts)} shifts: {e}")
            raise StoreError(f"Error inserting shifts: {e.__class__.__name__}")

    async def update(self, shift_id: int, patch: Dict[str, Any]) -> ShiftRecord:
        try:
            shift = await self.session.get(Shift, shift_id)
            if not shift:
                raise NotFoundError(f"Shift {shift_id} not found")

            for field, value in patch.items():
                if field in UPDATABLE_FIELDS:
                    setattr(shift, field, value)

            await self.session.commit()
            await self.session.refresh(shift)
            return ShiftRecord.model_validate(shift)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error updating shift {shift_id}: {e}")
            raise StoreError(f"Error updating shift {shift_id}")

    async def delete(self, shift_id: int) -> None:
        try:
            shift = await self.session.get(Shift, shift_id)
            if not shift:
                raise NotFoundError(f"Shift {shift_id} not found")
            await self.session.delete(shift)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Error deleting shift {shift_id}: {e}")
            raise StoreError(f"Error deleting shift {shift_id}")

    @staticmethod
    def _row_values(shift: ShiftDraft) -> Dict[str, Any]:
        # Unstamped audit timestamps fall back to the server defaults.
        return shift.model_dump(exclude_none=True)


class SqlAlchemyUserDirectory(UserDirectory):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_active_user_ids(self) -> List[str]:
        try:
            result = await self.session.execute(
                select(Employee.user_id)
                .where(Employee.is_active == True)
                .order_by(Employee.last_name, Employee.first_name, Employee.user_id)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Error listing active employees: {e}")
            raise StoreError("Error listing active employees")
