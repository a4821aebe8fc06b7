from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, validator

from roster.models.shared.enums import HalfDayType, RejectReason, ShiftType

RANGE_SHIFT_TYPES = (ShiftType.SICK_LEAVE, ShiftType.UNAVAILABLE)


class ShiftFields(BaseModel):
    """Type-dependent shift payload shared by candidates, templates and records"""
    shift_type: ShiftType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_type: Optional[HalfDayType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @validator('notes')
    def strip_notes(cls, v):
        if v is None:
            return None
        v = v.strip()
        return v or None

    def normalized(self):
        """Copy with the fields that do not belong to the shift type cleared."""
        updates = {}
        if self.shift_type != ShiftType.SPECIFIC_HOURS:
            updates.update(start_time=None, end_time=None)
        if self.shift_type != ShiftType.HALF_DAY:
            updates["half_day_type"] = None
        if self.shift_type not in RANGE_SHIFT_TYPES:
            updates.update(start_date=None, end_date=None)
        return self.model_copy(update=updates)


class ShiftCandidate(ShiftFields):
    """A shift that has not been stored yet"""
    user_id: str
    shift_date: date

    @validator('user_id')
    def validate_user_id(cls, v):
        if not v or not v.strip():
            raise ValueError('User ID is required')
        return v.strip()

    @property
    def key(self):
        return (self.user_id, self.shift_date)


class ShiftCreate(ShiftCandidate):
    pass


class ShiftUpdate(BaseModel):
    """Partial edit of a stored shift; the owning user cannot change"""
    shift_date: Optional[date] = None
    shift_type: Optional[ShiftType] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_type: Optional[HalfDayType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ShiftDraft(ShiftCandidate):
    """Candidate stamped with audit fields, ready to be inserted"""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class ShiftRecord(ShiftDraft):
    """A stored shift, as returned by the shift store"""
    id: int

    model_config = ConfigDict(from_attributes=True)


class ShiftCheckRequest(ShiftCandidate):
    excluding_id: Optional[int] = None


class ValidationResult(BaseModel):
    """Outcome of the one-shift-per-day rule for a single candidate"""
    admitted: bool
    reason: Optional[RejectReason] = None
    message: Optional[str] = None
    blocking_ids: List[int] = Field(default_factory=list)

    @classmethod
    def admit(cls) -> "ValidationResult":
        return cls(admitted=True)

    @classmethod
    def reject(cls, reason: RejectReason, message: str, blocking_ids: Optional[List[int]] = None) -> "ValidationResult":
        return cls(admitted=False, reason=reason, message=message, blocking_ids=blocking_ids or [])
