from datetime import date, time
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, validator

from roster.models.shared.enums import HalfDayType, PeriodType, ResolutionPolicy, ShiftType, TargetType
from roster.schemas.hr.shift_schema import ShiftCandidate, ShiftFields, ShiftRecord


class BatchSpec(BaseModel):
    """Declarative request to create many shifts at once (users x period x weekdays x template)"""
    target_type: TargetType = TargetType.SPECIFIC
    user_ids: List[str] = Field(default_factory=list)
    year: int
    month: int
    period_type: PeriodType = PeriodType.FULL_MONTH
    week: Optional[int] = None
    weeks: List[int] = Field(default_factory=list)
    weekdays: List[int]  # UI slots, 0 = Monday ... 6 = Sunday

    shift_type: ShiftType
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    half_day_type: Optional[HalfDayType] = None
    notes: Optional[str] = None

    @validator('month')
    def validate_month(cls, v):
        if not (1 <= v <= 12):
            raise ValueError('Month must be between 1 and 12')
        return v

    @validator('year')
    def validate_year(cls, v):
        if not (1 <= v <= 9999):
            raise ValueError('Year out of range')
        return v

    @validator('weekdays')
    def validate_weekdays(cls, v):
        if any(day < 0 or day > 6 for day in v):
            raise ValueError('Weekdays must be UI slots between 0 (Monday) and 6 (Sunday)')
        return sorted(set(v))

    @validator('user_ids')
    def validate_user_ids(cls, v):
        cleaned = []
        for user_id in v:
            user_id = user_id.strip()
            if user_id and user_id not in cleaned:
                cleaned.append(user_id)
        return cleaned

    @validator('week', always=True)
    def validate_week(cls, v, values):
        if values.get('period_type') == PeriodType.SINGLE_WEEK and v is None:
            raise ValueError('A week number is required for a single week period')
        return v

    @validator('weeks', always=True)
    def validate_weeks(cls, v, values):
        if values.get('period_type') == PeriodType.MULTIPLE_WEEKS and not v:
            raise ValueError('At least one week number is required for a multiple weeks period')
        return sorted(set(v))

    def template(self) -> ShiftFields:
        return ShiftFields(
            shift_type=self.shift_type,
            start_time=self.start_time,
            end_time=self.end_time,
            half_day_type=self.half_day_type,
            notes=self.notes,
        ).normalized()


class PlannedShift(BaseModel):
    """A candidate with its position in generation order"""
    position: int
    candidate: ShiftCandidate


class ShiftConflict(PlannedShift):
    conflict_id: str
    existing: List[ShiftRecord]


class ApplyItem(PlannedShift):
    """One entry of the final apply list; `supersedes` holds the ids replaced by the candidate"""
    conflict_id: Optional[str] = None
    supersedes: List[int] = Field(default_factory=list)


class ConflictDetection(BaseModel):
    clean: List[PlannedShift] = Field(default_factory=list)
    conflicts: List[ShiftConflict] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.clean) + len(self.conflicts)


class BatchItemError(BaseModel):
    """A failed item; `stored` is set when part of the item landed before the failure"""
    item: ApplyItem
    message: str
    stored: Optional[ShiftRecord] = None


class BatchExecutionResult(BaseModel):
    total: int
    created_count: int
    errors: List[BatchItemError] = Field(default_factory=list)
    created: List[ShiftRecord] = Field(default_factory=list)
    cancelled: bool = False


class MonthWeekBlock(BaseModel):
    number: int
    start: date
    end: date
    label: str


class BatchPreview(BaseModel):
    total_candidates: int
    clean_count: int
    conflicts: List[ShiftConflict]
    candidates: List[ShiftCandidate]


class BatchCommitRequest(BaseModel):
    spec: BatchSpec
    resolutions: Dict[str, ResolutionPolicy] = {}


class BatchCommitResult(BaseModel):
    """Outcome of a batch commit; store failures are listed per item next to the created count"""
    generated: int
    conflicts: int
    kept_existing: int
    skipped: int
    replaced: int
    execution: BatchExecutionResult
