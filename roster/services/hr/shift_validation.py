"""
One-shift-per-day rule.

For a fixed (user, date) several shifts may coexist only when every one of them
is ``specific_hours``. Functions here are pure: the caller hands over a fresh
snapshot of the shifts already stored for the key.
"""

from typing import Iterable, List, Optional

from roster.core.exceptions import ValidationError
from roster.models.shared.enums import RejectReason, ShiftType
from roster.schemas.hr.shift_schema import ShiftCandidate, ShiftFields, ShiftRecord, ValidationResult
from roster.utils.validators.validation_utils import is_valid_date_range, is_valid_shift


def check_well_formed(shift: ShiftFields) -> ValidationResult:
    """Fields required by the shift type are present and consistent."""
    if shift.shift_type == ShiftType.SPECIFIC_HOURS:
        if shift.start_time is None or shift.end_time is None:
            return ValidationResult.reject(
                RejectReason.MISSING_TIMES, "Start and end time are required for specific hours"
            )
        if not is_valid_shift(shift.start_time, shift.end_time):
            return ValidationResult.reject(
                RejectReason.INVALID_TIME_RANGE, "Start time must be before end time"
            )
    elif shift.shift_type == ShiftType.HALF_DAY:
        if shift.half_day_type is None:
            return ValidationResult.reject(
                RejectReason.MISSING_HALF_DAY_TYPE, "Choose morning or afternoon for a half day"
            )
    elif shift.shift_type in (ShiftType.SICK_LEAVE, ShiftType.UNAVAILABLE):
        if not is_valid_date_range(shift.start_date, shift.end_date):
            return ValidationResult.reject(
                RejectReason.INVALID_DATE_RANGE, "End date cannot precede start date"
            )
    elif shift.shift_type == ShiftType.FULL_DAY:
        pass
    else:
        raise ValueError(f"Unsupported shift type: {shift.shift_type!r}")
    return ValidationResult.admit()


def can_coexist(shift_types: Iterable[ShiftType]) -> bool:
    """True when a (user, date) holding these types respects the one-shift-per-day rule."""
    shift_types = list(shift_types)
    return len(shift_types) <= 1 or all(t == ShiftType.SPECIFIC_HOURS for t in shift_types)


def validate(
    candidate: ShiftCandidate,
    existing_for_same_user_date: Iterable[ShiftRecord],
    excluding_id: Optional[int] = None,
) -> ValidationResult:
    """Admit or reject `candidate` given the shifts already stored for its (user, date)."""
    well_formed = check_well_formed(candidate)
    if not well_formed.admitted:
        return well_formed

    others: List[ShiftRecord] = [
        s for s in existing_for_same_user_date
        if excluding_id is None or s.id != excluding_id
    ]
    if not others:
        return ValidationResult.admit()

    if can_coexist([candidate.shift_type] + [s.shift_type for s in others]):
        return ValidationResult.admit()

    return ValidationResult.reject(
        RejectReason.SINGLE_SHIFT_PER_DAY,
        f"User {candidate.user_id} already has a shift on {candidate.shift_date.isoformat()}; "
        "only specific-hours shifts can share a day",
        blocking_ids=[s.id for s in others],
    )


def ensure_admitted(
    candidate: ShiftCandidate,
    existing_for_same_user_date: Iterable[ShiftRecord],
    excluding_id: Optional[int] = None,
) -> None:
    result = validate(candidate, existing_for_same_user_date, excluding_id)
    if not result.admitted:
        raise ValidationError(result.message, code=result.reason.value)
