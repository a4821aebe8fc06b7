from datetime import date, time
from itertools import count

import pytest

from roster.models.shared.enums import HalfDayType, ShiftType
from roster.schemas.hr.shift_schema import ShiftCandidate, ShiftRecord


def _fields_for(shift_type: ShiftType, fields: dict) -> dict:
    if shift_type == ShiftType.SPECIFIC_HOURS:
        fields.setdefault("start_time", time(9, 0))
        fields.setdefault("end_time", time(17, 0))
    elif shift_type == ShiftType.HALF_DAY:
        fields.setdefault("half_day_type", HalfDayType.MORNING)
    return fields


@pytest.fixture
def make_candidate():
    """Factory of well-formed candidates; pass explicit None to drop a required field"""
    def _make(user_id="u1", shift_date=date(2025, 4, 1), shift_type=ShiftType.FULL_DAY, **fields):
        return ShiftCandidate(
            user_id=user_id,
            shift_date=shift_date,
            shift_type=shift_type,
            **_fields_for(shift_type, fields),
        )
    return _make


@pytest.fixture
def make_record():
    """Factory of stored shifts with increasing ids starting at 100"""
    ids = count(100)

    def _make(user_id="u1", shift_date=date(2025, 4, 1), shift_type=ShiftType.FULL_DAY, id=None, **fields):
        return ShiftRecord(
            id=id if id is not None else next(ids),
            user_id=user_id,
            shift_date=shift_date,
            shift_type=shift_type,
            **_fields_for(shift_type, fields),
        )
    return _make


def assert_single_shift_per_day(shifts):
    """Every (user, date) holding more than one shift holds only specific-hours shifts."""
    by_key = {}
    for shift in shifts:
        by_key.setdefault((shift.user_id, shift.shift_date), []).append(shift.shift_type)
    for key, types in by_key.items():
        if len(types) > 1:
            assert all(t == ShiftType.SPECIFIC_HOURS for t in types), f"{key} holds {types}"


@pytest.fixture
def single_shift_per_day():
    return assert_single_shift_per_day
