"""
Calendar helpers for roster batches.

Every weekday check in the project goes through ``to_ui_weekday``: the UI
orders weekdays Monday first (slot 0) to Sunday (slot 6), while the native
numbering sent by browser clients (and ``isoweekday() % 7``) is Sunday = 0.
"""
import calendar
from datetime import date, timedelta
from typing import Iterable, List, Tuple

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
WORKDAY_SLOTS = [0, 1, 2, 3, 4]
ALL_WEEK_SLOTS = [0, 1, 2, 3, 4, 5, 6]
DAYS_PER_WEEK_BLOCK = 7


def native_weekday(value: date) -> int:
    """Sunday = 0 ... Saturday = 6"""
    return value.isoweekday() % 7


def to_ui_weekday(native_sunday0: int) -> int:
    """Map a Sunday=0 weekday number onto the Monday-first UI slot."""
    if not 0 <= native_sunday0 <= 6:
        raise ValueError(f"Native weekday must be between 0 and 6, got {native_sunday0}")
    return 6 if native_sunday0 == 0 else native_sunday0 - 1


def to_native_weekday(ui_slot: int) -> int:
    if not 0 <= ui_slot <= 6:
        raise ValueError(f"UI weekday slot must be between 0 and 6, got {ui_slot}")
    return 0 if ui_slot == 6 else ui_slot + 1


def ui_weekday_of(value: date) -> int:
    return to_ui_weekday(native_weekday(value))


def weekday_label(value: date) -> str:
    return WEEKDAY_LABELS[ui_weekday_of(value)]


def month_bounds(year: int, month: int) -> Tuple[date, date]:
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)


def week_block_bounds(year: int, month: int, week_number: int):
    """Bounds of the Nth 7-day block counted from the 1st of the month, or None when outside the month."""
    if week_number < 1:
        return None
    month_start, month_end = month_bounds(year, month)
    start = month_start + timedelta(days=(week_number - 1) * DAYS_PER_WEEK_BLOCK)
    if start > month_end:
        return None
    end = min(start + timedelta(days=DAYS_PER_WEEK_BLOCK - 1), month_end)
    return start, end


def iter_dates(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_week_blocks(year: int, month: int) -> List[dict]:
    """Week blocks of a month for the batch form: the last block may be shorter than 7 days."""
    blocks = []
    number = 1
    while True:
        bounds = week_block_bounds(year, month, number)
        if bounds is None:
            break
        start, end = bounds
        blocks.append({
            "number": number,
            "start": start,
            "end": end,
            "label": f"Week {number} ({weekday_label(start)} {start.day} - {weekday_label(end)} {end.day} {start.strftime('%b')})",
        })
        number += 1
    return blocks
