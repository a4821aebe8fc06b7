from datetime import date, time
from typing import Optional


def is_valid_shift(start_time: time, end_time: time) -> bool:
    """Check that a same-day shift starts strictly before it ends."""
    return start_time < end_time


def is_valid_date_range(start_date: Optional[date], end_date: Optional[date]) -> bool:
    """An open-ended range is valid; otherwise the end cannot precede the start."""
    if start_date is None or end_date is None:
        return True
    return end_date >= start_date
