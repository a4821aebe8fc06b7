from enum import Enum

# Enums
class ShiftType(str, Enum):
    SPECIFIC_HOURS = "specific_hours"
    FULL_DAY = "full_day"
    HALF_DAY = "half_day"
    SICK_LEAVE = "sick_leave"
    UNAVAILABLE = "unavailable"

class HalfDayType(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"

class TargetType(str, Enum):
    ALL = "all"              # All active employees
    SPECIFIC = "specific"

class PeriodType(str, Enum):
    FULL_MONTH = "full_month"
    SINGLE_WEEK = "single_week"
    MULTIPLE_WEEKS = "multiple_weeks"

class ResolutionPolicy(str, Enum):
    KEEP_EXISTING = "keep_existing"
    USE_NEW = "use_new"
    SKIP = "skip"

class RejectReason(str, Enum):
    SINGLE_SHIFT_PER_DAY = "SINGLE_SHIFT_PER_DAY"
    MISSING_TIMES = "MISSING_TIMES"
    INVALID_TIME_RANGE = "INVALID_TIME_RANGE"
    MISSING_HALF_DAY_TYPE = "MISSING_HALF_DAY_TYPE"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"
