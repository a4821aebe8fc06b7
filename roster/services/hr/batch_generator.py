import logging
from datetime import date
from typing import List, Optional, Sequence

from roster.core.exceptions import EmptyBatchError, ValidationError
from roster.models.shared.enums import PeriodType, TargetType
from roster.schemas.hr.batch_schema import BatchSpec
from roster.schemas.hr.shift_schema import ShiftCandidate
from roster.services.hr.shift_validation import check_well_formed
from roster.utils.date_utils import iter_dates, month_bounds, ui_weekday_of, week_block_bounds

logger = logging.getLogger(__name__)


def resolve_period_dates(spec: BatchSpec) -> List[date]:
    """Every calendar date covered by the period, ascending; weekdays are not applied here."""
    if spec.period_type == PeriodType.FULL_MONTH:
        start, end = month_bounds(spec.year, spec.month)
        return list(iter_dates(start, end))

    if spec.period_type == PeriodType.SINGLE_WEEK:
        week_numbers = [spec.week]
    elif spec.period_type == PeriodType.MULTIPLE_WEEKS:
        week_numbers = spec.weeks
    else:
        raise ValueError(f"Unsupported period type: {spec.period_type!r}")

    dates = set()
    for week_number in week_numbers:
        bounds = week_block_bounds(spec.year, spec.month, week_number)
        if bounds is None:
            logger.info(f"Week {week_number} is outside {spec.year}-{spec.month:02d}, no dates")
            continue
        dates.update(iter_dates(*bounds))
    return sorted(dates)


def matching_dates(spec: BatchSpec) -> List[date]:
    """Period dates whose UI weekday slot was selected."""
    selected = set(spec.weekdays)
    return [d for d in resolve_period_dates(spec) if ui_weekday_of(d) in selected]


def resolve_target_users(spec: BatchSpec, active_user_ids: Optional[Sequence[str]] = None) -> List[str]:
    if spec.target_type == TargetType.SPECIFIC:
        return list(spec.user_ids)
    if spec.target_type == TargetType.ALL:
        if active_user_ids is None:
            raise ValueError("Active user ids are required to target all employees")
        users = []
        for user_id in active_user_ids:
            if user_id not in users:
                users.append(user_id)
        return users
    raise ValueError(f"Unsupported target type: {spec.target_type!r}")


def generate(spec: BatchSpec, active_user_ids: Optional[Sequence[str]] = None) -> List[ShiftCandidate]:
    """
    Expand a batch spec into candidate shifts.

    Output is ordered date-major, user-minor, with exactly one candidate per
    (user, date). Raises ``EmptyBatchError`` when no date or no user survives,
    and ``ValidationError`` when the template itself is malformed.
    """
    template = spec.template()
    well_formed = check_well_formed(template)
    if not well_formed.admitted:
        raise ValidationError(well_formed.message, code=well_formed.reason.value)

    dates = matching_dates(spec)
    if not dates:
        raise EmptyBatchError(
            f"No date in {spec.year}-{spec.month:02d} matches the selected period and weekdays"
        )

    users = resolve_target_users(spec, active_user_ids)
    if not users:
        raise EmptyBatchError("No target employee selected")

    payload = template.model_dump()
    candidates = [
        ShiftCandidate(user_id=user_id, shift_date=shift_date, **payload)
        for shift_date in dates
        for user_id in users
    ]
    logger.info(
        f"Generated {len(candidates)} candidates ({len(dates)} dates x {len(users)} users) "
        f"for {spec.year}-{spec.month:02d} {spec.period_type.value}"
    )
    return candidates
