import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple

from roster.core.exceptions import ConflictUnresolvedError, ValidationError
from roster.models.shared.enums import ResolutionPolicy
from roster.schemas.hr.batch_schema import ApplyItem, ConflictDetection, PlannedShift, ShiftConflict
from roster.schemas.hr.shift_schema import ShiftCandidate, ShiftRecord
from roster.services.hr.shift_validation import can_coexist, check_well_formed, validate

logger = logging.getLogger(__name__)

Key = Tuple[str, date]


def conflict_id_for(candidate: ShiftCandidate, position: int) -> str:
    return f"{candidate.shift_date.isoformat()}:{candidate.user_id}:{position}"


def touched_range(candidates: Sequence[ShiftCandidate]) -> Tuple[List[str], date, date]:
    """Arguments of the single bulk fetch covering every (user, date) the candidates touch."""
    if not candidates:
        raise ValueError("No candidates to cover")
    user_ids: List[str] = []
    for candidate in candidates:
        if candidate.user_id not in user_ids:
            user_ids.append(candidate.user_id)
    dates = [c.shift_date for c in candidates]
    return user_ids, min(dates), max(dates)


def _group_existing(existing_bulk: Iterable[ShiftRecord], keys: set) -> Dict[Key, List[ShiftRecord]]:
    grouped: Dict[Key, List[ShiftRecord]] = defaultdict(list)
    for shift in existing_bulk:
        if shift.key in keys:
            grouped[shift.key].append(shift)
    return grouped


def _check_candidates(candidates: Sequence[ShiftCandidate]) -> None:
    by_key: Dict[Key, List[ShiftCandidate]] = defaultdict(list)
    for position, candidate in enumerate(candidates):
        result = check_well_formed(candidate)
        if not result.admitted:
            raise ValidationError(
                f"Candidate #{position} ({candidate.user_id} on {candidate.shift_date}): {result.message}",
                code=result.reason.value,
            )
        by_key[candidate.key].append(candidate)

    for (user_id, shift_date), group in by_key.items():
        if not can_coexist(c.shift_type for c in group):
            raise ValidationError(
                f"Batch contains {len(group)} incompatible shifts for user {user_id} on {shift_date.isoformat()}",
                code="DUPLICATE_CANDIDATE",
            )


def detect(candidates: Sequence[ShiftCandidate], existing_bulk: Iterable[ShiftRecord]) -> ConflictDetection:
    """Split candidates into clean ones and conflicts against the stored shifts."""
    _check_candidates(candidates)

    existing_by_key = _group_existing(existing_bulk, {c.key for c in candidates})
    detection = ConflictDetection()
    for position, candidate in enumerate(candidates):
        existing = existing_by_key.get(candidate.key, [])
        result = validate(candidate, existing)
        if result.admitted:
            detection.clean.append(PlannedShift(position=position, candidate=candidate))
        else:
            detection.conflicts.append(ShiftConflict(
                position=position,
                candidate=candidate,
                conflict_id=conflict_id_for(candidate, position),
                existing=existing,
            ))

    logger.info(f"Conflict detection: {len(detection.clean)} clean, {len(detection.conflicts)} conflicting")
    return detection


def resolve(detection: ConflictDetection, policy_map: Mapping[str, ResolutionPolicy]) -> List[ApplyItem]:
    """
    Build the final apply list in generation order.

    Every conflict needs a policy: a missing one raises
    ``ConflictUnresolvedError`` before anything is written.
    """
    known_ids = {c.conflict_id for c in detection.conflicts}
    unknown = sorted(set(policy_map) - known_ids)
    if unknown:
        raise ValidationError(f"Unknown conflict ids: {', '.join(unknown)}", code="UNKNOWN_CONFLICT")

    unresolved = [c.conflict_id for c in detection.conflicts if c.conflict_id not in policy_map]
    if unresolved:
        raise ConflictUnresolvedError(unresolved)

    items = [ApplyItem(position=p.position, candidate=p.candidate) for p in detection.clean]
    claimed = set()
    for conflict in detection.conflicts:
        policy = ResolutionPolicy(policy_map[conflict.conflict_id])
        if policy == ResolutionPolicy.USE_NEW:
            # A stored shift is superseded once, by the first candidate claiming it.
            supersedes = [s.id for s in conflict.existing if s.id not in claimed]
            claimed.update(supersedes)
            items.append(ApplyItem(
                position=conflict.position,
                candidate=conflict.candidate,
                conflict_id=conflict.conflict_id,
                supersedes=supersedes,
            ))
        elif policy in (ResolutionPolicy.KEEP_EXISTING, ResolutionPolicy.SKIP):
            continue
        else:
            raise ValueError(f"Unsupported resolution policy: {policy!r}")

    items.sort(key=lambda item: item.position)
    return items


def count_policies(detection: ConflictDetection, policy_map: Mapping[str, ResolutionPolicy]) -> Dict[ResolutionPolicy, int]:
    counts = {policy: 0 for policy in ResolutionPolicy}
    for conflict in detection.conflicts:
        counts[ResolutionPolicy(policy_map[conflict.conflict_id])] += 1
    return counts
