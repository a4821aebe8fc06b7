import asyncio
import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Sequence

from roster.core.exceptions import BaseAppException, NotFoundError, StoreError, ValidationError
from roster.core.logging import log_actor_action
from roster.models.shared.enums import RejectReason, ResolutionPolicy, TargetType
from roster.schemas.hr.batch_schema import BatchCommitResult, BatchPreview, BatchSpec, MonthWeekBlock
from roster.schemas.hr.shift_schema import (
    ShiftCandidate, ShiftCreate, ShiftDraft, ShiftRecord, ShiftUpdate, ValidationResult
)
from roster.services.hr import batch_generator, conflict_resolver
from roster.services.hr.batch_executor import BatchExecutor, ProgressCallback
from roster.services.hr.shift_store import ShiftStore, UserDirectory
from roster.services.hr.shift_validation import ensure_admitted, validate
from roster.utils.date_utils import month_week_blocks
from roster.utils.validators.validation_utils import is_valid_date_range

logger = logging.getLogger(__name__)


class ShiftService:
    def __init__(
        self,
        store: ShiftStore,
        directory: Optional[UserDirectory] = None,
        executor: Optional[BatchExecutor] = None,
    ):
        self.store = store
        self.directory = directory
        self.executor = executor or BatchExecutor(store)

    async def _snapshot_for(self, user_id: str, shift_date: date) -> List[ShiftRecord]:
        """Fresh read of the shifts stored for one (user, date)."""
        return await self.store.fetch_by_users_and_date_range([user_id], shift_date, shift_date)

    # region Single shift

    async def list_shifts(self, user_ids: Sequence[str], start: date, end: date) -> List[ShiftRecord]:
        if not is_valid_date_range(start, end):
            raise ValidationError("End date cannot precede start date", code=RejectReason.INVALID_DATE_RANGE.value)
        if not user_ids:
            if self.directory is None:
                return []
            user_ids = await self.directory.list_active_user_ids()
        return await self.store.fetch_by_users_and_date_range(user_ids, start, end)

    async def get_shift(self, shift_id: int) -> ShiftRecord:
        shift = await self.store.get(shift_id)
        if shift is None:
            raise NotFoundError(f"Shift {shift_id} not found")
        return shift

    async def check_shift(self, data: ShiftCandidate, excluding_id: Optional[int] = None) -> ValidationResult:
        """Run the one-shift-per-day rule without writing anything."""
        candidate = data.normalized()
        existing = await self._snapshot_for(candidate.user_id, candidate.shift_date)
        return validate(candidate, existing, excluding_id)

    async def create_shift(self, data: ShiftCreate, actor_id: str) -> ShiftRecord:
        try:
            candidate = data.normalized()
            existing = await self._snapshot_for(candidate.user_id, candidate.shift_date)
            ensure_admitted(candidate, existing)

            now = datetime.now(timezone.utc)
            shift = await self.store.insert(ShiftDraft(
                **candidate.model_dump(),
                created_at=now,
                updated_at=now,
                created_by=actor_id,
                updated_by=actor_id,
            ))

            logger.info(f"Shift {shift.shift_type.value} created for user {shift.user_id} on {shift.shift_date} by user {actor_id}")
            log_actor_action(actor_id, "CREATE", "shift", shift.id)
            return shift
        except BaseAppException:
            raise
        except Exception as e:
            logger.error(f"Error creating shift for user {data.user_id} on {data.shift_date}: {e}")
            raise StoreError("Error creating shift")

    async def update_shift(self, shift_id: int, data: ShiftUpdate, actor_id: str) -> ShiftRecord:
        try:
            current = await self.get_shift(shift_id)

            merged = current.model_dump(include=set(ShiftCandidate.model_fields))
            merged.update(data.model_dump(exclude_unset=True))
            candidate = ShiftCandidate(**merged).normalized()

            existing = await self._snapshot_for(candidate.user_id, candidate.shift_date)
            ensure_admitted(candidate, existing, excluding_id=shift_id)

            patch = candidate.model_dump()
            patch.update(updated_at=datetime.now(timezone.utc), updated_by=actor_id)
            shift = await self.store.update(shift_id, patch)

            logger.info(f"Shift {shift_id} updated by user {actor_id}")
            log_actor_action(actor_id, "UPDATE", "shift", shift_id)
            return shift
        except BaseAppException:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Error updating shift {shift_id}: {e}")
            raise StoreError(f"Error updating shift {shift_id}")

    async def delete_shift(self, shift_id: int, actor_id: str) -> None:
        await self.store.delete(shift_id)
        logger.info(f"Shift {shift_id} deleted by user {actor_id}")
        log_actor_action(actor_id, "DELETE", "shift", shift_id)

    # endregion

    # region Batch allocation

    @staticmethod
    def month_weeks(year: int, month: int) -> List[MonthWeekBlock]:
        return [MonthWeekBlock(**block) for block in month_week_blocks(year, month)]

    async def _generate(self, spec: BatchSpec) -> List[ShiftCandidate]:
        active_user_ids = None
        if spec.target_type == TargetType.ALL:
            if self.directory is None:
                raise ValidationError("No employee directory configured to target all employees")
            active_user_ids = await self.directory.list_active_user_ids()
        return batch_generator.generate(spec, active_user_ids)

    async def _detect(self, candidates: List[ShiftCandidate]):
        # One bulk read covers every (user, date) of the batch.
        user_ids, start, end = conflict_resolver.touched_range(candidates)
        existing = await self.store.fetch_by_users_and_date_range(user_ids, start, end)
        return conflict_resolver.detect(candidates, existing)

    async def preview_batch(self, spec: BatchSpec, actor_id: Optional[str] = None) -> BatchPreview:
        candidates = await self._generate(spec)
        detection = await self._detect(candidates)
        logger.info(
            f"Batch preview by user {actor_id}: {len(candidates)} candidates, "
            f"{len(detection.conflicts)} conflicts"
        )
        return BatchPreview(
            total_candidates=len(candidates),
            clean_count=len(detection.clean),
            conflicts=detection.conflicts,
            candidates=candidates,
        )

    async def commit_batch(
        self,
        spec: BatchSpec,
        policies: Dict[str, ResolutionPolicy],
        actor_id: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchCommitResult:
        """
        Generate, re-check against a fresh snapshot, resolve and execute a batch.

        Conflicts are detected again here rather than reused from the preview,
        so shifts stored in between are taken into account. Conflict ids are
        stable for an unchanged spec and store, so the preview's policies apply.
        Nothing is written when a policy is missing or unknown.
        """
        candidates = await self._generate(spec)
        detection = await self._detect(candidates)
        apply_list = conflict_resolver.resolve(detection, policies)
        counts = conflict_resolver.count_policies(detection, policies)

        logger.info(
            f"Committing batch for user {actor_id}: {len(candidates)} generated, "
            f"{len(detection.conflicts)} conflicts, {len(apply_list)} to apply"
        )
        execution = await self.executor.execute(
            apply_list, actor_id, on_progress=on_progress, cancel_event=cancel_event
        )
        log_actor_action(actor_id, "BATCH_COMMIT", "shift", f"{execution.created_count}/{execution.total}")

        return BatchCommitResult(
            generated=len(candidates),
            conflicts=len(detection.conflicts),
            kept_existing=counts[ResolutionPolicy.KEEP_EXISTING],
            skipped=counts[ResolutionPolicy.SKIP],
            replaced=counts[ResolutionPolicy.USE_NEW],
            execution=execution,
        )

    # endregion
