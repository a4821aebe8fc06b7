import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from roster.core.config import settings
from roster.schemas.hr.batch_schema import ApplyItem, BatchExecutionResult, BatchItemError
from roster.schemas.hr.shift_schema import ShiftDraft, ShiftRecord
from roster.services.hr.shift_store import ShiftStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], Union[None, Awaitable[None]]]

CANCELLED_MESSAGE = "Cancelled before this chunk was committed"
UNCONFIRMED_MESSAGE = "Insert not confirmed by the shift store"


def chunked(items: Sequence[ApplyItem], size: int) -> List[List[ApplyItem]]:
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def _error_message(error: Exception) -> str:
    detail = getattr(error, "detail", None)
    return str(detail) if detail else str(error) or error.__class__.__name__


class BatchExecutor:
    """
    Commits an apply list to the shift store in fixed-size chunks, one chunk at a time.

    A failing chunk never stops the run: its items are recorded as errors and the
    next chunk is attempted. On return ``created_count + len(errors)`` always
    equals the number of submitted items.
    """

    def __init__(
        self,
        store: ShiftStore,
        chunk_size: Optional[int] = None,
        pacing_seconds: Optional[float] = None,
    ):
        self.store = store
        self.chunk_size = chunk_size if chunk_size is not None else settings.BATCH_CHUNK_SIZE
        self.pacing_seconds = pacing_seconds if pacing_seconds is not None else settings.BATCH_PACING_SECONDS
        if self.chunk_size < 1:
            raise ValueError("Chunk size must be at least 1")

    async def execute(
        self,
        apply_list: Sequence[ApplyItem],
        actor_id: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> BatchExecutionResult:
        total = len(apply_list)
        created: List[ShiftRecord] = []
        errors: List[BatchItemError] = []
        cancelled = False

        chunks = chunked(apply_list, self.chunk_size)
        logger.info(f"Executing batch of {total} shifts in {len(chunks)} chunks of {self.chunk_size} for user {actor_id}")

        for index, chunk in enumerate(chunks):
            if cancel_event is not None and cancel_event.is_set():
                remaining = [item for pending in chunks[index:] for item in pending]
                errors.extend(BatchItemError(item=item, message=CANCELLED_MESSAGE) for item in remaining)
                cancelled = True
                logger.warning(f"Batch cancelled before chunk {index + 1}/{len(chunks)}: {len(remaining)} shifts not attempted")
                break

            outcomes = await self._commit_chunk(chunk, actor_id)
            chunk_created = 0
            for item, record, message in outcomes:
                if message is None:
                    created.append(record)
                    chunk_created += 1
                else:
                    errors.append(BatchItemError(item=item, message=message, stored=record))

            logger.info(
                f"Chunk {index + 1}/{len(chunks)} committed: {chunk_created} created, "
                f"{len(chunk) - chunk_created} failed"
            )

            if on_progress is not None:
                outcome = on_progress(len(created), len(errors), total)
                if inspect.isawaitable(outcome):
                    await outcome

            if self.pacing_seconds and index < len(chunks) - 1:
                await asyncio.sleep(self.pacing_seconds)

        logger.info(f"Batch completed: {len(created)} created, {len(errors)} errors out of {total}")
        return BatchExecutionResult(
            total=total,
            created_count=len(created),
            errors=errors,
            created=created,
            cancelled=cancelled,
        )

    async def _commit_chunk(
        self, chunk: List[ApplyItem], actor_id: str
    ) -> List[Tuple[ApplyItem, Optional[ShiftRecord], Optional[str]]]:
        """
        Outcome per item, in chunk order: (item, stored record or None, error message or None).

        A message means the item failed; a record next to it is what landed before the failure.
        """
        now = datetime.now(timezone.utc)
        outcomes = {}

        for index, item in enumerate(chunk):
            if item.supersedes:
                outcomes[index] = await self._replace(item, actor_id, now)

        insert_indices = [index for index, item in enumerate(chunk) if not item.supersedes]
        if insert_indices:
            inserted = await self._insert([chunk[index] for index in insert_indices], actor_id, now)
            outcomes.update(zip(insert_indices, inserted))

        return [outcomes[index] for index in range(len(chunk))]

    async def _insert(self, items: List[ApplyItem], actor_id: str, now: datetime):
        drafts = [self._draft(item, actor_id, now) for item in items]
        try:
            result = await self.store.insert_many(drafts)
        except Exception as e:
            logger.error(f"Error inserting chunk of {len(items)} shifts: {e}")
            message = _error_message(e)
            return [(item, None, message) for item in items]

        failed = {}
        for failure in result.failed:
            if 0 <= failure.index < len(items):
                failed[failure.index] = failure.message

        inserted = iter(result.inserted)
        outcomes = []
        for index, item in enumerate(items):
            if index in failed:
                outcomes.append((item, None, failed[index]))
                continue
            record = next(inserted, None)
            outcomes.append((item, record, None if record is not None else UNCONFIRMED_MESSAGE))
        return outcomes

    async def _replace(self, item: ApplyItem, actor_id: str, now: datetime):
        """
        Supersede the stored shifts of a `use_new` item: the first one is updated in place,
        the others are deleted once that update has landed.
        """
        keep_id, *extra_ids = item.supersedes
        patch = item.candidate.model_dump()
        patch.update(updated_at=now, updated_by=actor_id)
        try:
            record = await self.store.update(keep_id, patch)
        except Exception as e:
            logger.error(f"Error replacing shift {keep_id} for user {item.candidate.user_id} on {item.candidate.shift_date}: {e}")
            return item, None, _error_message(e)

        leftover = []
        for shift_id in extra_ids:
            try:
                await self.store.delete(shift_id)
            except Exception as e:
                logger.error(f"Shift {keep_id} replaced but superseded shift {shift_id} was not deleted: {e}")
                leftover.append(f"{shift_id} ({_error_message(e)})")
        if leftover:
            return item, record, f"Shift {keep_id} updated but superseded shifts were not deleted: {', '.join(leftover)}"
        return item, record, None

    @staticmethod
    def _draft(item: ApplyItem, actor_id: str, now: datetime) -> ShiftDraft:
        return ShiftDraft(
            **item.candidate.model_dump(),
            created_at=now,
            updated_at=now,
            created_by=actor_id,
            updated_by=actor_id,
        )
