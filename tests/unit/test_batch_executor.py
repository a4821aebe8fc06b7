import asyncio
from datetime import date, timedelta

import pytest

from roster.core.exceptions import StoreError
from roster.models.shared.enums import ShiftType
from roster.schemas.hr.batch_schema import ApplyItem
from roster.services.hr import batch_executor
from roster.services.hr.batch_executor import CANCELLED_MESSAGE, UNCONFIRMED_MESSAGE, BatchExecutor
from roster.services.hr.memory_shift_store import InMemoryShiftStore
from roster.services.hr.shift_store import InsertFailure, InsertManyResult

ACTOR = "manager-1"


class FailingChunkStore(InMemoryShiftStore):
    """Raises on the given insert_many calls (1-based)"""

    def __init__(self, failing_calls, shifts=None):
        super().__init__(shifts)
        self.failing_calls = set(failing_calls)
        self.insert_many_calls = 0

    async def insert_many(self, shifts):
        self.insert_many_calls += 1
        if self.insert_many_calls in self.failing_calls:
            self.calls.append("insert_many")
            raise StoreError("Database unavailable")
        return await super().insert_many(shifts)


class FailingWriteStore(InMemoryShiftStore):
    """Raises on every call to the named single-shift writes (`update`, `delete`)"""

    def __init__(self, failing, shifts=None):
        super().__init__(shifts)
        self.failing = set(failing)

    async def update(self, shift_id, patch):
        if "update" in self.failing:
            self.calls.append("update")
            raise StoreError("Database unavailable")
        return await super().update(shift_id, patch)

    async def delete(self, shift_id):
        if "delete" in self.failing:
            self.calls.append("delete")
            raise StoreError("Database unavailable")
        return await super().delete(shift_id)


class PartialStore(InMemoryShiftStore):
    """Refuses the submitted items at `refused` indices and silently drops `dropped` ones"""

    def __init__(self, refused=(), dropped=()):
        super().__init__()
        self.refused = set(refused)
        self.dropped = set(dropped)

    async def insert_many(self, shifts):
        inserted, failed = [], []
        for index, shift in enumerate(shifts):
            if index in self.refused:
                failed.append(InsertFailure(index=index, message="Duplicate row"))
            elif index not in self.dropped:
                inserted.append(self._store(shift))
        return InsertManyResult(inserted=inserted, failed=failed)


@pytest.fixture
def apply_list(make_candidate):
    def _make(n, user_id="u1"):
        start = date(2025, 4, 1)
        return [
            ApplyItem(position=i, candidate=make_candidate(user_id, start + timedelta(days=i)))
            for i in range(n)
        ]
    return _make


class TestExecute:
    async def test_failed_chunk_does_not_stop_the_run(self, apply_list):
        """Test that 12 items in chunks of 5 with a failing third chunk give 10 created and 2 errors"""
        store = FailingChunkStore(failing_calls={3})
        progress = []
        executor = BatchExecutor(store, chunk_size=5, pacing_seconds=0)

        result = await executor.execute(
            apply_list(12), ACTOR, on_progress=lambda *args: progress.append(args)
        )

        assert result.total == 12
        assert result.created_count == 10
        assert [e.item.position for e in result.errors] == [10, 11]
        assert all(e.message == "Database unavailable" for e in result.errors)
        assert progress == [(5, 0, 12), (10, 0, 12), (10, 2, 12)]
        assert len(store.shifts) == 10
        assert not result.cancelled

    async def test_middle_chunk_failure(self, apply_list):
        store = FailingChunkStore(failing_calls={2})
        result = await BatchExecutor(store, chunk_size=5, pacing_seconds=0).execute(apply_list(12), ACTOR)

        assert result.created_count == 7
        assert [e.item.position for e in result.errors] == [5, 6, 7, 8, 9]
        assert result.created_count + len(result.errors) == result.total

    async def test_progress_is_monotonic(self, apply_list):
        store = FailingChunkStore(failing_calls={1, 3})
        progress = []
        await BatchExecutor(store, chunk_size=2, pacing_seconds=0).execute(
            apply_list(7), ACTOR, on_progress=lambda *args: progress.append(args)
        )

        assert len(progress) == 4
        for before, after in zip(progress, progress[1:]):
            assert after[0] >= before[0]
            assert after[1] >= before[1]
            assert after[0] + after[1] > before[0] + before[1]
        assert progress[-1] == (3, 4, 7)

    async def test_async_progress_callback(self, apply_list):
        seen = []

        async def on_progress(created, errors, total):
            seen.append((created, errors, total))

        await BatchExecutor(InMemoryShiftStore(), chunk_size=3, pacing_seconds=0).execute(
            apply_list(4), ACTOR, on_progress=on_progress
        )
        assert seen == [(3, 0, 4), (4, 0, 4)]

    async def test_one_insert_many_per_chunk(self, apply_list):
        store = InMemoryShiftStore()
        await BatchExecutor(store, chunk_size=5, pacing_seconds=0).execute(apply_list(11), ACTOR)
        assert store.calls == ["insert_many"] * 3

    async def test_audit_fields_stamped(self, apply_list):
        """Test that created shifts carry the acting user and a creation time"""
        result = await BatchExecutor(InMemoryShiftStore(), pacing_seconds=0).execute(apply_list(2), ACTOR)

        for shift in result.created:
            assert shift.created_by == ACTOR
            assert shift.updated_by == ACTOR
            assert shift.created_at is not None

    async def test_pacing_between_chunks_only(self, apply_list, monkeypatch):
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        monkeypatch.setattr(batch_executor.asyncio, "sleep", fake_sleep)
        await BatchExecutor(InMemoryShiftStore(), chunk_size=5, pacing_seconds=0.25).execute(apply_list(12), ACTOR)

        assert sleeps == [0.25, 0.25]

    async def test_empty_apply_list(self):
        progress = []
        result = await BatchExecutor(InMemoryShiftStore(), pacing_seconds=0).execute(
            [], ACTOR, on_progress=lambda *args: progress.append(args)
        )
        assert result.total == 0
        assert result.created_count == 0
        assert progress == []


class TestPartialFailures:
    async def test_refused_items_are_errors(self, apply_list):
        """Test that items refused by the store are reported individually"""
        result = await BatchExecutor(PartialStore(refused={1}), chunk_size=5, pacing_seconds=0).execute(
            apply_list(5), ACTOR
        )

        assert result.created_count == 4
        assert [(e.item.position, e.message) for e in result.errors] == [(1, "Duplicate row")]
        assert [s.shift_date.day for s in result.created] == [1, 3, 4, 5]

    async def test_unconfirmed_items_are_errors(self, apply_list):
        """Test that an item neither inserted nor refused is not counted as created"""
        result = await BatchExecutor(PartialStore(dropped={4}), chunk_size=5, pacing_seconds=0).execute(
            apply_list(5), ACTOR
        )

        assert result.created_count == 4
        assert [(e.item.position, e.message) for e in result.errors] == [(4, UNCONFIRMED_MESSAGE)]


class TestCancellation:
    async def test_cancel_at_chunk_boundary(self, apply_list):
        """Test that cancelling stops before the next chunk and reports the rest"""
        cancel_event = asyncio.Event()
        store = InMemoryShiftStore()

        result = await BatchExecutor(store, chunk_size=5, pacing_seconds=0).execute(
            apply_list(12), ACTOR, on_progress=lambda *args: cancel_event.set(), cancel_event=cancel_event
        )

        assert result.cancelled
        assert result.created_count == 5
        assert [e.item.position for e in result.errors] == list(range(5, 12))
        assert all(e.message == CANCELLED_MESSAGE for e in result.errors)
        assert len(store.shifts) == 5

    async def test_cancelled_before_start(self, apply_list):
        cancel_event = asyncio.Event()
        cancel_event.set()
        store = InMemoryShiftStore()

        result = await BatchExecutor(store, pacing_seconds=0).execute(apply_list(3), ACTOR, cancel_event=cancel_event)

        assert result.created_count == 0
        assert len(result.errors) == 3
        assert store.calls == []


class TestReplace:
    async def test_use_new_replaces_stored_shifts(self, make_candidate, make_record):
        """Test that the first superseded shift is updated in place and the others deleted"""
        day = date(2025, 4, 1)
        store = InMemoryShiftStore([
            make_record("u1", day, ShiftType.SPECIFIC_HOURS, id=1),
            make_record("u1", day, ShiftType.SPECIFIC_HOURS, id=2),
        ])
        item = ApplyItem(
            position=0,
            candidate=make_candidate("u1", day, ShiftType.HALF_DAY),
            conflict_id="2025-04-01:u1:0",
            supersedes=[1, 2],
        )

        result = await BatchExecutor(store, pacing_seconds=0).execute([item], ACTOR)

        assert result.created_count == 1
        remaining = store.for_key("u1", day)
        assert [(s.id, s.shift_type) for s in remaining] == [(1, ShiftType.HALF_DAY)]
        assert remaining[0].start_time is None
        assert remaining[0].updated_by == ACTOR
        assert store.calls == ["update", "delete"]

    async def test_stale_supersede_is_an_item_error(self, make_candidate, apply_list):
        store = InMemoryShiftStore()
        stale = ApplyItem(position=0, candidate=make_candidate("u2"), supersedes=[999])
        items = [stale] + [item.model_copy(update={"position": item.position + 1}) for item in apply_list(2)]

        result = await BatchExecutor(store, pacing_seconds=0).execute(items, ACTOR)

        assert result.created_count == 2
        assert [e.item.position for e in result.errors] == [0]
        assert "999" in result.errors[0].message

    async def test_failed_update_keeps_every_superseded_shift(self, make_candidate, make_record):
        """Test that nothing is deleted when the in-place update of a replacement fails"""
        day = date(2025, 4, 1)
        store = FailingWriteStore(failing={"update"}, shifts=[
            make_record("u1", day, ShiftType.SPECIFIC_HOURS, id=1),
            make_record("u1", day, ShiftType.SPECIFIC_HOURS, id=2),
        ])
        item = ApplyItem(position=0, candidate=make_candidate("u1", day), supersedes=[1, 2])

        result = await BatchExecutor(store, pacing_seconds=0).execute([item], ACTOR)

        assert result.created_count == 0
        assert [e.message for e in result.errors] == ["Database unavailable"]
        assert result.errors[0].stored is None
        assert [s.id for s in store.for_key("u1", day)] == [1, 2]
        assert "delete" not in store.calls

    async def test_failed_delete_after_update_is_reported(self, make_candidate, make_record):
        """Test that a superseded shift left behind is reported with the shift that did land"""
        day = date(2025, 4, 1)
        store = FailingWriteStore(failing={"delete"}, shifts=[
            make_record("u1", day, ShiftType.SPECIFIC_HOURS, id=1),
            make_record("u1", day, ShiftType.SPECIFIC_HOURS, id=2),
        ])
        item = ApplyItem(position=0, candidate=make_candidate("u1", day), supersedes=[1, 2])

        result = await BatchExecutor(store, pacing_seconds=0).execute([item], ACTOR)

        assert result.created_count == 0
        assert len(result.errors) == 1
        error = result.errors[0]
        assert "2 (Database unavailable)" in error.message
        assert error.stored.id == 1
        assert error.stored.shift_type == ShiftType.FULL_DAY
        assert result.created_count + len(result.errors) == result.total


class TestItemIdentity:
    async def test_repeated_positions_keep_their_own_outcome(self, make_candidate):
        """Test that outcomes follow list order even when items share a position"""
        store = InMemoryShiftStore()
        items = [
            ApplyItem(position=0, candidate=make_candidate("u1", date(2025, 4, day)))
            for day in (1, 2, 3)
        ]

        result = await BatchExecutor(store, chunk_size=5, pacing_seconds=0).execute(items, ACTOR)

        assert [s.shift_date.day for s in result.created] == [1, 2, 3]
        assert len(store.shifts) == 3

    async def test_repeated_positions_across_inserts_and_replacements(self, make_candidate, make_record):
        day = date(2025, 4, 1)
        store = InMemoryShiftStore([make_record("u1", day, ShiftType.HALF_DAY, id=1)])
        items = [
            ApplyItem(position=0, candidate=make_candidate("u1", day), supersedes=[1]),
            ApplyItem(position=0, candidate=make_candidate("u2", day)),
        ]

        result = await BatchExecutor(store, pacing_seconds=0).execute(items, ACTOR)

        assert [(s.id, s.user_id) for s in result.created] == [(1, "u1"), (2, "u2")]

    def test_list_defaults_are_not_shared(self, make_candidate):
        first = ApplyItem(position=0, candidate=make_candidate())
        first.supersedes.append(7)

        assert ApplyItem(position=1, candidate=make_candidate()).supersedes == []
