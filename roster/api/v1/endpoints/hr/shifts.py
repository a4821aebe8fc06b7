from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query

from roster.api.dependencies import get_current_actor_id, get_shift_service
from roster.schemas.hr.batch_schema import (
    BatchCommitRequest, BatchCommitResult, BatchPreview, BatchSpec, MonthWeekBlock
)
from roster.schemas.hr.shift_schema import (
    ShiftCheckRequest, ShiftCreate, ShiftRecord, ShiftUpdate, ValidationResult
)
from roster.services.hr.shift_service import ShiftService

router = APIRouter()

# region Shift Endpoints

@router.get("/", response_model=List[ShiftRecord])
async def get_shifts(
    start: date = Query(...),
    end: date = Query(...),
    user_ids: List[str] = Query([]),
    service: ShiftService = Depends(get_shift_service),
):
    """List shifts between two dates; all active employees when no user is given"""
    return await service.list_shifts(user_ids, start, end)

@router.post("/", response_model=ShiftRecord)
async def create_shift(
    shift: ShiftCreate,
    service: ShiftService = Depends(get_shift_service),
    actor_id: str = Depends(get_current_actor_id),
):
    """Create a single shift after checking the one-shift-per-day rule"""
    return await service.create_shift(shift, actor_id)

@router.post("/check", response_model=ValidationResult)
async def check_shift(
    shift: ShiftCheckRequest,
    service: ShiftService = Depends(get_shift_service),
):
    """Validate a shift against the stored ones without saving it"""
    return await service.check_shift(shift, excluding_id=shift.excluding_id)

@router.get("/batch/weeks", response_model=List[MonthWeekBlock])
async def get_month_weeks(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., ge=1, le=12),
):
    """Week blocks offered by the batch form for a month"""
    return ShiftService.month_weeks(year, month)

@router.get("/{shift_id}", response_model=ShiftRecord)
async def get_shift(
    shift_id: int,
    service: ShiftService = Depends(get_shift_service),
):
    return await service.get_shift(shift_id)

@router.put("/{shift_id}", response_model=ShiftRecord)
async def update_shift(
    shift_id: int,
    shift: ShiftUpdate,
    service: ShiftService = Depends(get_shift_service),
    actor_id: str = Depends(get_current_actor_id),
):
    """Update shift"""
    return await service.update_shift(shift_id, shift, actor_id)

@router.delete("/{shift_id}")
async def delete_shift(
    shift_id: int,
    service: ShiftService = Depends(get_shift_service),
    actor_id: str = Depends(get_current_actor_id),
):
    """Delete shift"""
    await service.delete_shift(shift_id, actor_id)
    return {"message": "Shift deleted successfully"}

# endregion

# region Batch Allocation Endpoints

@router.post("/batch/preview", response_model=BatchPreview)
async def preview_batch(
    spec: BatchSpec,
    service: ShiftService = Depends(get_shift_service),
    actor_id: str = Depends(get_current_actor_id),
):
    """
    Expand a batch and list the conflicts with stored shifts.
    Nothing is written; resolve every conflict id before committing.
    """
    return await service.preview_batch(spec, actor_id)

@router.post("/batch/commit", response_model=BatchCommitResult)
async def commit_batch(
    request: BatchCommitRequest,
    service: ShiftService = Depends(get_shift_service),
    actor_id: str = Depends(get_current_actor_id),
):
    """
    Commit a batch with a resolution policy per conflict id.
    Store failures are listed per item next to the created count.
    """
    return await service.commit_batch(request.spec, request.resolutions, actor_id)

# endregion
