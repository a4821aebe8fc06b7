from typing import List, Optional

from fastapi import HTTPException, status


class BaseAppException(HTTPException):
    code: str = "APP_ERROR"

    def __init__(self, status_code: int, detail: str, code: Optional[str] = None):
        super().__init__(status_code=status_code, detail=detail)
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return f"{self.code}: {self.detail}"


class ValidationError(BaseAppException):
    """Candidate rejected locally, before any write. Never retried."""

    code = "VALIDATION_ERROR"

    def __init__(self, detail: str = "Validation error", code: Optional[str] = None):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail, code=code)


class NotFoundError(BaseAppException):
    code = "NOT_FOUND"

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConflictUnresolvedError(BaseAppException):
    """One or more conflicts have no resolution policy; the whole commit is blocked."""

    code = "CONFLICT_UNRESOLVED"

    def __init__(self, conflict_ids: List[str]):
        self.conflict_ids = list(conflict_ids)
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{len(self.conflict_ids)} conflict(s) without a resolution: {', '.join(self.conflict_ids)}",
        )


class EmptyBatchError(BaseAppException):
    code = "EMPTY_BATCH"

    def __init__(self, detail: str = "Batch does not produce any shift"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class StoreError(BaseAppException):
    """Failure reported by the shift store (network, database, constraint)."""

    code = "STORE_ERROR"

    def __init__(self, detail: str = "Shift store operation failed"):
        super().__init__(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
