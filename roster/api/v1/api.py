from fastapi import APIRouter
from roster.api.v1.endpoints.hr import shifts

api_router = APIRouter()

# HR routes
api_router.include_router(shifts.router, prefix="/hr/shift", tags=["Human Resource"])
