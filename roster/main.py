import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from roster.api.v1.api import api_router
from roster.core.config import settings
from roster.core.exceptions import BaseAppException, ConflictUnresolvedError
from roster.core.logging_config import setup_logging
from roster.middleware.logging import LoggingMiddleware

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app
app_config = {
    "title": settings.APP_NAME,
    "description": "Shift allocation and batch conflict resolution for employee rosters",
    "version": settings.APP_VERSION,
    "debug": settings.DEBUG,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)
app.add_middleware(LoggingMiddleware)


@app.exception_handler(BaseAppException)
async def app_exception_handler(request: Request, exc: BaseAppException):
    body = {"detail": exc.detail, "code": exc.code}
    if isinstance(exc, ConflictUnresolvedError):
        body["conflict_ids"] = exc.conflict_ids
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


# Include routers
app.include_router(api_router, prefix="/api/v1")


@app.get("/")
async def root():
    return {
        "message": f"Welcome to the {settings.APP_NAME}",
        "status": "active",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}
