import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from roster.core.config import settings
from roster.core.database import get_async_session
from roster.core.request_context import get_request_context
from roster.services.hr.shift_service import ShiftService
from roster.services.hr.shift_store import ShiftStore, UserDirectory
from roster.services.hr.sql_shift_store import SqlAlchemyShiftStore, SqlAlchemyUserDirectory

logger = logging.getLogger(__name__)


async def get_shift_store(session: AsyncSession = Depends(get_async_session)) -> ShiftStore:
    return SqlAlchemyShiftStore(session)


async def get_user_directory(session: AsyncSession = Depends(get_async_session)) -> UserDirectory:
    return SqlAlchemyUserDirectory(session)


async def get_shift_service(
    store: ShiftStore = Depends(get_shift_store),
    directory: UserDirectory = Depends(get_user_directory),
) -> ShiftService:
    return ShiftService(store, directory)


async def get_current_actor_id(request: Request) -> str:
    """Id of the acting user, taken from the actor header set by the gateway"""
    context = get_request_context(request)
    actor_id = context["actor_id"]
    if not actor_id:
        logger.warning(f"Rejected {context['endpoint']} from {context['ip_address']}: missing {settings.ACTOR_HEADER} header")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.ACTOR_HEADER} header",
        )
    request.state.actor_id = actor_id
    return actor_id
