from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import CurrentUser
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from .schemas import ClassResponse, ClassStats
from . import service

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.get("/my-class", response_model=ClassResponse)
async def get_my_class(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassResponse:
    """Class of the authenticated teacher."""
    try:
        return await service.get_class(db, current_user.class_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/my-class/stats", response_model=ClassStats)
async def get_my_class_stats(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassStats:
    return await service.get_class_stats(db, current_user.class_id)
