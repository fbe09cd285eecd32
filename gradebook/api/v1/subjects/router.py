from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import CurrentUser, MessageResponse
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from .schemas import (
    SeniOption,
    SeniUpdateRequest,
    SubjectCleanupResponse,
    SubjectCreate,
    SubjectCreatedResponse,
    SubjectResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/subjects", tags=["subjects"])


@router.get("", response_model=List[SubjectResponse])
async def list_subjects(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[SubjectResponse]:
    return await service.list_subjects(db, current_user.class_id)


@router.post("", response_model=SubjectCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    payload: SubjectCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SubjectCreatedResponse:
    """Add a custom subject to the teacher's class. 409 if the name already exists there."""
    try:
        subject_id = await service.create_custom_subject(db, current_user.class_id, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    return SubjectCreatedResponse(message="Subject created successfully", subjectId=subject_id)


@router.get("/seni-options", response_model=List[SeniOption])
async def get_seni_options(current_user: CurrentUser = Depends(get_current_user)) -> List[SeniOption]:
    return service.seni_options()


@router.post("/update-seni", response_model=MessageResponse)
async def update_seni(
    payload: SeniUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.update_seni(db, current_user.class_id, payload.seni_type)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Seni subject updated successfully")


@router.post("/cleanup", response_model=SubjectCleanupResponse)
async def cleanup_subjects(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> SubjectCleanupResponse:
    try:
        removed = await service.cleanup_duplicate_subjects(db)
    except ServiceError as e:
        raise to_http_exception(e)
    return SubjectCleanupResponse(message="Duplicate subjects cleaned up successfully", removed=removed)
