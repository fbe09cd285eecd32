from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import CurrentUser, MessageResponse
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from .schemas import StudentCreate, StudentCreatedResponse, StudentDetail, StudentResponse, StudentUpdate
from . import service

router = APIRouter(prefix="/api/v1/students", tags=["students"])


@router.get("", response_model=List[StudentResponse])
async def list_students(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[StudentResponse]:
    return await service.list_students(db, current_user.class_id)


@router.post("", response_model=StudentCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentCreatedResponse:
    try:
        student_id = await service.create_student(db, current_user.class_id, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    return StudentCreatedResponse(message="Student added successfully", studentId=student_id)


@router.get("/{student_id}", response_model=StudentDetail)
async def get_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentDetail:
    """Student with all their grades."""
    try:
        return await service.get_student_detail(db, current_user.class_id, student_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.put("/{student_id}", response_model=MessageResponse)
async def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.update_student(db, current_user.class_id, student_id, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Student updated successfully")


@router.delete("/{student_id}", response_model=MessageResponse)
async def delete_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """Delete a student together with all of their grades."""
    try:
        await service.delete_student(db, current_user.class_id, student_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Student deleted successfully")
