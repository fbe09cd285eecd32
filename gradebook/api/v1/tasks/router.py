from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import CurrentUser, MessageResponse
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from .schemas import TaskCreate, TaskCreatedResponse, TaskGrades, TaskResponse, TaskUpdate
from . import service

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    subject_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[TaskResponse]:
    """Tasks of the class, newest first."""
    return await service.list_tasks(db, current_user.class_id, subject_id=subject_id)


@router.post("", response_model=TaskCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskCreatedResponse:
    try:
        task_id = await service.create_task(db, current_user.class_id, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    return TaskCreatedResponse(message="Task created successfully", taskId=task_id)


@router.get("/by-subject/{subject_id}", response_model=List[TaskResponse])
async def tasks_for_subject(
    subject_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[TaskResponse]:
    try:
        return await service.tasks_for_subject(db, current_user.class_id, subject_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskResponse:
    try:
        return await service.get_task(db, current_user.class_id, task_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.put("/{task_id}", response_model=MessageResponse)
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.update_task(db, current_user.class_id, task_id, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Task updated successfully")


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.delete_task(db, current_user.class_id, task_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Task deleted successfully")


@router.get("/{task_id}/grades", response_model=TaskGrades)
async def get_task_grades(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> TaskGrades:
    """Every student of the class with their grade for this task (if any)."""
    try:
        return await service.get_task_grades(db, current_user.class_id, task_id)
    except ServiceError as e:
        raise to_http_exception(e)
