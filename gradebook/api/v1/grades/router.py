from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import CurrentUser, MessageResponse
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from .schemas import (
    GradeBulkErrorResponse,
    GradeBulkRequest,
    GradeBulkResponse,
    GradeResponse,
    GradeWriteResponse,
    StudentGradeSummary,
    SubjectTasks,
)
from . import service

router = APIRouter(prefix="/api/v1/grades", tags=["grades"])


@router.get("", response_model=List[GradeResponse])
async def list_grades(
    semester: Optional[int] = Query(None, ge=1),
    academic_year: Optional[str] = Query(None, description="e.g. 2024/2025"),
    subject_id: Optional[int] = Query(None),
    grade_type: Optional[str] = Query(None, description="task or final"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[GradeResponse]:
    return await service.list_grades(
        db,
        current_user.class_id,
        semester=semester,
        academic_year=academic_year,
        subject_id=subject_id,
        grade_type=grade_type,
    )


@router.post(
    "",
    response_model=GradeWriteResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": GradeWriteResponse, "description": "Existing grade updated"}},
)
async def submit_grade(
    response: Response,
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> GradeWriteResponse:
    """Create or update one grade. 201 when a new row was inserted, 200 when the natural key already existed."""
    try:
        outcome = await service.submit_grade(db, current_user.class_id, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    if not outcome.created:
        response.status_code = status.HTTP_200_OK
        return GradeWriteResponse(message="Grade updated successfully", gradeId=outcome.grade_id)
    return GradeWriteResponse(message="Grade added successfully", gradeId=outcome.grade_id)


@router.post(
    "/bulk",
    response_model=GradeBulkResponse,
    responses={400: {"model": GradeBulkErrorResponse}},
)
async def submit_grades_bulk(
    payload: GradeBulkRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        bulk = await service.submit_grades_bulk(db, current_user.class_id, payload.grades)
    except ServiceError as e:
        raise to_http_exception(e)
    if bulk.failures:
        body = GradeBulkErrorResponse(
            error="Beberapa nilai gagal disimpan",
            details=bulk.failures,
            processed=bulk.processed,
        )
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())
    return GradeBulkResponse(message=f"Berhasil memproses {bulk.processed} nilai", processed=bulk.processed)


@router.get("/tasks-by-subject", response_model=List[SubjectTasks])
async def tasks_by_subject(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[SubjectTasks]:
    return await service.tasks_by_subject(db, current_user.class_id)


@router.get("/student/{student_id}/summary", response_model=StudentGradeSummary)
async def student_grade_summary(
    student_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentGradeSummary:
    try:
        return await service.student_grade_summary(db, current_user.class_id, student_id)
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/{grade_id}", response_model=MessageResponse)
async def delete_grade(
    grade_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.delete_grade(db, current_user.class_id, grade_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Grade deleted successfully")
