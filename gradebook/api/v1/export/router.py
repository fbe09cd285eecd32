from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import CurrentUser
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

from . import service

router = APIRouter(prefix="/api/v1/export", tags=["export"])


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=service.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/excel")
async def export_grades_excel(
    semester: Optional[int] = Query(None, ge=1),
    academic_year: Optional[str] = Query(None, description="e.g. 2024/2025"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    """Download class grades: a summary sheet plus one sheet per subject."""
    try:
        content, filename = await service.export_grades_excel(
            db, current_user.class_id, semester=semester, academic_year=academic_year
        )
    except ServiceError as e:
        raise to_http_exception(e)
    return _xlsx_response(content, filename)


@router.get("/students/excel")
async def export_students_excel(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        content, filename = await service.export_students_excel(db, current_user.class_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return _xlsx_response(content, filename)
