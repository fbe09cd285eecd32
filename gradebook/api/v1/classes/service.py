from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.exceptions import NotFoundError
from gradebook.core.models import SchoolClass, Student

from .schemas import ClassResponse, ClassStats


async def get_class(db: AsyncSession, class_id: int) -> ClassResponse:
    school_class = await db.get(SchoolClass, class_id)
    if not school_class:
        raise NotFoundError("Class not found")
    return ClassResponse.model_validate(school_class)


async def get_class_stats(db: AsyncSession, class_id: int) -> ClassStats:
    result = await db.execute(select(func.count(Student.id)).where(Student.class_id == class_id))
    return ClassStats(student_count=result.scalar_one())
