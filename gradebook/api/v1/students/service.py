import logging
from typing import List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.exceptions import NotFoundError, ValidationError
from gradebook.core.models import Grade, Student, Subject
from gradebook.db.session import transaction

from .schemas import StudentCreate, StudentDetail, StudentGradeItem, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

MSG_DUPLICATE_IN_CLASS = "Nama siswa sudah ada di kelas ini"
MSG_DUPLICATE_NIS = "NIS sudah digunakan"
MSG_NIS_REQUIRED = "Nama siswa sudah ada di kelas lain. NIS harus diisi untuk membedakan siswa."
MSG_NIS_NOT_NUMERIC = "NIS harus berupa angka"


def _normalize(payload: StudentCreate) -> Tuple[str, Optional[str]]:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Student name is required", code="missing_fields")
    nis = (payload.nis or "").strip() or None
    if nis is not None and not nis.isdigit():
        raise ValidationError(MSG_NIS_NOT_NUMERIC, code="invalid_value")
    return name, nis


async def _get_owned_student(db: AsyncSession, class_id: int, student_id: int) -> Student:
    result = await db.execute(
        select(Student).where(Student.id == student_id, Student.class_id == class_id)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student not found or access denied")
    return student


async def _check_duplicates(
    db: AsyncSession,
    class_id: int,
    name: str,
    nis: Optional[str],
    exclude_id: Optional[int] = None,
) -> None:
    """Name unique in the class; NIS unique globally; a name used in another class needs a NIS."""

    def scoped(stmt):
        return stmt.where(Student.id != exclude_id) if exclude_id is not None else stmt

    same_class = await db.execute(
        scoped(select(Student.id).where(Student.name == name, Student.class_id == class_id))
    )
    if same_class.first() is not None:
        raise ValidationError(MSG_DUPLICATE_IN_CLASS, code="duplicate_name")

    if nis is not None:
        same_nis = await db.execute(scoped(select(Student.id).where(Student.nis == nis)))
        if same_nis.first() is not None:
            raise ValidationError(MSG_DUPLICATE_NIS, code="duplicate_nis")
        return

    other_class = await db.execute(
        scoped(select(Student.id).where(Student.name == name, Student.class_id != class_id))
    )
    if other_class.first() is not None:
        raise ValidationError(MSG_NIS_REQUIRED, code="nis_required")


async def list_students(db: AsyncSession, class_id: int) -> List[StudentResponse]:
    result = await db.execute(
        select(Student).where(Student.class_id == class_id).order_by(Student.name)
    )
    return [StudentResponse.model_validate(s) for s in result.scalars().all()]


async def create_student(db: AsyncSession, class_id: int, payload: StudentCreate) -> int:
    name, nis = _normalize(payload)
    await _check_duplicates(db, class_id, name, nis)
    async with transaction(db):
        student = Student(name=name, nis=nis, class_id=class_id)
        db.add(student)
        await db.flush()
        student_id = student.id
    logger.info("Added student %s to class %s", student_id, class_id)
    return student_id


async def update_student(db: AsyncSession, class_id: int, student_id: int, payload: StudentUpdate) -> None:
    name, nis = _normalize(payload)
    student = await _get_owned_student(db, class_id, student_id)
    if name != student.name or nis != student.nis:
        await _check_duplicates(db, class_id, name, nis, exclude_id=student_id)
    async with transaction(db):
        student.name = name
        student.nis = nis


async def delete_student(db: AsyncSession, class_id: int, student_id: int) -> None:
    """Delete the student and every grade of the student."""
    await _get_owned_student(db, class_id, student_id)
    async with transaction(db):
        await db.execute(delete(Grade).where(Grade.student_id == student_id))
        await db.execute(delete(Student).where(Student.id == student_id))
    logger.info("Deleted student %s of class %s", student_id, class_id)


async def get_student_detail(db: AsyncSession, class_id: int, student_id: int) -> StudentDetail:
    student = await _get_owned_student(db, class_id, student_id)
    result = await db.execute(
        select(Grade, Subject.name)
        .join(Subject, Grade.subject_id == Subject.id)
        .where(Grade.student_id == student_id)
        .order_by(Subject.name, Grade.semester)
    )
    grades = [
        StudentGradeItem(
            id=g.id,
            subject_id=g.subject_id,
            subject_name=subject_name,
            task_id=g.task_id,
            grade_value=g.grade_value,
            grade_type=g.grade_type,
            semester=g.semester,
            academic_year=g.academic_year,
            created_at=g.created_at,
            updated_at=g.updated_at,
        )
        for g, subject_name in result.all()
    ]
    return StudentDetail(student=StudentResponse.model_validate(student), grades=grades)
