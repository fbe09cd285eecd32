"""Grade reconciliation: validate submissions and upsert them on the grade natural key."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from gradebook.core.models import Grade, Student, Subject, Task
from gradebook.core.models.grade import GRADE_NATURAL_KEY, NO_TASK_KEY
from gradebook.db.session import transaction

from .schemas import (
    GradeBulkFailure,
    GradeResponse,
    GradeSubmission,
    StudentGradeSummary,
    StudentGradeSummaryItem,
    StudentRef,
    SubjectTaskItem,
    SubjectTasks,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("student_id", "subject_id", "grade_value", "semester", "academic_year")
OPTIONAL_FIELDS = ("task_id", "grade_type")

MSG_MISSING_FIELDS = "Data tidak lengkap: student_id, subject_id, grade_value, semester, academic_year wajib diisi"
MSG_OUT_OF_RANGE = "Nilai harus antara 0-100"
MSG_INVALID_BATCH = "Data nilai tidak valid"
MSG_STUDENT_DENIED = "Siswa tidak ditemukan dalam kelas Anda"
MSG_SUBJECT_DENIED = "Mata pelajaran tidak ditemukan atau akses ditolak"
MSG_TASK_MISMATCH = "Tugas tidak ditemukan atau bukan bagian dari mata pelajaran ini"


@dataclass
class UpsertResult:
    grade_id: int
    created: bool  # False when an existing row with the same natural key was updated


@dataclass
class BulkResult:
    processed: int
    failures: List[GradeBulkFailure] = field(default_factory=list)
    results: List[UpsertResult] = field(default_factory=list)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_submission(raw: Any) -> GradeSubmission:
    """Required-field check, explicit parse, then range check. Fails fast on the first problem."""
    if not isinstance(raw, dict):
        raise ValidationError(MSG_INVALID_BATCH, code="invalid_value")

    if any(_is_blank(raw.get(name)) for name in REQUIRED_FIELDS):
        raise ValidationError(MSG_MISSING_FIELDS, code="missing_fields")

    data = {name: raw[name] for name in REQUIRED_FIELDS}
    for name in OPTIONAL_FIELDS:
        if not _is_blank(raw.get(name)):
            data[name] = raw[name]
    if isinstance(data["grade_value"], str):
        data["grade_value"] = data["grade_value"].strip()

    try:
        submission = GradeSubmission.model_validate(data)
    except PydanticValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
        raise ValidationError(
            f"Format data nilai tidak valid: {', '.join(fields)}", code="invalid_value"
        ) from e

    if not 0 <= submission.grade_value <= 100:
        raise ValidationError(MSG_OUT_OF_RANGE, code="out_of_range")
    return submission


async def check_ownership(db: AsyncSession, class_id: int, submission: GradeSubmission) -> None:
    student = await db.execute(
        select(Student.id).where(Student.id == submission.student_id, Student.class_id == class_id)
    )
    if student.scalar_one_or_none() is None:
        raise AuthorizationError(MSG_STUDENT_DENIED, code="not_found_or_denied")

    subject = await db.execute(
        select(Subject.id).where(Subject.id == submission.subject_id, Subject.class_id == class_id)
    )
    if subject.scalar_one_or_none() is None:
        raise AuthorizationError(MSG_SUBJECT_DENIED, code="not_found_or_denied")

    if submission.task_id is not None:
        task = await db.execute(
            select(Task.id).where(
                Task.id == submission.task_id,
                Task.class_id == class_id,
                Task.subject_id == submission.subject_id,
            )
        )
        if task.scalar_one_or_none() is None:
            raise AuthorizationError(MSG_TASK_MISMATCH, code="task_mismatch")


def _natural_key(submission: GradeSubmission) -> Dict[str, Any]:
    return {
        "student_id": submission.student_id,
        "subject_id": submission.subject_id,
        "task_key": submission.task_id if submission.task_id is not None else NO_TASK_KEY,
        "semester": submission.semester,
        "academic_year": submission.academic_year,
        "grade_type": submission.resolved_grade_type,
    }


def _dialect_insert(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise PersistenceError(f"Upsert not supported for database dialect '{dialect}'")


async def find_grade_id(db: AsyncSession, submission: GradeSubmission) -> Optional[int]:
    key = _natural_key(submission)
    stmt = select(Grade.id).where(*(getattr(Grade, name) == value for name, value in key.items()))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def upsert_grade(db: AsyncSession, submission: GradeSubmission) -> UpsertResult:
    """INSERT ... ON CONFLICT (natural key) DO UPDATE; id and created_at of an existing row are kept.

    Does not commit; callers run it inside transaction().
    """
    existing_id = await find_grade_id(db, submission)
    now = datetime.utcnow()
    table = Grade.__table__
    insert = _dialect_insert(db)
    stmt = insert(table).values(
        **_natural_key(submission),
        task_id=submission.task_id,
        grade_value=submission.grade_value,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=list(GRADE_NATURAL_KEY),
        set_={
            "grade_value": stmt.excluded.grade_value,
            "updated_at": stmt.excluded.updated_at,
        },
    ).returning(table.c.id)
    result = await db.execute(stmt)
    grade_id = result.scalar_one()
    return UpsertResult(grade_id=grade_id, created=existing_id is None)


async def submit_grade(db: AsyncSession, class_id: int, raw: Any) -> UpsertResult:
    submission = parse_submission(raw)
    async with transaction(db):
        await check_ownership(db, class_id, submission)
        outcome = await upsert_grade(db, submission)
    logger.info(
        "%s grade %s (student=%s subject=%s task=%s type=%s)",
        "Inserted" if outcome.created else "Updated",
        outcome.grade_id,
        submission.student_id,
        submission.subject_id,
        submission.task_id,
        submission.resolved_grade_type,
    )
    return outcome


async def submit_grades_bulk(db: AsyncSession, class_id: int, raw_items: Any) -> BulkResult:
    """Reconcile items in order. Item failures are collected with their 1-based index; all
    successful upserts commit together and a store failure rolls the whole batch back."""
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError(MSG_INVALID_BATCH, code="empty_batch")

    bulk = BulkResult(processed=0)
    async with transaction(db):
        for index, raw in enumerate(raw_items, start=1):
            try:
                submission = parse_submission(raw)
                await check_ownership(db, class_id, submission)
            except (ValidationError, AuthorizationError) as e:
                bulk.failures.append(GradeBulkFailure(index=index, error=e.message))
                continue
            bulk.results.append(await upsert_grade(db, submission))
            bulk.processed += 1

    logger.info(
        "Bulk grades for class %s: %s processed, %s failed",
        class_id,
        bulk.processed,
        len(bulk.failures),
    )
    return bulk


async def list_grades(
    db: AsyncSession,
    class_id: int,
    semester: Optional[int] = None,
    academic_year: Optional[str] = None,
    subject_id: Optional[int] = None,
    grade_type: Optional[str] = None,
) -> List[GradeResponse]:
    stmt = (
        select(Grade, Student.name, Subject.name, Task.name)
        .join(Student, Grade.student_id == Student.id)
        .join(Subject, Grade.subject_id == Subject.id)
        .outerjoin(Task, Grade.task_id == Task.id)
        .where(Student.class_id == class_id)
    )
    if semester is not None:
        stmt = stmt.where(Grade.semester == semester)
    if academic_year:
        stmt = stmt.where(Grade.academic_year == academic_year)
    if subject_id is not None:
        stmt = stmt.where(Grade.subject_id == subject_id)
    if grade_type:
        stmt = stmt.where(Grade.grade_type == grade_type)
    stmt = stmt.order_by(Student.name, Subject.name, Grade.created_at.desc())

    result = await db.execute(stmt)
    return [
        GradeResponse(
            id=g.id,
            student_id=g.student_id,
            subject_id=g.subject_id,
            task_id=g.task_id,
            grade_value=g.grade_value,
            grade_type=g.grade_type,
            semester=g.semester,
            academic_year=g.academic_year,
            created_at=g.created_at,
            updated_at=g.updated_at,
            student_name=student_name,
            subject_name=subject_name,
            task_name=task_name,
        )
        for g, student_name, subject_name, task_name in result.all()
    ]


async def delete_grade(db: AsyncSession, class_id: int, grade_id: int) -> None:
    owned = await db.execute(
        select(Grade.id)
        .join(Student, Grade.student_id == Student.id)
        .where(Grade.id == grade_id, Student.class_id == class_id)
    )
    if owned.scalar_one_or_none() is None:
        raise NotFoundError("Grade not found or access denied")
    async with transaction(db):
        await db.execute(delete(Grade).where(Grade.id == grade_id))
    logger.info("Deleted grade %s", grade_id)


async def student_grade_summary(db: AsyncSession, class_id: int, student_id: int) -> StudentGradeSummary:
    result = await db.execute(
        select(Student).where(Student.id == student_id, Student.class_id == class_id)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student not found or access denied")

    rows = await db.execute(
        select(Subject.name, Grade.semester, Grade.academic_year, Grade.grade_value, Grade.grade_type)
        .join(Subject, Grade.subject_id == Subject.id)
        .where(Grade.student_id == student_id)
        .order_by(Subject.name, Grade.academic_year, Grade.semester)
    )
    return StudentGradeSummary(
        student=StudentRef.model_validate(student),
        grades=[
            StudentGradeSummaryItem(
                subject_name=subject_name,
                semester=semester,
                academic_year=academic_year,
                grade_value=grade_value,
                grade_type=grade_type,
            )
            for subject_name, semester, academic_year, grade_value, grade_type in rows.all()
        ],
    )


async def tasks_by_subject(db: AsyncSession, class_id: int) -> List[SubjectTasks]:
    """Subjects of the class with their tasks (newest first), for the grading screen."""
    result = await db.execute(
        select(Subject.id, Subject.name, Task)
        .outerjoin(Task, (Task.subject_id == Subject.id) & (Task.class_id == class_id))
        .where(Subject.class_id == class_id)
        .order_by(Subject.name, Task.created_at.desc(), Task.id.desc())
    )
    grouped: Dict[int, SubjectTasks] = {}
    for subject_id, subject_name, task in result.all():
        entry = grouped.setdefault(
            subject_id, SubjectTasks(subject_id=subject_id, subject_name=subject_name, tasks=[])
        )
        if task is not None:
            entry.tasks.append(
                SubjectTaskItem(
                    id=task.id,
                    name=task.name,
                    description=task.description,
                    due_date=task.due_date,
                )
            )
    return list(grouped.values())
