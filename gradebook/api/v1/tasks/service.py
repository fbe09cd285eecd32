import logging
from typing import List, Optional

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.exceptions import NotFoundError, ValidationError
from gradebook.core.models import Grade, Student, Subject, Task
from gradebook.db.session import transaction

from .schemas import TaskCreate, TaskGrades, TaskResponse, TaskStudentGrade, TaskUpdate

logger = logging.getLogger(__name__)

MSG_TASK_DENIED = "Task not found or access denied"
MSG_SUBJECT_DENIED = "Subject not found or access denied"


def _to_response(task: Task, subject_name: Optional[str]) -> TaskResponse:
    return TaskResponse(
        id=task.id,
        name=task.name,
        description=task.description,
        subject_id=task.subject_id,
        subject_name=subject_name,
        class_id=task.class_id,
        due_date=task.due_date,
        created_at=task.created_at,
    )


async def _ensure_subject(db: AsyncSession, class_id: int, subject_id: int) -> None:
    result = await db.execute(
        select(Subject.id).where(Subject.id == subject_id, Subject.class_id == class_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError(MSG_SUBJECT_DENIED)


async def _get_owned_task(db: AsyncSession, class_id: int, task_id: int) -> Task:
    result = await db.execute(select(Task).where(Task.id == task_id, Task.class_id == class_id))
    task = result.scalar_one_or_none()
    if not task:
        raise NotFoundError(MSG_TASK_DENIED)
    return task


async def list_tasks(db: AsyncSession, class_id: int, subject_id: Optional[int] = None) -> List[TaskResponse]:
    stmt = (
        select(Task, Subject.name)
        .join(Subject, Task.subject_id == Subject.id)
        .where(Task.class_id == class_id)
    )
    if subject_id is not None:
        stmt = stmt.where(Task.subject_id == subject_id)
    stmt = stmt.order_by(Task.created_at.desc(), Task.id.desc())
    result = await db.execute(stmt)
    return [_to_response(task, subject_name) for task, subject_name in result.all()]


async def get_task(db: AsyncSession, class_id: int, task_id: int) -> TaskResponse:
    result = await db.execute(
        select(Task, Subject.name)
        .join(Subject, Task.subject_id == Subject.id)
        .where(Task.id == task_id, Task.class_id == class_id)
    )
    row = result.first()
    if row is None:
        raise NotFoundError(MSG_TASK_DENIED)
    return _to_response(row[0], row[1])


async def create_task(db: AsyncSession, class_id: int, payload: TaskCreate) -> int:
    name = (payload.name or "").strip()
    if not name or payload.subject_id is None:
        raise ValidationError("Task name and subject are required", code="missing_fields")
    await _ensure_subject(db, class_id, payload.subject_id)
    async with transaction(db):
        task = Task(
            name=name,
            description=payload.description,
            subject_id=payload.subject_id,
            class_id=class_id,
            due_date=payload.due_date,
        )
        db.add(task)
        await db.flush()
        task_id = task.id
    logger.info("Created task %s for subject %s in class %s", task_id, payload.subject_id, class_id)
    return task_id


async def update_task(db: AsyncSession, class_id: int, task_id: int, payload: TaskUpdate) -> None:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationError("Task name is required", code="missing_fields")
    task = await _get_owned_task(db, class_id, task_id)
    async with transaction(db):
        task.name = name
        task.description = payload.description
        task.due_date = payload.due_date


async def delete_task(db: AsyncSession, class_id: int, task_id: int) -> None:
    """Delete the task and the grades recorded against it; other grades of the subject stay."""
    await _get_owned_task(db, class_id, task_id)
    async with transaction(db):
        await db.execute(delete(Grade).where(Grade.task_id == task_id))
        await db.execute(delete(Task).where(Task.id == task_id))
    logger.info("Deleted task %s of class %s", task_id, class_id)


async def get_task_grades(db: AsyncSession, class_id: int, task_id: int) -> TaskGrades:
    task = await get_task(db, class_id, task_id)
    result = await db.execute(
        select(
            Student.id,
            Student.name,
            Student.nis,
            Grade.id,
            Grade.grade_value,
            Grade.semester,
            Grade.academic_year,
        )
        .select_from(Student)
        .outerjoin(Grade, and_(Grade.student_id == Student.id, Grade.task_id == task_id))
        .where(Student.class_id == class_id)
        .order_by(Student.name, Grade.academic_year, Grade.semester)
    )
    students = [
        TaskStudentGrade(
            student_id=student_id,
            student_name=student_name,
            nis=nis,
            grade_id=grade_id,
            grade_value=grade_value,
            semester=semester,
            academic_year=academic_year,
        )
        for student_id, student_name, nis, grade_id, grade_value, semester, academic_year in result.all()
    ]
    return TaskGrades(task=task, students=students)


async def tasks_for_subject(db: AsyncSession, class_id: int, subject_id: int) -> List[TaskResponse]:
    await _ensure_subject(db, class_id, subject_id)
    result = await db.execute(
        select(Task, Subject.name)
        .join(Subject, Task.subject_id == Subject.id)
        .where(Task.subject_id == subject_id, Task.class_id == class_id)
        .order_by(Task.name)
    )
    return [_to_response(task, subject_name) for task, subject_name in result.all()]
