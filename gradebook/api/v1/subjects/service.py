import logging
from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.core.exceptions import ConflictError, NotFoundError, ValidationError
from gradebook.core.models import Grade, Subject, Task
from gradebook.db.session import transaction

from .schemas import SeniOption, SubjectCreate, SubjectResponse

logger = logging.getLogger(__name__)

SENI_SUBJECT = "Seni"
SENI_OPTIONS = {
    "seni_rupa": "Seni Rupa",
    "seni_teater": "Seni Teater",
    "seni_musik": "Seni Musik",
    "seni_tari": "Seni Tari",
}


async def list_subjects(db: AsyncSession, class_id: int) -> List[SubjectResponse]:
    result = await db.execute(
        select(Subject).where(Subject.class_id == class_id).order_by(Subject.name)
    )
    return [SubjectResponse.model_validate(s) for s in result.scalars().all()]


async def create_custom_subject(db: AsyncSession, class_id: int, payload: SubjectCreate) -> int:
    name = payload.name.strip()
    if not name:
        raise ValidationError("Nama mata pelajaran wajib diisi", code="missing_fields")
    existing = await db.execute(
        select(Subject.id).where(Subject.name == name, Subject.class_id == class_id)
    )
    if existing.first() is not None:
        raise ConflictError("Mata pelajaran sudah ada", code="duplicate_subject")
    async with transaction(db):
        subject = Subject(name=name, class_id=class_id, is_custom=True)
        db.add(subject)
        await db.flush()
        subject_id = subject.id
    logger.info("Added custom subject %s (%s) to class %s", subject_id, name, class_id)
    return subject_id


def seni_options() -> List[SeniOption]:
    return [SeniOption(id=key, name=name) for key, name in SENI_OPTIONS.items()]


async def update_seni(db: AsyncSession, class_id: int, seni_type: Optional[str]) -> str:
    """Rename the class's default art subject to a concrete discipline. Grades stay attached."""
    if not seni_type:
        raise ValidationError("Seni type is required", code="missing_fields")
    new_name = SENI_OPTIONS.get(seni_type)
    if new_name is None:
        raise ValidationError("Invalid seni type", code="invalid_value")

    result = await db.execute(
        select(Subject)
        .where(
            Subject.class_id == class_id,
            Subject.is_custom.is_(False),
            or_(Subject.name == SENI_SUBJECT, Subject.name.in_(list(SENI_OPTIONS.values()))),
        )
        .order_by(Subject.id)
    )
    subject = result.scalars().first()
    if not subject:
        raise NotFoundError("Mata pelajaran Seni tidak ditemukan")
    if subject.name != new_name:
        async with transaction(db):
            subject.name = new_name
    return new_name


async def cleanup_duplicate_subjects(db: AsyncSession) -> int:
    """Remove duplicate (name, class_id) subjects keeping the lowest id; their tasks and grades go first."""
    keep = select(func.min(Subject.id)).group_by(Subject.name, Subject.class_id)
    result = await db.execute(select(Subject.id).where(Subject.id.not_in(keep)))
    duplicate_ids = list(result.scalars().all())
    if not duplicate_ids:
        return 0
    async with transaction(db):
        await db.execute(delete(Grade).where(Grade.subject_id.in_(duplicate_ids)))
        await db.execute(delete(Task).where(Task.subject_id.in_(duplicate_ids)))
        await db.execute(delete(Subject).where(Subject.id.in_(duplicate_ids)))
    logger.warning("Removed %s duplicate subjects", len(duplicate_ids))
    return len(duplicate_ids)
