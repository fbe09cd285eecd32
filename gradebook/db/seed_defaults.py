"""
Create the schema and seed the fixed classes and their default subjects.

Runs at application startup when AUTO_CREATE_SCHEMA is true, or manually:
  python -m gradebook.db.seed_defaults

Creates (idempotent):
- classes: ids 1..6, "Kelas 1".."Kelas 6"
- subjects: default (non-custom) subjects per class; classes 4-6 add Bahasa Inggris and IPAS
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from gradebook.core.models import SchoolClass, Subject
from gradebook.db.session import AsyncSessionLocal, Base, engine, transaction

logger = logging.getLogger(__name__)

CLASS_COUNT = 6

LOWER_GRADE_SUBJECTS = [
    "Bahasa Indonesia",
    "Matematika",
    "Pendidikan Pancasila",
    "Pendidikan Agama Islam",
    "Seni",
    "Penjas",
]
UPPER_GRADE_SUBJECTS = LOWER_GRADE_SUBJECTS + ["Bahasa Inggris", "IPAS"]


def default_subjects_for(class_id: int) -> list[str]:
    return LOWER_GRADE_SUBJECTS if class_id <= 3 else UPPER_GRADE_SUBJECTS


async def create_schema(bind: AsyncEngine) -> None:
    # Import models so every table is registered on Base.metadata
    import gradebook.auth.models  # noqa: F401
    import gradebook.core.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_defaults(db: AsyncSession) -> None:
    async with transaction(db):
        for class_id in range(1, CLASS_COUNT + 1):
            school_class = await db.get(SchoolClass, class_id)
            if not school_class:
                db.add(
                    SchoolClass(
                        id=class_id,
                        name=f"Kelas {class_id}",
                        description=f"Kelas {class_id} SD",
                    )
                )
                logger.info("Created class Kelas %s", class_id)
        await db.flush()

        for class_id in range(1, CLASS_COUNT + 1):
            result = await db.execute(select(Subject.name).where(Subject.class_id == class_id))
            existing = set(result.scalars().all())
            # "Seni" may have been renamed to a concrete discipline (Seni Rupa, Seni Musik, ...)
            has_seni = any(name.startswith("Seni") for name in existing)
            for name in default_subjects_for(class_id):
                if name in existing or (name == "Seni" and has_seni):
                    continue
                db.add(Subject(name=name, class_id=class_id, is_custom=False))


async def init_db() -> None:
    await create_schema(engine)
    async with AsyncSessionLocal() as db:
        await seed_defaults(db)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_db())
