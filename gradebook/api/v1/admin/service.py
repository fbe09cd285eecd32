"""Destructive maintenance operations guarded by ADMIN_DELETE_PASSWORD."""
import logging
import secrets
from typing import List, Optional

from fastapi import status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.models import User
from gradebook.auth.schemas import UserInfo
from gradebook.core.config import settings
from gradebook.core.exceptions import ServiceError, ValidationError
from gradebook.core.models import Grade, Student, Subject, Task
from gradebook.db.session import transaction

logger = logging.getLogger(__name__)


def verify_admin_password(password: Optional[str]) -> None:
    if not password:
        raise ValidationError("Password konfirmasi diperlukan", code="missing_fields")
    if not secrets.compare_digest(password.encode("utf-8"), settings.admin_delete_password.encode("utf-8")):
        raise ServiceError("Password konfirmasi salah", status.HTTP_401_UNAUTHORIZED, code="invalid_credentials")


async def list_users(db: AsyncSession, password: Optional[str]) -> List[UserInfo]:
    verify_admin_password(password)
    result = await db.execute(select(User).order_by(User.username))
    return [UserInfo.model_validate(u) for u in result.scalars().all()]


async def delete_all_accounts(db: AsyncSession, password: Optional[str]) -> int:
    """Delete every account and all teacher-entered data. Classes and default subjects stay.

    Order: grades, tasks, students, custom subjects, users. Returns the number of deleted users.
    """
    verify_admin_password(password)
    count = await db.execute(select(func.count(User.id)))
    deleted_accounts = count.scalar_one()
    async with transaction(db):
        await db.execute(delete(Grade))
        await db.execute(delete(Task))
        await db.execute(delete(Student))
        await db.execute(delete(Subject).where(Subject.is_custom.is_(True)))
        await db.execute(delete(User))
    logger.warning("Deleted all accounts (%s users) and their data", deleted_accounts)
    return deleted_accounts
