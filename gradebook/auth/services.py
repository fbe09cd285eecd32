import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.models import User
from gradebook.auth.schemas import (
    ClassInfo,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from gradebook.auth.security import create_access_token, hash_password, verify_password
from gradebook.core.exceptions import NotFoundError, ServiceError, ValidationError
from gradebook.core.models import Grade, SchoolClass, Student, Subject, Task
from gradebook.db.session import transaction

logger = logging.getLogger(__name__)


async def register_teacher(db: AsyncSession, payload: RegisterRequest) -> RegisterResponse:
    username = (payload.username or "").strip()
    name = (payload.name or "").strip()
    if not username or not payload.password or not name or not payload.class_id:
        raise ValidationError("All fields are required", code="missing_fields")

    existing = await db.execute(select(User.id).where(User.username == username))
    if existing.scalar_one_or_none() is not None:
        raise ValidationError("Username already exists", code="duplicate_username")

    school_class = await db.get(SchoolClass, payload.class_id)
    if not school_class:
        raise ValidationError("Kelas tidak ditemukan", code="invalid_class")

    # Several teachers may share one class
    async with transaction(db):
        user = User(
            username=username,
            password_hash=hash_password(payload.password),
            name=name,
            class_id=payload.class_id,
        )
        db.add(user)
        await db.flush()
        user_id = user.id

    logger.info("Registered teacher %s for class %s", username, payload.class_id)
    return RegisterResponse(message="User created successfully", userId=user_id)


async def authenticate(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username.strip()))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED, code="invalid_credentials")
    return user


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    user = await authenticate(db, payload.username, payload.password)
    token = create_access_token(user_id=user.id, username=user.username, class_id=user.class_id)
    return LoginResponse(
        message="Login successful",
        token=token,
        user=UserInfo.model_validate(user),
        issued_at=datetime.now(timezone.utc),
    )


async def get_user_info(db: AsyncSession, user_id: int) -> UserInfo:
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return UserInfo.model_validate(user)


async def list_classes(db: AsyncSession) -> List[ClassInfo]:
    result = await db.execute(select(SchoolClass).order_by(SchoolClass.id))
    return [ClassInfo.model_validate(c) for c in result.scalars().all()]


async def delete_account(db: AsyncSession, user_id: int, password: Optional[str]) -> None:
    """Delete a teacher and the data of their class.

    Cascade order: grades of class students, tasks, custom subjects, students, then the user.
    Class data is kept while another teacher still uses the class; the class row always stays.
    """
    if not password:
        raise ValidationError("Password is required for account deletion", code="missing_fields")
    user = await db.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    if not verify_password(password, user.password_hash):
        raise ServiceError("Invalid password", status.HTTP_401_UNAUTHORIZED, code="invalid_credentials")

    class_id = user.class_id
    others = await db.execute(
        select(func.count(User.id)).where(User.class_id == class_id, User.id != user_id)
    )
    shared = others.scalar_one() > 0
    async with transaction(db):
        if not shared:
            await _delete_class_data(db, class_id)
        await db.execute(delete(User).where(User.id == user_id))
    logger.warning("Deleted account %s (class %s, class data kept: %s)", user_id, class_id, shared)


async def _delete_class_data(db: AsyncSession, class_id: int) -> None:
    class_students = select(Student.id).where(Student.class_id == class_id)
    await db.execute(delete(Grade).where(Grade.student_id.in_(class_students)))
    await db.execute(delete(Task).where(Task.class_id == class_id))
    await db.execute(
        delete(Subject).where(Subject.class_id == class_id, Subject.is_custom.is_(True))
    )
    await db.execute(delete(Student).where(Student.class_id == class_id))
