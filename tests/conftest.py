from typing import AsyncGenerator, Dict, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gradebook.core.models import Student, Subject
from gradebook.db.seed_defaults import create_schema, seed_defaults
from gradebook.db.session import get_db
from gradebook.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite://"
TEST_PASSWORD = "rahasia123"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test; StaticPool keeps the single connection alive."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Seeded session shared by the test and the app via the get_db override."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        await seed_defaults(session)

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def login_teacher(client: AsyncClient):
    """Register a teacher (if needed) and return bearer headers for them."""

    async def _login(username: str = "guru1", class_id: int = 1) -> Dict[str, str]:
        await client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "password": TEST_PASSWORD,
                "name": f"Ibu {username}",
                "class_id": class_id,
            },
        )
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": TEST_PASSWORD},
        )
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _login


@pytest.fixture()
async def auth_headers(login_teacher) -> Dict[str, str]:
    return await login_teacher()


@pytest.fixture()
def add_student(db_session: AsyncSession):
    async def _add(name: str, class_id: int = 1, nis: Optional[str] = None) -> Student:
        student = Student(name=name, nis=nis, class_id=class_id)
        db_session.add(student)
        await db_session.commit()
        return student

    return _add


@pytest.fixture()
def subject_id(db_session: AsyncSession):
    """Look up a seeded subject id by name and class."""

    async def _lookup(name: str, class_id: int = 1) -> int:
        result = await db_session.execute(
            select(Subject.id).where(Subject.name == name, Subject.class_id == class_id)
        )
        return result.scalar_one()

    return _lookup
