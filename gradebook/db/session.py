from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from gradebook.core.config import settings
from gradebook.core.exceptions import ConflictError, PersistenceError

# pool_pre_ping: check connection is alive before use (avoids "connection is closed" errors
# when DB or network closed idle connections).
engine = create_async_engine(
    settings.database_url,
    echo=False,
    future=True,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Explicit transaction scope: commit when the block succeeds, roll back on any exception.

    IntegrityError becomes ConflictError and other SQLAlchemy errors become PersistenceError;
    service errors raised inside the block propagate unchanged after the rollback.
    """
    try:
        yield db
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Data bertentangan dengan data yang sudah ada") from e
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError() from e
    except BaseException:
        await db.rollback()
        raise
