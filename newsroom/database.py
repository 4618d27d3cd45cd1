from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from newsroom.config import settings
from newsroom.errors import UniqueConstraintViolation

# Tests swap the session factory through the get_db dependency override.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

_AFTER_COMMIT = "after_commit"


class Base(DeclarativeBase):
    pass


def after_commit(db: AsyncSession, callback) -> None:
    """
    Queue an async *callback* to run once *db* has committed.

    Queuing the same callback twice in one unit of work runs it once.  The
    queue is dropped on rollback.
    """
    callbacks = db.info.setdefault(_AFTER_COMMIT, [])
    if callback not in callbacks:
        callbacks.append(callback)


async def commit(db: AsyncSession) -> None:
    await db.commit()
    for callback in db.info.pop(_AFTER_COMMIT, []):
        await callback()


async def rollback(db: AsyncSession) -> None:
    db.info.pop(_AFTER_COMMIT, None)
    await db.rollback()


async def get_db():
    async with async_session() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await rollback(session)
            raise


async def flush_unique(db: AsyncSession, message: str) -> None:
    """
    Flush pending changes, translating a duplicate-key failure into
    ``UniqueConstraintViolation`` so the HTTP layer answers 409.
    """
    try:
        await db.flush()
    except IntegrityError as exc:
        raise UniqueConstraintViolation(message) from exc
