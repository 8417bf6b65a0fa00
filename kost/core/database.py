from collections.abc import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from kost.core.config import settings
from kost.core.errors import translate_persistence_error

engine = create_async_engine(settings.database_url, pool_pre_ping=True)
async_session = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session: commit when the handler returns, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def flush_or_raise(db: AsyncSession) -> None:
    """Flush pending writes; a database rejection becomes a PersistenceError."""
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        raise translate_persistence_error(exc) from exc
