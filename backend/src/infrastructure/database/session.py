from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

from ..config.settings import DatabaseBackendOption, settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.LOG_SQL_QUERIES, "future": True}
    if settings.DATABASE_BACKEND == DatabaseBackendOption.POSTGRES:
        options["pool_size"] = settings.POSTGRES_POOL_SIZE
        options["max_overflow"] = settings.POSTGRES_MAX_OVERFLOW
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options())

local_session = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase, MappedAsDataclass):
    """Base class for all database models.

    Combines SQLAlchemy's DeclarativeBase with MappedAsDataclass so every
    model gets a generated ``__init__`` and ``__repr__`` from its mapped
    columns. Columns filled by the database or by mixins are declared with
    ``init=False``.

    Example:
        ```python
        class Folder(Base):
            __tablename__ = "folders"

            id: Mapped[int] = mapped_column(Integer, primary_key=True, init=False)
            title: Mapped[str] = mapped_column(String(255))

        folder = Folder(title="Infrastructure")
        ```
    """

    pass


async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for database session management.

    Yields one session per request; the session is closed when the request
    finishes. Write operations open their own transactional scope on top of
    it with ``transactional(db)``.

    Yields:
        AsyncSession: A configured async database session.
    """
    async_get_db = local_session
    async with async_get_db() as db:
        yield db


async def create_tables() -> None:
    """Create all tables in the database if they don't exist.

    Idempotent. Production deployments should prefer a migration tool.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
