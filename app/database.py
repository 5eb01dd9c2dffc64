import logging
from functools import wraps

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings
from app.exceptions import StorageUnavailableError
from app.middleware import install_query_counter

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StorageHandle:
    """
    Process-wide, lazily created engine + session factory.

    The engine is built on first access and reused for the process
    lifetime.  When no URL is configured, or building the engine fails,
    the handle stays unavailable and the next access tries again.
    """

    def __init__(self, url: str | None) -> None:
        self.url = url
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    def bind(self, engine: AsyncEngine) -> None:
        """Use an already-built engine (tests, scripts)."""
        self._engine = engine
        self._sessionmaker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    def get_sessionmaker(self) -> async_sessionmaker[AsyncSession] | None:
        if self._sessionmaker is None and self.url:
            try:
                engine = create_async_engine(self.url, echo=settings.DEBUG, pool_pre_ping=True)
            except (SQLAlchemyError, ImportError) as exc:
                logger.warning("Failed to create database engine: %s", exc)
                return None
            install_query_counter(engine)
            self.bind(engine)
        return self._sessionmaker

    @property
    def engine(self) -> AsyncEngine | None:
        self.get_sessionmaker()
        return self._engine

    @property
    def available(self) -> bool:
        return self.get_sessionmaker() is not None

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None


storage = StorageHandle(settings.DATABASE_URL)


async def get_db():
    """Yield a session per request, or None when storage is unavailable."""
    factory = storage.get_sessionmaker()
    if factory is None:
        yield None
        return
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ---------------------------------------------------------------------------
# Storage-availability guards for service functions
# ---------------------------------------------------------------------------

def storage_read(default_factory):
    """
    Wrap a read function whose first argument is the session.

    A None session yields ``default_factory()`` when
    ``DEGRADE_READS_WITHOUT_DB`` is on, otherwise StorageUnavailableError.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(db, *args, **kwargs):
            if db is None:
                if not settings.DEGRADE_READS_WITHOUT_DB:
                    raise StorageUnavailableError()
                logger.warning("Database not available; %s returns a default", func.__name__)
                return default_factory()
            return await func(db, *args, **kwargs)
        return wrapper
    return decorator


def storage_write(func):
    """Wrap a mutation: a None session always raises StorageUnavailableError."""
    @wraps(func)
    async def wrapper(db, *args, **kwargs):
        if db is None:
            logger.error("Database not available; %s refused", func.__name__)
            raise StorageUnavailableError()
        return await func(db, *args, **kwargs)
    return wrapper
