"""
Database engine, session factory and unit of work

Nothing here is a module-level singleton: create_app() and the scripts call
build_engine() / build_sessionmaker() once and hand the results to services.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from school_records.api.database.models import Base
from school_records.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for the configured database URL"""
    if settings.is_sqlite:
        # aiosqlite passes timeout through to sqlite3 as the busy timeout
        return create_async_engine(
            settings.database_url,
            echo=settings.debug,
            connect_args={"timeout": settings.sqlite_busy_timeout},
        )

    return create_async_engine(
        settings.database_url,
        echo=settings.debug,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine) -> None:
    """Create tables directly; production databases use the alembic migrations"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("✓ Database tables created")


class UnitOfWork:
    """
    Explicit transaction boundary for service operations

    with_transaction(fn) opens a session, begins a transaction, awaits
    fn(session) and commits. Any exception, cancellation included, rolls the
    transaction back before it propagates.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        lock_timeout_ms: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.lock_timeout_ms = lock_timeout_ms

    async def _apply_lock_timeout(self, session: AsyncSession) -> None:
        if self.lock_timeout_ms is None:
            return
        if session.get_bind().dialect.name != "postgresql":
            return
        # SET does not take bind parameters; the value is an int from settings
        await session.execute(text(f"SET LOCAL lock_timeout = {int(self.lock_timeout_ms)}"))

    async def with_transaction(
        self,
        fn: Callable[[AsyncSession], Awaitable[T]],
        lock_rows: bool = False,
    ) -> T:
        """
        Run fn inside one transaction

        Args:
            fn: Coroutine function receiving the session
            lock_rows: Apply the configured lock timeout before fn runs
        """
        async with self.session_factory() as session:
            async with session.begin():
                if lock_rows:
                    await self._apply_lock_timeout(session)
                return await fn(session)
