"""SQLite session and engine."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from files_manager.config import get_settings

Base = declarative_base()
log = logging.getLogger(__name__)

_settings = get_settings()
# SQLAlchemy async needs sqlite+aiosqlite and path as URL.
# NullPool: connections are opened in whichever event loop uses them (API loop or a worker job loop).
_db_url = f"sqlite+aiosqlite:///{_settings.db_path}"
_engine = create_async_engine(_db_url, echo=False, poolclass=NullPool)
_async_session = async_sessionmaker(
    _engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def init_db() -> None:
    """Create tables if they do not exist."""
    # Import models so they register with Base
    from files_manager.files import models as _files_models  # noqa: F401
    from files_manager.users import models as _users_models  # noqa: F401

    _settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def db_is_alive() -> bool:
    """True if a trivial query succeeds."""
    try:
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        log.warning("Database health check failed: %s", e)
        return False


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session (context manager)."""
    async with _async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async session."""
    async with get_session() as session:
        yield session
