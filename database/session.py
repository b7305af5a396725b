"""
Async SQLAlchemy engine and session factory.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from config.settings import config
from database.models import Base

logger = logging.getLogger(__name__)


def _engine_options() -> Dict[str, Any]:
    if config.is_sqlite:
        # One shared connection so in-memory databases survive across sessions.
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
    }


engine = create_async_engine(
    config.database_url,
    echo=config.database_echo,
    **_engine_options(),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_models() -> None:
    """Create tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (%s)", engine.url.get_backend_name())


async def drop_models() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency function — use in FastAPI `Depends(get_db_session)`."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
