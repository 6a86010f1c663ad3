# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# Async SQLAlchemy engine on asyncpg. Every database call in the app is
# awaited; sessions are created per request via FastAPI dependency
# injection.
#
# SESSION LIFECYCLE:
# 1. FastAPI request arrives
# 2. `get_async_session` dependency creates a new session
# 3. Route handler uses session for DB operations
# 4. Session commits on exit and is closed when the request completes
# 5. On exception, the transaction is rolled back
# =============================================================================

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from lawchat.config import settings
from lawchat.db.models import Base

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Async Engine
# ---------------------------------------------------------------------------
# - echo: logs every SQL statement when DEBUG=true
# - pool_pre_ping: drops connections the server closed while idle
# ---------------------------------------------------------------------------
async_engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,
)

# expire_on_commit=False: attributes stay readable after commit without a
# new round trip (which would fail outside the session in async code).
async_session_factory = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Usage in route handlers:
        @router.get("/items")
        async def list_items(session: AsyncSession = Depends(get_async_session)):
            result = await session.execute(select(Item))
            return result.scalars().all()
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Enable pgvector and create any missing tables."""
    async with async_engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (tables: %s)", ", ".join(Base.metadata.tables))


async def dispose_engine() -> None:
    """Close all pooled connections (application shutdown)."""
    await async_engine.dispose()
