from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from foodshare.config import settings
from foodshare.services import transaction
# URL must use asyncpg for async
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
)

# Session factory for dependency injection and the expiry sweep
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db():
    """One transaction per request: commit on success, roll back on any error.

    Socket pings and other after-commit hooks only run once the commit has gone through.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            await transaction.finish(session, committed=False)
            raise
        await transaction.finish(session, committed=True)
