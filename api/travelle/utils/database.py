"""
SQL Database Connection & Session Management
"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base
import logging

from travelle.config import settings
from travelle.errors import DataAccessFailure

logger = logging.getLogger(__name__)


def _engine_options() -> dict:
    """Pool and connect options for the configured backend"""
    if settings.DATABASE_URL.startswith("sqlite"):
        options = {"echo": settings.DEBUG}
        # Hosted libsql databases authenticate with a token
        if settings.DATABASE_AUTH_TOKEN and "libsql" in settings.DATABASE_URL:
            options["connect_args"] = {"auth_token": settings.DATABASE_AUTH_TOKEN}
        return options

    return {
        "echo": settings.DEBUG,
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_timeout": 10,
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options())

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()


async def init_db():
    """Initialize database connection and create missing tables"""
    logger.info("Initializing database connection...")
    import travelle.models  # noqa: F401  register tables on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database connection established")


async def close_db():
    """Close database connection"""
    logger.info("Closing database connection...")
    await engine.dispose()
    logger.info("Database connection closed")


async def get_db() -> AsyncSession:
    """
    Dependency that provides a database session
    Usage: db: AsyncSession = Depends(get_db)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def execute(db: AsyncSession, statement):
    """
    Execute a statement, translating driver errors into DataAccessFailure
    """
    try:
        return await db.execute(statement)
    except SQLAlchemyError as e:
        logger.error(f"Query failed: {e}")
        await db.rollback()
        raise DataAccessFailure(str(e)) from e


async def commit(db: AsyncSession):
    """Commit the session, translating driver errors into DataAccessFailure"""
    try:
        await db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Commit failed: {e}")
        await db.rollback()
        raise DataAccessFailure(str(e)) from e
