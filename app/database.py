from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from app.config import settings
import logging

logger = logging.getLogger(__name__)


def engine_options(environment: str, debug: bool) -> dict:
    """Pool settings per environment; production sizes for request plus page-view writer traffic."""
    if environment == "production":
        return {"pool_size": 20, "max_overflow": 50, "pool_timeout": 60, "pool_recycle": 1800}
    return {"echo": debug, "pool_size": 10, "max_overflow": 20, "pool_timeout": 30}


def build_engine(database_url: str = settings.database_url) -> AsyncEngine:
    return create_async_engine(database_url, **engine_options(settings.environment, settings.debug))


engine = build_engine()

# Shared by request handlers (via get_db) and the background page-view writer
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception as e:
            logger.error(f"Database session error: {e}")
            raise
