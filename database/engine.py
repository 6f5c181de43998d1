import logging
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

logger = logging.getLogger(__name__)

def create_engine(database_url: str = settings.database_url, **kwargs) -> AsyncEngine:
    """Create an async engine; extra kwargs go straight to SQLAlchemy."""
    kwargs.setdefault("echo", settings.database_echo)
    return create_async_engine(database_url, **kwargs)

db_engine = create_engine()

# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)

# Base class for declarative models
class Base(DeclarativeBase):
    pass

# Function to initialize the database (create tables)
async def init_db(engine: AsyncEngine = db_engine):
    # Register all models on the metadata
    import database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")

# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()
