import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import event

from core.config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str | None = None, **kwargs) -> AsyncEngine:
    """Create the async engine; SQLite connections get foreign key enforcement."""
    url = database_url or settings.database_url
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_size", settings.database_pool_size)
        kwargs.setdefault("max_overflow", settings.database_max_overflow)
        kwargs.setdefault("pool_pre_ping", True)

    engine = create_async_engine(url, echo=False, **kwargs)

    if engine.dialect.name == "sqlite":
        # SQLite ignores ON DELETE RESTRICT unless foreign keys are switched on
        @event.listens_for(engine.sync_engine, "connect")
        def connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


db_engine = build_engine()
logger.info("Database engine created for %s", db_engine.url.render_as_string(hide_password=True))


# Create async session maker to be used throughout the application
AsyncSessionLocal = async_sessionmaker(
    db_engine, class_=AsyncSession, expire_on_commit=False
)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# Dependency to get DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


# Function to initialize the database (create tables)
async def init_db(engine: AsyncEngine | None = None):
    import database.models  # noqa: F401  registers every table on Base.metadata

    async with (engine or db_engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Function to close database connections
async def close_db():
    """Close database engine and connections."""
    await db_engine.dispose()
