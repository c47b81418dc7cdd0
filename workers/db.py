"""Database sessions for tasks.

Each task body runs under its own ``asyncio.run`` loop, so it gets its own
engine rather than the API's pooled one.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.engine import build_engine


@asynccontextmanager
async def task_session(database_url: str | None = None) -> AsyncIterator[AsyncSession]:
    engine = build_engine(database_url)
    try:
        async with async_sessionmaker(engine, expire_on_commit=False)() as session:
            yield session
    finally:
        await engine.dispose()
