"""Request-scoped database session dependency."""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from polygram.infra.db import base


async def get_db() -> AsyncIterator[AsyncSession]:
    """Yield a session for one request; any uncommitted work is rolled back on exit."""
    async with base.AsyncSessionLocal() as session:
        yield session


def get_session_factory():
    """Session factory for work that outlives a request (background push)."""
    return base.AsyncSessionLocal
