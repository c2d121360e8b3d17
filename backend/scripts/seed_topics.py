"""Seed script for topics.

Usage: python scripts/seed_topics.py [name ...]
Without names the default topic list is seeded. Existing names are skipped.
"""
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from polygram.infra.db.base import (
    make_session_factory,
    normalize_async_pg_url,
    async_pg_url_without_sslmode,
    async_pg_connect_args,
)
from polygram.infra.db.repositories.topic_repo import TopicRepository
from polygram.settings import settings

DEFAULT_TOPICS = [
    "technology",
    "science",
    "politics",
    "sports",
    "music",
    "movies",
    "books",
    "food",
    "travel",
    "health",
    "education",
    "gaming",
    "fashion",
    "finance",
    "environment",
]


async def seed_topics(session: AsyncSession, names: list[str]) -> list[str]:
    """Add the topics that do not exist yet. Returns the names added."""
    repo = TopicRepository(session)
    added = []
    for name in dict.fromkeys(names):
        if await repo.get_by_name(name) is None:
            await repo.add(name)
            added.append(name)
    await session.commit()
    return added


async def main(names: list[str]) -> None:
    url = normalize_async_pg_url(settings.database_url)
    engine = create_async_engine(
        async_pg_url_without_sslmode(url),
        connect_args=async_pg_connect_args(url),
        echo=False,
    )
    async with make_session_factory(engine)() as session:
        added = await seed_topics(session, names)
    await engine.dispose()
    skipped = len(set(names)) - len(added)
    print(f"Seeded {len(added)} topics ({skipped} already existed).")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:] or DEFAULT_TOPICS))
