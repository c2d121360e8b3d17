"""Topic repository."""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from polygram.domain.common.pagination import CursorQuery
from polygram.domain.common.types import generate_id
from polygram.infra.db.models.topic import TopicModel, QuestionTopicModel


class TopicRepository:
    """Topic repository and the topic-name index over questions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, name: str) -> TopicModel:
        model = TopicModel(id=generate_id(), name=name)
        self.session.add(model)
        await self.session.flush()
        return model

    async def get(self, topic_id: str) -> Optional[TopicModel]:
        result = await self.session.execute(select(TopicModel).where(TopicModel.id == topic_id))
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Optional[TopicModel]:
        result = await self.session.execute(select(TopicModel).where(TopicModel.name == name))
        return result.scalar_one_or_none()

    async def count_existing(self, names: list[str]) -> int:
        """How many of the given (distinct) names exist as topics."""
        result = await self.session.execute(
            select(func.count()).select_from(TopicModel).where(TopicModel.name.in_(set(names)))
        )
        return result.scalar() or 0

    async def find_page(self, query: CursorQuery) -> list[TopicModel]:
        """Page of topics; filter ``search`` is a case-insensitive substring of the name."""
        q = select(TopicModel)
        search = query.filters.get("search")
        if search:
            q = q.where(func.lower(TopicModel.name).contains(search.lower(), autoescape=True))
        result = await self.session.execute(query.apply(q, TopicModel.id))
        return list(result.scalars().all())

    async def question_counts(self, names: list[str]) -> dict[str, int]:
        """Number of questions tagged with each topic name."""
        if not names:
            return {}
        result = await self.session.execute(
            select(QuestionTopicModel.topic_name, func.count())
            .where(QuestionTopicModel.topic_name.in_(names))
            .group_by(QuestionTopicModel.topic_name)
        )
        return {name: count for name, count in result.all()}
