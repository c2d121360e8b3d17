"""Question repository."""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func, or_

from polygram.domain.common.pagination import CursorQuery
from polygram.infra.db.models.question import QuestionModel
from polygram.infra.db.models.topic import QuestionTopicModel
from polygram.infra.db.models.user import UserModel


class QuestionRepository:
    """Question repository."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, question: QuestionModel) -> QuestionModel:
        """Insert a question and its topic index rows."""
        self.session.add(question)
        for name in dict.fromkeys(question.topics):
            self.session.add(QuestionTopicModel(question_id=question.id, topic_name=name))
        await self.session.flush()
        return question

    async def get(self, question_id: str) -> Optional[QuestionModel]:
        result = await self.session.execute(
            select(QuestionModel).where(QuestionModel.id == question_id)
        )
        return result.scalar_one_or_none()

    async def get_with_author(self, question_id: str) -> Optional[tuple[QuestionModel, UserModel]]:
        result = await self.session.execute(
            select(QuestionModel, UserModel)
            .join(UserModel, UserModel.id == QuestionModel.author_id)
            .where(QuestionModel.id == question_id)
        )
        row = result.first()
        return (row[0], row[1]) if row else None

    async def find_page(self, query: CursorQuery) -> list[tuple[QuestionModel, UserModel]]:
        """Page of questions with their authors.

        Filters: ``topic`` (single name), ``topics_any`` (any of several names),
        ``author_id`` and ``search`` (substring of title or content).
        """
        q = select(QuestionModel, UserModel).join(UserModel, UserModel.id == QuestionModel.author_id)
        filters = query.filters

        if filters.get("topic"):
            q = q.where(
                QuestionModel.id.in_(
                    select(QuestionTopicModel.question_id).where(
                        QuestionTopicModel.topic_name == filters["topic"]
                    )
                )
            )
        elif filters.get("topics_any"):
            q = q.where(
                QuestionModel.id.in_(
                    select(QuestionTopicModel.question_id).where(
                        QuestionTopicModel.topic_name.in_(filters["topics_any"])
                    )
                )
            )
        if filters.get("author_id"):
            q = q.where(QuestionModel.author_id == filters["author_id"])
        if filters.get("search"):
            term = filters["search"].lower()
            q = q.where(
                or_(
                    func.lower(QuestionModel.title).contains(term, autoescape=True),
                    func.lower(QuestionModel.content).contains(term, autoescape=True),
                )
            )

        result = await self.session.execute(query.apply(q, QuestionModel.id))
        return [(row[0], row[1]) for row in result.all()]

    async def ids_by_author(self, author_id: str) -> list[str]:
        result = await self.session.execute(
            select(QuestionModel.id).where(QuestionModel.author_id == author_id)
        )
        return list(result.scalars().all())

    async def delete_many(self, question_ids: list[str]) -> int:
        """Delete questions and their topic index rows."""
        if not question_ids:
            return 0
        await self.session.execute(
            delete(QuestionTopicModel).where(QuestionTopicModel.question_id.in_(question_ids))
        )
        result = await self.session.execute(
            delete(QuestionModel).where(QuestionModel.id.in_(question_ids))
        )
        return result.rowcount or 0
