"""Polls domain services: questions, opinions (with the vote ledger) and topics."""
import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from polygram.domain.common.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from polygram.domain.common.pagination import CursorParams, build_cursor_query
from polygram.domain.common.types import generate_id, utc_now
from polygram.domain.common.validation import validate_id, validate_string, validate_string_list
from polygram.domain.polls.aggregation import option_breakdown
from polygram.domain.polls.models import (
    AuthorSummary,
    Opinion,
    Page,
    Question,
    QuestionDetail,
    Topic,
    VoteCounts,
)
from polygram.domain.users.models import User
from polygram.infra.db.models.notification import NotificationType
from polygram.infra.db.models.opinion import OpinionModel, VoteKind
from polygram.infra.db.models.question import QuestionModel
from polygram.infra.db.models.topic import TopicModel
from polygram.infra.db.repositories.opinion_repo import OpinionRow
from polygram.infra.db.repositories.topic_repo import TopicRepository
from polygram.infra.db.transactions import TransactionCoordinator
from polygram.services.notification_service import build_notification, dispatch_push
from polygram.settings import settings

logger = logging.getLogger(__name__)

FOLLOW_UPDATE_ATTEMPTS = 5


def author_summary(model) -> AuthorSummary:
    """Public author fields from a UserModel or User."""
    return AuthorSummary(
        id=model.id,
        username=model.username,
        first_name=model.first_name,
        last_name=model.last_name,
        profile_picture=model.profile_picture,
    )


def _question(model: QuestionModel, author) -> Question:
    return Question(
        id=model.id,
        author=author_summary(author),
        title=model.title,
        content=model.content,
        options=list(model.options),
        topics=list(model.topics),
        created_at=model.created_at,
    )


def _opinion(row: OpinionRow, with_viewer: bool) -> Opinion:
    return Opinion(
        id=row.opinion.id,
        question_id=row.opinion.question_id,
        author=author_summary(row.author),
        content=row.opinion.content,
        option=row.opinion.option,
        upvote_count=row.upvote_count,
        downvote_count=row.downvote_count,
        created_at=row.opinion.created_at,
        is_upvoted=(row.viewer_vote == VoteKind.UP.value) if with_viewer else None,
        is_downvoted=(row.viewer_vote == VoteKind.DOWN.value) if with_viewer else None,
    )


def _topic(model: TopicModel, followed: list[str], count: Optional[int] = None) -> Topic:
    return Topic(
        id=model.id,
        name=model.name,
        created_at=model.created_at,
        followed_by_user=model.name in followed,
        question_count=count,
    )


class QuestionService:
    """Question listing, detail with percentages, creation and deletion."""

    def __init__(self, session: AsyncSession):
        self.coordinator = TransactionCoordinator(session)
        self.questions = self.coordinator.questions
        self.opinions = self.coordinator.opinions
        self.topics = TopicRepository(session)

    async def list_questions(
        self,
        viewer: Optional[User],
        params: CursorParams,
        topic: Optional[str] = None,
        search: Optional[str] = None,
        user_id: Optional[str] = None,
        following: bool = False,
    ) -> Page:
        """Newest-first page of questions.

        ``topic`` beats ``following``; ``following`` only applies with a viewer
        who follows at least one topic.
        """
        validate_string(topic, 2, 30, "topic")
        validate_string(search, 0, 50, "search")
        validate_id(user_id, "user_id")

        filters = {"topic": topic, "search": search or None, "author_id": user_id}
        if following and viewer is not None and viewer.followed_topics and not topic:
            filters["topics_any"] = list(viewer.followed_topics)
        query = build_cursor_query(params, default_size=10, min_size=5, max_size=50, filters=filters)
        rows = await self.questions.find_page(query)
        return Page(items=[_question(q, author) for q, author in rows])

    async def get_question(self, question_id: str) -> QuestionDetail:
        """Question plus the percentage of support for each of its options."""
        validate_id(question_id, "id", required=True)
        found = await self.questions.get_with_author(question_id)
        if found is None:
            raise NotFoundError("Question", question_id)
        model, author = found
        tallies = await self.opinions.tallies_for_question(question_id)
        return QuestionDetail(
            question=_question(model, author),
            options=option_breakdown(model.options, tallies),
            opinion_count=len(tallies),
        )

    async def create_question(
        self, user: User, title: str, content: str, options: list[str], topics: list[str]
    ) -> Question:
        validate_string(title, 15, 150, "title", required=True)
        validate_string(content, 30, 1000, "content", required=True)
        validate_string_list(options, 1, 30, "options", 2, 5, required=True)
        validate_string_list(topics, 2, 30, "topics", 1, 5, required=True)
        if len(set(options)) != len(options):
            raise ValidationError("options must be unique", field="options")
        if len(set(topics)) != len(topics):
            raise ValidationError("topics must be unique", field="topics")
        if await self.topics.count_existing(topics) != len(topics):
            raise ValidationError("Some or all topics provided does not exist", field="topics")

        model = QuestionModel(
            id=generate_id(),
            author_id=user.id,
            title=title,
            content=content,
            options=list(options),
            topics=list(topics),
            created_at=utc_now(),
        )
        async with self.coordinator.atomic("creating question"):
            await self.questions.add(model)
        logger.info("Question %s created by %s", model.id, user.id)
        return _question(model, user)

    async def delete_question(self, user: User, question_id: str) -> None:
        """Delete a question and every opinion on it. Author only."""
        validate_id(question_id, "id", required=True)
        model = await self.questions.get(question_id)
        if model is None:
            raise NotFoundError("Question", question_id)
        if model.author_id != user.id:
            raise AuthorizationError("You don't have the permission to delete this question")
        await self.coordinator.delete_question(question_id)
        logger.info("Question %s deleted by %s", question_id, user.id)


class OpinionService:
    """Opinions on questions and the up/down vote ledger."""

    def __init__(self, session: AsyncSession):
        self.coordinator = TransactionCoordinator(session)
        self.opinions = self.coordinator.opinions
        self.questions = self.coordinator.questions

    async def list_opinions(
        self, viewer: Optional[User], question_id: str, params: CursorParams
    ) -> Page:
        """Newest-first opinions on a question, with vote counts.

        With a viewer, each opinion also says whether the viewer up- or downvoted it.
        """
        validate_id(question_id, "question_id", required=True)
        query = build_cursor_query(
            params, default_size=5, min_size=5, max_size=50, filters={"question_id": question_id}
        )
        viewer_id = viewer.id if viewer is not None else None
        rows = await self.opinions.find_page(query, viewer_id=viewer_id)
        return Page(items=[_opinion(row, viewer is not None) for row in rows])

    async def create_opinion(self, user: User, question_id: str, content: str, option: str) -> Opinion:
        """Post the user's single opinion on a question and notify the question's author."""
        validate_id(question_id, "question_id", required=True)
        validate_string(content, 5, 1600, "content", required=True)
        validate_string(option, 1, 30, "option", required=True)

        if await self.opinions.exists_for(question_id, user.id):
            raise ConflictError("User can only post single opinion for a question")
        question = await self.questions.get(question_id)
        if question is None:
            raise NotFoundError("Question", question_id)
        if option not in question.options:
            raise ValidationError("Invalid option", field="option")

        opinion = OpinionModel(
            id=generate_id(),
            question_id=question_id,
            author_id=user.id,
            content=content,
            option=option,
            created_at=utc_now(),
        )
        notification = build_notification(
            question.author_id,
            NotificationType.ADDED_OPINION.value,
            question.title,
            sender_id=user.id,
            target_content_id=question.id,
        )
        await self.coordinator.create_opinion(opinion, notification)

        dispatch_push(
            question.author_id,
            "Received an Opinion",
            f'{user.first_name} responded to your question "{question.title}"',
            {"notificationId": notification.id, "type": notification.type, "questionId": question.id},
        )
        return Opinion(
            id=opinion.id,
            question_id=question_id,
            author=author_summary(user),
            content=content,
            option=option,
            upvote_count=1,
            downvote_count=0,
            created_at=opinion.created_at,
            is_upvoted=True,
            is_downvoted=False,
        )

    async def delete_opinion(self, user: User, opinion_id: str) -> None:
        validate_id(opinion_id, "id", required=True)
        opinion = await self.opinions.get(opinion_id)
        if opinion is None:
            raise NotFoundError("Opinion", opinion_id)
        if opinion.author_id != user.id:
            raise AuthorizationError("You don't have the permission to delete this opinion")
        await self.coordinator.delete_opinion(opinion_id)

    async def _vote(self, user: User, opinion_id: str, kind: VoteKind, add: bool) -> VoteCounts:
        validate_id(opinion_id, "id", required=True)
        if await self.opinions.get(opinion_id) is None:
            raise NotFoundError("Opinion", opinion_id)
        async with self.coordinator.atomic("voting"):
            if add:
                await self.opinions.set_vote(opinion_id, user.id, kind)
            else:
                await self.opinions.remove_vote(opinion_id, user.id, kind)
            counts = await self.opinions.vote_counts(opinion_id)
        return counts

    async def add_upvote(self, user: User, opinion_id: str) -> VoteCounts:
        """Upvote; replaces the user's downvote if there was one."""
        return await self._vote(user, opinion_id, VoteKind.UP, add=True)

    async def add_downvote(self, user: User, opinion_id: str) -> VoteCounts:
        """Downvote; replaces the user's upvote if there was one."""
        return await self._vote(user, opinion_id, VoteKind.DOWN, add=True)

    async def remove_upvote(self, user: User, opinion_id: str) -> VoteCounts:
        """Remove the user's upvote. No-op when there is none."""
        return await self._vote(user, opinion_id, VoteKind.UP, add=False)

    async def remove_downvote(self, user: User, opinion_id: str) -> VoteCounts:
        """Remove the user's downvote. No-op when there is none."""
        return await self._vote(user, opinion_id, VoteKind.DOWN, add=False)


class TopicService:
    """Topics and the topics a user follows."""

    def __init__(self, session: AsyncSession):
        self.coordinator = TransactionCoordinator(session)
        self.topics = TopicRepository(session)
        self.users = self.coordinator.users

    async def list_topics(
        self,
        viewer: Optional[User],
        params: CursorParams,
        search: Optional[str] = None,
        count: bool = False,
    ) -> Page:
        """Newest-first topics, optionally with how many questions use each."""
        validate_string(search, 0, 30, "search")
        query = build_cursor_query(
            params, default_size=5, min_size=1, max_size=50, filters={"search": search or None}
        )
        models = await self.topics.find_page(query)
        followed = viewer.followed_topics if viewer is not None else []
        counts = await self.topics.question_counts([m.name for m in models]) if count else None
        return Page(
            items=[
                _topic(m, followed, counts.get(m.name, 0) if counts is not None else None)
                for m in models
            ]
        )

    async def get_topic(self, viewer: Optional[User], topic_id: str) -> Topic:
        validate_id(topic_id, "id", required=True)
        model = await self.topics.get(topic_id)
        if model is None:
            raise NotFoundError("Topic", topic_id)
        return _topic(model, viewer.followed_topics if viewer is not None else [])

    async def follow(self, user: User, topics: list[str]) -> list[str]:
        """Add topics to the user's followed set. Every name must exist."""
        validate_string_list(topics, 2, 30, "topics", 1, 100, required=True)
        if await self.topics.count_existing(topics) != len(set(topics)):
            raise ValidationError("Some or all topics provided does not exist", field="topics")
        return await self._update_followed(
            user, lambda current: list(dict.fromkeys([*current, *topics]))
        )

    async def unfollow(self, user: User, topics: list[str]) -> list[str]:
        """Remove topics from the user's followed set. Unknown names are ignored."""
        validate_string_list(topics, 2, 30, "topics", 1, 100, required=True)
        removed = set(topics)
        return await self._update_followed(
            user, lambda current: [t for t in current if t not in removed]
        )

    async def _update_followed(self, user: User, change: Callable[[list[str]], list[str]]) -> list[str]:
        """Apply ``change`` to the stored followed list with compare-and-set.

        The list is re-read inside the transaction; a write that raced with
        another request matches no row and is retried on the fresh value.
        """
        for _ in range(FOLLOW_UPDATE_ATTEMPTS):
            async with self.coordinator.atomic("updating followed topics"):
                current = await self.users.get_followed_topics(user.id)
                followed = change(current)
                if followed == current:
                    return followed
                if await self.users.replace_followed_topics(user.id, current, followed):
                    return followed
            logger.info("Followed topics of %s changed concurrently; retrying", user.id)
        raise ConflictError("Followed topics are being updated, please try again")

    async def create_topic(self, master_password: Optional[str], name: str) -> Topic:
        """Admin-only topic creation."""
        validate_string(name, 2, 30, "name", required=True)
        if not settings.master_password or master_password != settings.master_password:
            raise AuthorizationError("You are not authorized to access this route")
        if await self.topics.get_by_name(name) is not None:
            raise ConflictError(f"Topic {name} already exist")
        async with self.coordinator.atomic("creating topic", conflict_message=f"Topic {name} already exist"):
            model = await self.topics.add(name)
        return _topic(model, [])
