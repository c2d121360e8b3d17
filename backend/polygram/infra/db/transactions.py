"""Transaction coordinator: multi-table writes as all-or-nothing units.

Repositories only flush. Every unit here commits once at the end, or rolls
back and surfaces a single ``InternalError`` (domain errors pass through
unchanged after the rollback).
"""
from contextlib import asynccontextmanager
import logging
from typing import AsyncIterator, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.domain.common.errors import ConflictError, DomainError, InternalError
from polygram.domain.users.models import OTP_EXPIRED_AT, User
from polygram.infra.db.models.notification import NotificationModel
from polygram.infra.db.models.opinion import OpinionModel, VoteKind
from polygram.infra.db.repositories.device_repo import DeviceRepository
from polygram.infra.db.repositories.notification_repo import NotificationRepository
from polygram.infra.db.repositories.opinion_repo import OpinionRepository
from polygram.infra.db.repositories.picture_repo import PictureRepository
from polygram.infra.db.repositories.question_repo import QuestionRepository
from polygram.infra.db.repositories.user_repo import UserRepositoryImpl

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """Runs multi-table writes on one session as atomic units."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepositoryImpl(session)
        self.questions = QuestionRepository(session)
        self.opinions = OpinionRepository(session)
        self.notifications = NotificationRepository(session)
        self.pictures = PictureRepository(session)
        self.devices = DeviceRepository(session)

    @asynccontextmanager
    async def atomic(self, action: str, conflict_message: Optional[str] = None) -> AsyncIterator[AsyncSession]:
        """Commit on success; roll back on any error.

        Args:
            action: Short description used in the log and the InternalError message.
            conflict_message: When set, an IntegrityError becomes ConflictError(conflict_message).
        """
        try:
            yield self.session
            await self.session.commit()
        except DomainError:
            await self.session.rollback()
            raise
        except IntegrityError as e:
            await self.session.rollback()
            if conflict_message is not None:
                logger.info("%s rejected by a uniqueness constraint", action)
                raise ConflictError(conflict_message) from e
            logger.exception("Transaction aborted while %s", action)
            raise InternalError(f"Error {action}") from e
        except Exception as e:
            await self.session.rollback()
            logger.exception("Transaction aborted while %s", action)
            raise InternalError(f"Error {action}") from e

    async def create_opinion(self, opinion: OpinionModel, notification: NotificationModel) -> OpinionModel:
        """Insert the opinion, its author's upvote and the question author's notification."""
        async with self.atomic(
            "creating opinion", conflict_message="User can only post single opinion for a question"
        ):
            await self.opinions.add(opinion)
            await self.opinions.set_vote(opinion.id, opinion.author_id, VoteKind.UP)
            await self.notifications.add(notification)
        return opinion

    async def delete_opinion(self, opinion_id: str) -> None:
        async with self.atomic("deleting opinion"):
            await self.opinions.delete(opinion_id)

    async def delete_question(self, question_id: str) -> None:
        """Delete the question with every opinion and vote on it."""
        async with self.atomic("deleting question"):
            await self.opinions.delete_by_questions([question_id])
            await self.questions.delete_many([question_id])

    async def delete_user(self, user: User) -> None:
        """Delete the user and everything that references them, in dependency order."""
        async with self.atomic("deleting account"):
            question_ids = await self.questions.ids_by_author(user.id)
            await self.opinions.delete_by_questions(question_ids)
            await self.opinions.delete_by_author(user.id)
            await self.questions.delete_many(question_ids)
            await self.pictures.delete_by_owner(user.username)
            await self.notifications.delete_for_user(user.id)
            await self.devices.delete_token(user.id)
            await self.users.delete(user.id)
        logger.info("Deleted account %s with %d questions", user.id, len(question_ids))

    async def change_password(
        self, user_id: str, password_hash: str, notification: NotificationModel
    ) -> None:
        """Store the new hash, expire any OTP and record a changed-password notification."""
        async with self.atomic("changing password"):
            await self.users.update_fields(
                user_id, password_hash=password_hash, otp_generated_at=OTP_EXPIRED_AT
            )
            await self.notifications.add(notification)
