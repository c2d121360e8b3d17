"""Notification repository."""
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, delete, or_

from polygram.domain.common.pagination import CursorQuery
from polygram.domain.common.types import utc_now
from polygram.infra.db.models.notification import NotificationModel
from polygram.infra.db.models.user import UserModel


class NotificationRepository:
    """Notification repository.

    Reads only see notifications younger than ``ttl_days``. Writes are flushed,
    never committed.
    """

    def __init__(self, session: AsyncSession, ttl_days: int = 30):
        self.session = session
        self.ttl_days = ttl_days

    def _cutoff(self) -> datetime:
        return utc_now() - timedelta(days=self.ttl_days)

    async def add(self, notification: NotificationModel) -> NotificationModel:
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def find_page(
        self, receiver_id: str, query: CursorQuery
    ) -> list[tuple[NotificationModel, Optional[UserModel]]]:
        """Page of live notifications for a receiver, with the sender (if any)."""
        q = (
            select(NotificationModel, UserModel)
            .outerjoin(UserModel, UserModel.id == NotificationModel.sender_id)
            .where(
                NotificationModel.receiver_id == receiver_id,
                NotificationModel.created_at >= self._cutoff(),
            )
        )
        result = await self.session.execute(query.apply(q, NotificationModel.id))
        return [(row[0], row[1]) for row in result.all()]

    async def count_unread(self, receiver_id: str) -> int:
        """Count unread notifications for a receiver."""
        result = await self.session.execute(
            select(func.count()).select_from(NotificationModel).where(
                NotificationModel.receiver_id == receiver_id,
                NotificationModel.has_read.is_(False),
                NotificationModel.created_at >= self._cutoff(),
            )
        )
        return result.scalar() or 0

    async def get(self, notification_id: str) -> Optional[NotificationModel]:
        result = await self.session.execute(
            select(NotificationModel).where(
                NotificationModel.id == notification_id,
                NotificationModel.created_at >= self._cutoff(),
            )
        )
        return result.scalar_one_or_none()

    async def set_has_read(self, notification_id: str, has_read: bool) -> None:
        await self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.id == notification_id)
            .values(has_read=has_read)
        )

    async def mark_all_read(self, receiver_id: str) -> int:
        """Mark every notification of this receiver as read. Returns count updated."""
        result = await self.session.execute(
            update(NotificationModel)
            .where(NotificationModel.receiver_id == receiver_id)
            .values(has_read=True)
        )
        return result.rowcount or 0

    async def delete(self, notification_id: str) -> int:
        result = await self.session.execute(
            delete(NotificationModel).where(NotificationModel.id == notification_id)
        )
        return result.rowcount or 0

    async def delete_for_user(self, user_id: str) -> int:
        """Delete notifications the user sent or received."""
        result = await self.session.execute(
            delete(NotificationModel).where(
                or_(NotificationModel.receiver_id == user_id, NotificationModel.sender_id == user_id)
            )
        )
        return result.rowcount or 0

    async def purge_expired(self) -> int:
        """Delete notifications past their time to live. Returns count deleted."""
        result = await self.session.execute(
            delete(NotificationModel).where(NotificationModel.created_at < self._cutoff())
        )
        return result.rowcount or 0
