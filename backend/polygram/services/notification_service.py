"""
Notification fan-out: in-app inbox rows and best-effort push.

Inbox rows are built here but written by the caller's transaction
(see TransactionCoordinator). Push goes out only after that transaction has
committed, on a background task with its own DB session; push failures are
logged and never reach the HTTP caller.
"""
import asyncio
import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from polygram.domain.common.errors import AuthorizationError, NotFoundError, ValidationError
from polygram.domain.common.pagination import CursorParams, build_cursor_query
from polygram.domain.common.types import generate_id, utc_now
from polygram.domain.common.validation import validate_id, validate_string, validate_string_list
from polygram.domain.polls.models import AuthorSummary, Notification, Page
from polygram.domain.users.models import User
from polygram.infra.db.models.notification import NotificationModel, NotificationType
from polygram.infra.db.repositories.device_repo import DeviceRepository
from polygram.infra.db.repositories.notification_repo import NotificationRepository
from polygram.infra.db.session import get_session_factory
from polygram.infra.push.sender import send_push_to_user
from polygram.settings import settings

logger = logging.getLogger(__name__)

PUSH_PLATFORMS = ("web", "ios", "android")

# Strong references to in-flight push tasks
_push_tasks: set[asyncio.Task] = set()


def build_notification(
    receiver_id: str,
    type: str,
    message: str,
    *,
    sender_id: Optional[str] = None,
    target_content_id: Optional[str] = None,
) -> NotificationModel:
    """Validate and build an unsaved notification row."""
    validate_string(message, 2, 160, "message", required=True)
    validate_string(type, 3, 30, "type", required=True)
    if type not in {t.value for t in NotificationType}:
        raise ValidationError(f"Invalid notification type {type}", field="type")
    return NotificationModel(
        id=generate_id(),
        receiver_id=receiver_id,
        sender_id=sender_id,
        type=type,
        message=message,
        target_content_id=target_content_id,
        has_read=False,
        created_at=utc_now(),
    )


async def _push_in_background(user_id: str, title: str, body: str, data: dict[str, Any]) -> None:
    session_factory = get_session_factory()
    if session_factory is None:
        return
    try:
        async with session_factory() as session:
            await send_push_to_user(session, user_id, title, body, data)
    except Exception as e:
        logger.warning("Push send failed for user %s: %s", user_id, e)


def dispatch_push(
    user_id: str, title: str, body: str, data: Optional[dict[str, Any]] = None
) -> Optional[asyncio.Task]:
    """Fire-and-forget push to every device of the user. Call only after commit."""
    if not settings.push_enabled:
        return None
    task = asyncio.create_task(_push_in_background(user_id, title, body, data or {}))
    _push_tasks.add(task)
    task.add_done_callback(_push_tasks.discard)
    return task


def _to_domain(model: NotificationModel, sender=None) -> Notification:
    return Notification(
        id=model.id,
        receiver_id=model.receiver_id,
        type=model.type,
        message=model.message,
        has_read=model.has_read,
        created_at=model.created_at,
        target_content_id=model.target_content_id,
        sender=AuthorSummary(
            id=sender.id,
            username=sender.username,
            first_name=sender.first_name,
            last_name=sender.last_name,
            profile_picture=sender.profile_picture,
        ) if sender is not None else None,
    )


class NotificationService:
    """Inbox operations for the acting user."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = NotificationRepository(session, ttl_days=settings.notification_ttl_days)
        self.devices = DeviceRepository(session)

    async def list_notifications(self, user: User, params: CursorParams) -> Page:
        query = build_cursor_query(params, default_size=5, min_size=1, max_size=50)
        rows = await self.repo.find_page(user.id, query)
        return Page(items=[_to_domain(model, sender) for model, sender in rows])

    async def count_unread(self, user: User) -> int:
        return await self.repo.count_unread(user.id)

    async def _get_owned(self, user: User, notification_id: str) -> NotificationModel:
        validate_id(notification_id, "notification_id", required=True)
        notification = await self.repo.get(notification_id)
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        if notification.receiver_id != user.id:
            raise AuthorizationError("You don't have the permission to update this notification")
        return notification

    async def set_has_read(self, user: User, notification_id: str, has_read: bool) -> None:
        """Toggle read state. Only the receiver may do this."""
        if not isinstance(has_read, bool):
            raise ValidationError("has_read must be of type boolean", field="has_read")
        await self._get_owned(user, notification_id)
        await self.repo.set_has_read(notification_id, has_read)
        await self.session.commit()

    async def mark_all_read(self, user: User) -> int:
        count = await self.repo.mark_all_read(user.id)
        await self.session.commit()
        return count

    async def delete(self, user: User, notification_id: str) -> Notification:
        notification = await self._get_owned(user, notification_id)
        deleted = _to_domain(notification)
        await self.repo.delete(notification_id)
        await self.session.commit()
        return deleted

    async def subscribe(self, user: User, push_token: str, platform: str) -> None:
        """Register a device token for push."""
        validate_string(push_token, 10, 4096, "push_token", required=True)
        if platform not in PUSH_PLATFORMS:
            raise ValidationError(f"platform must be one of {', '.join(PUSH_PLATFORMS)}", field="platform")
        await self.devices.upsert_by_token(user.id, push_token, platform)
        await self.session.commit()
        logger.info("Device registered for push: user=%s platform=%s", user.id, platform)

    async def unsubscribe(self, user: User, push_token: Optional[str] = None) -> int:
        """Forget one device token, or every token of the user when none is given."""
        removed = await self.devices.delete_token(user.id, push_token)
        await self.session.commit()
        return removed

    async def broadcast(
        self, master_password: str, title: str, body: str, usernames: Optional[list[str]] = None
    ) -> int:
        """Admin push to all subscribed users (or only ``usernames``). Returns users targeted."""
        validate_string_list(usernames, 4, 15, "usernames", 1, 100)
        validate_string(title, 3, 50, "title", required=True)
        validate_string(body, 3, 150, "body", required=True)
        if not settings.master_password or master_password != settings.master_password:
            raise AuthorizationError("You are not authorized to access this route")

        user_ids = await self.devices.users_with_devices(usernames)
        # one session, so users are sent to one after another
        for user_id in user_ids:
            try:
                await send_push_to_user(self.session, user_id, title, body, {})
            except Exception as e:
                logger.warning("Broadcast push failed for user %s: %s", user_id, e)
        return len(user_ids)
