"""Push notification sender via FCM (Firebase Cloud Messaging)."""
import asyncio
import logging
import os
from typing import Any

import firebase_admin
from firebase_admin import credentials, messaging
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.infra.db.repositories.device_repo import DeviceRepository
from polygram.settings import settings

logger = logging.getLogger(__name__)

_firebase_app = None


def _get_firebase_app():
    """Lazy-init Firebase default app. Returns None if push disabled or no credentials."""
    global _firebase_app
    if _firebase_app is not None:
        return _firebase_app
    if not settings.push_enabled:
        return None
    cred_path = settings.google_application_credentials or os.environ.get(
        "GOOGLE_APPLICATION_CREDENTIALS", ""
    )
    if not cred_path:
        logger.debug("Push disabled: no GOOGLE_APPLICATION_CREDENTIALS")
        return None
    try:
        _firebase_app = firebase_admin.initialize_app(credentials.Certificate(cred_path))
    except (ValueError, OSError) as e:
        logger.warning("Firebase init failed (push disabled): %s", e)
        return None
    return _firebase_app


async def send_push_to_user(
    session: AsyncSession,
    user_id: str,
    title: str,
    body: str,
    data: dict[str, Any],
) -> int:
    """Send one message per registered device of the user. Returns messages sent.

    Failures are logged per device and never raised. Tokens FCM reports as
    unregistered are dropped.
    """
    app = _get_firebase_app()
    if app is None:
        return 0
    repo = DeviceRepository(session)
    tokens_rows = await repo.list_tokens_by_user(user_id)
    if not tokens_rows:
        logger.debug("No push tokens for user %s", user_id)
        return 0
    # FCM data payload: all values must be strings
    data_str = {k: str(v) for k, v in data.items() if v is not None}
    sent = 0
    stale = []
    for (push_token, platform) in tokens_rows:
        message = messaging.Message(
            notification=messaging.Notification(title=title, body=body),
            data=data_str,
            token=push_token,
        )
        try:
            await asyncio.to_thread(messaging.send, message, app=app)
            sent += 1
            logger.debug("Push sent to user %s token %s...", user_id, push_token[:20])
        except messaging.UnregisteredError:
            stale.append(push_token)
        except Exception as e:
            logger.warning("Push send failed for token %s... (%s): %s", push_token[:20], platform, e)
    if stale:
        for push_token in stale:
            await repo.delete_stale_token(push_token)
        await session.commit()
        logger.info("Dropped %d unregistered push tokens for user %s", len(stale), user_id)
    return sent
