"""Notification API routes."""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.api.deps import cursor_params, get_current_user, get_db
from polygram.domain.common.pagination import CursorParams
from polygram.domain.users.models import User
from polygram.services.notification_service import NotificationService

router = APIRouter()


class HasReadRequest(BaseModel):
    has_read: Optional[bool] = None


class SubscribeRequest(BaseModel):
    """Device push token registration."""
    push_token: Optional[str] = None
    platform: Optional[str] = None  # web, ios or android


class UnsubscribeRequest(BaseModel):
    push_token: Optional[str] = None  # omitted: every device of the user


class SendPushRequest(BaseModel):
    master_password: Optional[str] = None
    title: Optional[str] = None
    body: Optional[str] = None
    usernames: Optional[list[str]] = None


@router.get("")
async def list_notifications(
    params: CursorParams = Depends(cursor_params),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Notifications received by the current user, newest first."""
    page = await NotificationService(db).list_notifications(current_user, params)
    return {"msg": "Notifications Found", "data": {"notifications": page.items}}


@router.get("/count")
async def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return unread notification count for the current user."""
    count = await NotificationService(db).count_unread(current_user)
    return {"msg": "Notifications Found", "data": {"count": count}}


@router.post("/mark-all-as-read")
async def mark_all_notifications_read(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await NotificationService(db).mark_all_read(current_user)
    return {"msg": "All notifications marked as Read", "data": {"updated": count}}


@router.post("/subscribe")
async def subscribe_push(
    request: SubscribeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).subscribe(current_user, request.push_token, request.platform)
    return {"subscribed": True, "msg": "Successfully subscribed to push notification"}


@router.post("/unsubscribe")
async def unsubscribe_push(
    request: UnsubscribeRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).unsubscribe(current_user, request.push_token)
    return {"subscribed": False, "msg": "Successfully unsubscribed from push notification"}


@router.post("/send-push")
async def send_push(request: SendPushRequest, db: AsyncSession = Depends(get_db)):
    """Admin broadcast to subscribed devices (master password)."""
    targeted = await NotificationService(db).broadcast(
        request.master_password, request.title, request.body, request.usernames
    )
    if not targeted:
        return {"msg": "No user found"}
    return {"msg": "All push notifications send successfully", "data": {"users": targeted}}


@router.post("/{notification_id}/has-read")
async def update_has_read(
    notification_id: str,
    request: HasReadRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).set_has_read(current_user, notification_id, request.has_read)
    msg = "Notification marked as Read" if request.has_read else "Notification marked as Unread"
    return {"msg": msg}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).delete(current_user, notification_id)
    return {"msg": "Notification deleted successfully", "data": {"notification": notification}}
