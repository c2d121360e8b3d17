"""Notification database model."""
from datetime import datetime
import enum

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Text

from polygram.infra.db.base import Base


class NotificationType(str, enum.Enum):
    ADDED_OPINION = "added-opinion"
    CHANGED_PASSWORD = "changed-password"


class NotificationModel(Base):
    """In-app notification. Expires notification_ttl_days after creation."""

    __tablename__ = "notifications"

    id = Column(String(24), primary_key=True)
    receiver_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(String(24), ForeignKey("users.id"), nullable=True, index=True)
    type = Column(String, nullable=False)  # NotificationType value
    message = Column(Text, nullable=False)
    target_content_id = Column(String(24), nullable=True)  # e.g. question id for added-opinion
    has_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
