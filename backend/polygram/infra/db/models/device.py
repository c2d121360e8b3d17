"""Device database model (push tokens)."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey

from polygram.infra.db.base import Base


class DeviceModel(Base):
    """User device subscribed to push notifications."""

    __tablename__ = "devices"

    id = Column(String(24), primary_key=True)
    user_id = Column(String(24), ForeignKey("users.id"), nullable=False, index=True)
    push_token = Column(String, nullable=False, unique=True)
    platform = Column(String, nullable=False)  # 'web', 'ios' or 'android'
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
