"""Picture database model."""
from sqlalchemy import Column, String, LargeBinary, UniqueConstraint

from polygram.infra.db.base import Base


class PictureModel(Base):
    """Stored image. At most one picture per (owner_key, type)."""

    __tablename__ = "pictures"

    id = Column(String(24), primary_key=True)
    owner_key = Column(String, nullable=False, index=True)  # username
    type = Column(String, nullable=False)  # e.g. profile_picture
    data = Column(LargeBinary, nullable=False)
    content_type = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("owner_key", "type", name="uq_picture_owner_type"),)
