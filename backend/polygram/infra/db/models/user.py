"""User database model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text

from polygram.infra.db.base import Base, JSONBType
from polygram.domain.users.models import User as UserEntity


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    id = Column(String(24), primary_key=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=True)
    bio = Column(Text, nullable=True)
    profile_picture = Column(String, nullable=True)  # URL
    otp_code = Column(String, nullable=False)
    otp_generated_at = Column(DateTime, nullable=False)
    verified = Column(Boolean, default=False, nullable=False)
    followed_topics = Column(JSONBType, nullable=False, default=list)  # topic names
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_entity(self) -> UserEntity:
        """Convert to domain entity."""
        return UserEntity(
            id=self.id,
            username=self.username,
            email=self.email,
            password_hash=self.password_hash,
            first_name=self.first_name,
            last_name=self.last_name,
            bio=self.bio,
            profile_picture=self.profile_picture,
            otp_code=self.otp_code,
            otp_generated_at=self.otp_generated_at,
            verified=self.verified,
            followed_topics=list(self.followed_topics or []),
            created_at=self.created_at,
        )

    @classmethod
    def from_entity(cls, entity: UserEntity) -> "UserModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            username=entity.username,
            email=entity.email,
            password_hash=entity.password_hash,
            first_name=entity.first_name,
            last_name=entity.last_name,
            bio=entity.bio,
            profile_picture=entity.profile_picture,
            otp_code=entity.otp_code,
            otp_generated_at=entity.otp_generated_at,
            verified=entity.verified,
            followed_topics=list(entity.followed_topics),
            created_at=entity.created_at,
        )
