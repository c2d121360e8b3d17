"""User domain models."""
from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel

from polygram.domain.common.errors import ValidationError
from polygram.domain.common.types import generate_id, utc_now

# Generation time of an OTP that can never be used again
OTP_EXPIRED_AT = datetime(1970, 1, 1)


class User(BaseModel):
    """User domain model."""

    id: str
    username: str
    email: str
    password_hash: str
    first_name: str
    last_name: Optional[str] = None
    bio: Optional[str] = None
    profile_picture: Optional[str] = None
    otp_code: str
    otp_generated_at: datetime
    verified: bool = False
    followed_topics: list[str] = []
    created_at: datetime

    @classmethod
    def create(
        cls,
        username: str,
        email: str,
        password_hash: str,
        first_name: str,
        otp_code: str,
        last_name: Optional[str] = None,
        verified: bool = False,
        profile_picture: Optional[str] = None,
    ) -> "User":
        """Create a new user."""
        now = utc_now()
        return cls(
            id=generate_id(),
            username=username.strip().lower(),
            email=email.strip(),
            password_hash=password_hash,
            first_name=first_name.strip(),
            last_name=last_name.strip() if last_name else None,
            profile_picture=profile_picture,
            otp_code=otp_code,
            otp_generated_at=now if not verified else OTP_EXPIRED_AT,
            verified=verified,
            followed_topics=[],
            created_at=now,
        )

    def verify_otp(self, otp: str, expire_minutes: int, now: Optional[datetime] = None) -> None:
        """Raise ValidationError unless otp matches and is younger than expire_minutes."""
        now = now or utc_now()
        if now - self.otp_generated_at > timedelta(minutes=expire_minutes):
            raise ValidationError("The otp has expired", field="otp")
        if self.otp_code != otp:
            raise ValidationError("OTP does not match", field="otp")
