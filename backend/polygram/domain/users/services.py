"""User domain services."""
import logging
import secrets
import string
import time
from typing import TYPE_CHECKING, Any, Optional, Protocol

from polygram.domain.common.errors import (
    AuthorizationError,
    ConflictError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from polygram.domain.common.validation import (
    parse_data_url_image,
    validate_email,
    validate_name,
    validate_password,
    validate_string,
    validate_username,
)
from polygram.domain.common.types import utc_now
from polygram.domain.users.models import OTP_EXPIRED_AT, User
from polygram.infra.db.models.notification import NotificationType
from polygram.infra.security.password import get_password_hash, verify_password
from polygram.infra.vendors.google_oauth import GoogleIdentityVerifier, GoogleTokenError
from polygram.services.notification_service import build_notification

if TYPE_CHECKING:
    from polygram.infra.db.transactions import TransactionCoordinator
    from polygram.infra.messaging.email_base import EmailService

logger = logging.getLogger(__name__)

PROFILE_PICTURE = "profile_picture"
PROFILE_PICTURE_MIN_BYTES = 8 * 600
PROFILE_PICTURE_MAX_BYTES = 8 * 1024 * 1024 * 2
_RANDOM_PASSWORD_CHARS = string.ascii_letters + string.digits + "!@#$%^&*()-+<>"


class UserRepository(Protocol):
    """User repository protocol."""

    async def add(self, user: User) -> User:
        ...

    async def get_by_id(self, user_id: str) -> Optional[User]:
        ...

    async def get_by_username(self, username: str, verified: Optional[bool] = None) -> Optional[User]:
        ...

    async def get_by_email(self, email: str, verified: Optional[bool] = None) -> Optional[User]:
        ...

    async def delete_unverified(self, username: str, email: str) -> int:
        """Delete unverified users holding the username or the email."""
        ...

    async def update_fields(self, user_id: str, **values: Any) -> None:
        ...

    async def delete(self, user_id: str) -> int:
        ...


def generate_otp(length: int) -> str:
    """Random numeric code of exactly ``length`` digits."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


def generate_random_password(length: int = 10) -> str:
    return "".join(secrets.choice(_RANDOM_PASSWORD_CHARS) for _ in range(length))


class UserService:
    """Account flows: registration, verification, login, profile and deletion.

    Every write goes through the coordinator's atomic units. Session cookies
    are the caller's concern; methods that log a user in return the user.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        coordinator: "TransactionCoordinator",
        email_service: "EmailService",
        google_verifier: Optional[GoogleIdentityVerifier] = None,
        *,
        otp_length: int = 6,
        otp_expire_minutes: int = 10,
        public_url: str = "",
    ):
        self.user_repo = user_repo
        self.coordinator = coordinator
        self.email_service = email_service
        self.google_verifier = google_verifier
        self.otp_length = otp_length
        self.otp_expire_minutes = otp_expire_minutes
        self.public_url = public_url.rstrip("/")

    async def _send_otp(self, user: User, otp: str, purpose: str) -> None:
        try:
            await self.email_service.send_otp(user.email, user.first_name, otp, purpose)
        except Exception as e:
            logger.warning("OTP email to %s failed: %s", user.email, e)
            raise InternalError("Error sending OTP") from e

    async def register(
        self,
        first_name: str,
        username: str,
        email: str,
        password: str,
        last_name: Optional[str] = None,
    ) -> User:
        """Create an unverified account and email it an OTP.

        The user row is committed before the OTP is sent. If sending fails the
        caller gets InternalError and the unverified row stays until the next
        registration with the same username or email replaces it.
        """
        validate_email(email, "email", required=True)
        validate_string(last_name, 1, 30, "last_name")
        validate_name(first_name, "first_name", required=True)
        validate_password(password, "password", required=True)
        validate_username(username, "username", required=True)

        if await self.user_repo.get_by_email(email, verified=True):
            raise ConflictError(f"Email ID {email} already exist")
        if await self.user_repo.get_by_username(username, verified=True):
            raise ConflictError(f"Username {username} already exist")

        otp = generate_otp(self.otp_length)
        user = User.create(
            username=username,
            email=email,
            password_hash=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            otp_code=otp,
        )
        async with self.coordinator.atomic("creating user"):
            removed = await self.user_repo.delete_unverified(user.username, user.email)
            user = await self.user_repo.add(user)
        if removed:
            logger.info("Replaced %d unverified account(s) for %s", removed, user.username)

        await self._send_otp(user, otp, "verify")
        return user

    async def verify(self, username: str, otp: str) -> User:
        """Check the registration OTP and mark the account verified."""
        validate_username(username, "username", required=True)
        validate_string(otp, self.otp_length, self.otp_length, "otp", required=True)

        user = await self.user_repo.get_by_username(username)
        if user is None:
            raise NotFoundError(f"User with username {username}")
        if user.verified:
            raise ConflictError("This account is already verified")
        user.verify_otp(otp, self.otp_expire_minutes)

        async with self.coordinator.atomic("verifying user"):
            await self.user_repo.update_fields(user.id, verified=True, otp_generated_at=OTP_EXPIRED_AT)
        return user.model_copy(update={"verified": True, "otp_generated_at": OTP_EXPIRED_AT})

    async def login(self, username: str, password: str) -> User:
        validate_password(password, "password", required=True)
        validate_username(username, "username", required=True)

        user = await self.user_repo.get_by_username(username, verified=True)
        if user is None:
            raise NotFoundError(f"User with username {username}")
        if not verify_password(password, user.password_hash):
            raise AuthorizationError("Password does not match")
        return user

    async def get_session_user(self, user_id: Optional[str]) -> Optional[User]:
        """Verified user behind a session, or None."""
        if not user_id:
            return None
        user = await self.user_repo.get_by_id(user_id)
        if user is None or not user.verified:
            return None
        return user

    async def get_public_user(self, username: str) -> User:
        validate_username(username, "username", required=True)
        user = await self.user_repo.get_by_username(username, verified=True)
        if user is None:
            raise NotFoundError("User")
        return user

    async def edit_details(
        self,
        user: User,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        bio: Optional[str] = None,
    ) -> User:
        """Update the given profile fields; empty values keep the current ones."""
        validate_name(first_name, "first_name")
        validate_string(last_name, 1, 30, "last_name")
        validate_string(bio, 5, 160, "bio")

        values = {
            "first_name": first_name or user.first_name,
            "last_name": last_name or user.last_name,
            "bio": bio or user.bio,
        }
        async with self.coordinator.atomic("updating the details"):
            await self.user_repo.update_fields(user.id, **values)
        return user.model_copy(update=values)

    async def send_reset_otp(self, email: str) -> None:
        """Issue a fresh OTP to a verified account's email."""
        validate_email(email, "email", required=True)
        user = await self.user_repo.get_by_email(email, verified=True)
        if user is None:
            raise NotFoundError(f"User with email {email}")

        otp = generate_otp(self.otp_length)
        async with self.coordinator.atomic("saving OTP"):
            await self.user_repo.update_fields(user.id, otp_code=otp, otp_generated_at=utc_now())
        await self._send_otp(user, otp, "reset")

    async def forgot_password(self, email: str, otp: str, new_password: str) -> None:
        validate_email(email, "email", required=True)
        validate_string(otp, self.otp_length, self.otp_length, "otp", required=True)
        validate_password(new_password, "new_password", required=True)

        user = await self.user_repo.get_by_email(email, verified=True)
        if user is None:
            raise NotFoundError(f"User with email {email}")
        user.verify_otp(otp, self.otp_expire_minutes)
        await self._store_new_password(user, new_password)

    async def change_password(self, user: User, old_password: str, new_password: str) -> None:
        validate_password(old_password, "old_password", required=True)
        validate_password(new_password, "new_password", required=True)
        if not verify_password(old_password, user.password_hash):
            raise AuthorizationError("Password does not match")
        await self._store_new_password(user, new_password)

    async def _store_new_password(self, user: User, new_password: str) -> None:
        notification = build_notification(
            user.id,
            NotificationType.CHANGED_PASSWORD.value,
            "The password of your account was changed recently",
        )
        await self.coordinator.change_password(user.id, get_password_hash(new_password), notification)
        logger.info("Password changed for user %s", user.id)

    async def google_oauth(self, token: str, type: Optional[str] = None) -> User:
        """Sign in with a Google id token.

        An unknown email creates a verified account unless ``type`` is 'login'.
        """
        validate_string(token, 1, 8192, "token", required=True)
        if self.google_verifier is None:
            raise InternalError("Google sign-in is not configured")
        try:
            claims = await self.google_verifier.verify(token)
        except GoogleTokenError:
            raise ValidationError("Invalid token", field="token")

        email = claims["email"]
        user = await self.user_repo.get_by_email(email, verified=True)
        if user is not None:
            return user
        if type == "login":
            raise NotFoundError("User")

        user = User.create(
            username=str(int(time.time() * 1000)),
            email=email,
            password_hash=get_password_hash(generate_random_password()),
            first_name=claims.get("given_name") or email.split("@")[0],
            last_name=claims.get("family_name"),
            otp_code=generate_otp(self.otp_length),
            verified=True,
            profile_picture=claims.get("picture"),
        )
        async with self.coordinator.atomic("creating new user"):
            await self.user_repo.delete_unverified(user.username, user.email)
            user = await self.user_repo.add(user)
        logger.info("Created account %s from Google sign-in", user.id)
        return user

    async def update_profile_picture(self, user: User, image: str) -> str:
        """Store a data-URL image as the user's profile picture and return its URL."""
        content_type, data = parse_data_url_image(
            image, PROFILE_PICTURE_MIN_BYTES, PROFILE_PICTURE_MAX_BYTES, "image"
        )
        async with self.coordinator.atomic("updating the profile_picture"):
            picture_id = await self.coordinator.pictures.upsert(
                user.username, PROFILE_PICTURE, data, content_type
            )
            image_url = f"{self.public_url}/api/pictures/{picture_id}"
            await self.user_repo.update_fields(user.id, profile_picture=image_url)
        return image_url

    async def delete_account(self, user: User, password: str) -> None:
        validate_password(password, "password", required=True)
        if not verify_password(password, user.password_hash):
            raise AuthorizationError("Password does not match")
        await self.coordinator.delete_user(user)
