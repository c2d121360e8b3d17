"""API dependencies: DB session, session-cookie user resolution, services."""
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.domain.common.errors import AuthorizationError
from polygram.domain.common.pagination import CursorParams
from polygram.domain.users.models import User
from polygram.domain.users.services import UserService
from polygram.infra.db.repositories.user_repo import UserRepositoryImpl
from polygram.infra.db.session import get_db
from polygram.infra.db.transactions import TransactionCoordinator
from polygram.infra.messaging.email_base import EmailService, get_email_service
from polygram.infra.security.jwt import create_session_token, decode_token
from polygram.infra.vendors.google_oauth import GoogleIdentityVerifier
from polygram.settings import settings

__all__ = [
    "get_db",
    "get_optional_user",
    "get_current_user",
    "get_user_service",
    "cursor_params",
    "set_session_cookie",
    "clear_session_cookie",
]


def _cookie_flags() -> dict:
    if settings.is_production:
        return {"secure": True, "samesite": "none"}
    return {"secure": False, "samesite": "lax"}


def set_session_cookie(response: Response, user_id: str) -> None:
    """Log the user in by setting the httpOnly session cookie."""
    max_age = int(timedelta(days=settings.session_expire_days).total_seconds())
    response.set_cookie(
        settings.session_cookie_name,
        create_session_token(user_id),
        max_age=max_age,
        httponly=True,
        **_cookie_flags(),
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.session_cookie_name, httponly=True, **_cookie_flags())


async def _session_user(db: AsyncSession, token: Optional[str]) -> Optional[User]:
    payload = decode_token(token) if token else None
    if payload is None or payload.get("type") != "session":
        return None
    user = await UserRepositoryImpl(db).get_by_id(payload.get("sub"))
    if user is None or not user.verified:
        return None
    return user


async def get_optional_user(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Resolved user, or None for anonymous requests. A bad cookie is cleared."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        return None
    user = await _session_user(db, token)
    if user is None:
        clear_session_cookie(response)
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise AuthorizationError("You are not logged in")
    user = await _session_user(db, token)
    if user is None:
        raise AuthorizationError("Invalid or expired session")
    return user


def get_email() -> EmailService:
    return get_email_service()


def get_google_verifier() -> Optional[GoogleIdentityVerifier]:
    if not settings.google_client_id:
        return None
    return GoogleIdentityVerifier(settings.google_client_id)


def get_user_service(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email),
    google_verifier: Optional[GoogleIdentityVerifier] = Depends(get_google_verifier),
) -> UserService:
    return UserService(
        UserRepositoryImpl(db),
        TransactionCoordinator(db),
        email_service,
        google_verifier,
        otp_length=settings.otp_length,
        otp_expire_minutes=settings.otp_expire_minutes,
        public_url=settings.app_public_url,
    )


def cursor_params(
    before_id: Optional[str] = Query(None),
    after_id: Optional[str] = Query(None),
    page_size: Optional[int] = Query(None),
) -> CursorParams:
    """Common cursor query parameters of every list endpoint."""
    return CursorParams(before_id=before_id, after_id=after_id, page_size=page_size)
