"""Session token helpers."""
from datetime import timedelta
from typing import Optional

from jose import JWTError, jwt

from polygram.domain.common.types import utc_now
from polygram.settings import settings


def create_session_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Signed session token carried in the session cookie."""
    expire = utc_now() + (expires_delta or timedelta(days=settings.session_expire_days))
    to_encode = {"sub": user_id, "exp": expire, "type": "session"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode a session token. Returns None if invalid or expired."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
