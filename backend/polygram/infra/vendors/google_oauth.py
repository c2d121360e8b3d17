"""Google sign-in id-token verification."""
import asyncio
import logging
from typing import Optional

from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from polygram.settings import settings

logger = logging.getLogger(__name__)


class GoogleTokenError(Exception):
    """Token is malformed, expired, or issued for another audience."""


class GoogleIdentityVerifier:
    """Verifies Google id tokens against the configured client id."""

    def __init__(self, client_id: Optional[str] = None):
        self.client_id = client_id or settings.google_client_id

    def _verify(self, token: str) -> dict:
        return id_token.verify_oauth2_token(token, google_requests.Request(), self.client_id)

    async def verify(self, token: str) -> dict:
        """Return the token claims (email, given_name, family_name, picture, ...)."""
        try:
            # certificate fetch is blocking
            claims = await asyncio.to_thread(self._verify, token)
        except ValueError as e:
            logger.info("Google id token rejected: %s", e)
            raise GoogleTokenError(str(e)) from e
        if not claims.get("email"):
            raise GoogleTokenError("Token carries no email")
        return claims
