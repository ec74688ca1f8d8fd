"""Google Sign-In: verification of ID tokens sent by the popup flow."""
import asyncio
from typing import Optional, Dict, Any

from google.oauth2 import id_token
from google.auth.transport import requests as google_requests

from projectdesk.core.config import settings
from projectdesk.core.logging_config import logger

GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")


class GoogleOAuthProvider:
    """Verifies Google ID tokens against the configured client id"""

    def __init__(self, client_id: Optional[str] = None):
        self.client_id = client_id or settings.GOOGLE_CLIENT_ID

    def verify_id_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify a Google ID token.

        Returns the profile fields we keep, or None when the token is invalid.
        """
        try:
            idinfo = id_token.verify_oauth2_token(
                token,
                google_requests.Request(),
                self.client_id
            )
        except ValueError as e:
            logger.warning(f"[GoogleOAuth] Invalid ID token: {e}")
            return None

        if idinfo.get("iss") not in GOOGLE_ISSUERS:
            logger.warning("[GoogleOAuth] Invalid token issuer")
            return None

        return {
            "google_id": idinfo["sub"],
            "email": idinfo["email"],
            "email_verified": idinfo.get("email_verified", False),
            "name": idinfo.get("name", ""),
            "avatar_url": idinfo.get("picture", ""),
        }

    async def verify_id_token_async(self, token: str) -> Optional[Dict[str, Any]]:
        # Fetching Google's certificates is blocking I/O
        return await asyncio.to_thread(self.verify_id_token, token)


google_oauth = GoogleOAuthProvider()
