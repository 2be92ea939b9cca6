"""
Authentication module for Freebox Status Monitor
================================================

Freebox OS sessions are opened with a challenge/response: the router hands
out a challenge, the client answers with HMAC-SHA1(app_token, challenge) and
receives a session token to send in the ``X-Fbx-App-Auth`` header.

"""

import hashlib
import hmac
import logging
from typing import Any, Optional

from freebox_status.exceptions import FreeboxAuthenticationError

logger = logging.getLogger("freebox-status")

AUTH_HEADER = "X-Fbx-App-Auth"


class FreeboxAuthenticator:
    """Holds the app credentials and the current session token."""

    def __init__(self, app_id: str, app_token: str):
        """
        Initialize authenticator.

        Args:
            app_id: Application id the token was granted to
            app_token: Application token
        """
        self.app_id = app_id
        self.app_token = app_token
        self.session_token: Optional[str] = None
        self.permissions: dict[str, Any] = {}

    @property
    def authenticated(self) -> bool:
        return self.session_token is not None

    def compute_password(self, challenge: str) -> str:
        """
        Compute the session password for a challenge.

        Args:
            challenge: Challenge string from the router

        Returns:
            Hex digest of HMAC-SHA1 keyed with the app token
        """
        return hmac.new(
            self.app_token.encode("utf-8"),
            challenge.encode("utf-8"),
            hashlib.sha1,
        ).hexdigest()

    def parse_challenge(self, result: Any) -> str:
        """
        Extract the challenge from a ``/login/`` result.

        Raises:
            FreeboxAuthenticationError: If no challenge is present
        """
        challenge = result.get("challenge") if isinstance(result, dict) else None
        if not challenge:
            raise FreeboxAuthenticationError(
                "Router did not return a login challenge",
                details={"phase": "challenge", "response": str(result)[:200]},
            )
        return str(challenge)

    def build_session_request(self, password: str) -> dict:
        """Build the ``/login/session/`` body."""
        return {"app_id": self.app_id, "password": password}

    def accept_session(self, result: Any) -> str:
        """
        Store the session token from a ``/login/session/`` result.

        Raises:
            FreeboxAuthenticationError: If no session token is present
        """
        token = result.get("session_token") if isinstance(result, dict) else None
        if not token:
            raise FreeboxAuthenticationError(
                "Router did not return a session token",
                details={"phase": "session", "response": str(result)[:200]},
            )

        self.session_token = str(token)
        self.permissions = dict(result.get("permissions") or {})
        if self.permissions and not self.permissions.get("calls", True):
            logger.warning("⚠️ App token has no 'calls' permission; call log polls will be refused")
        return self.session_token

    def auth_headers(self) -> dict[str, str]:
        if self.session_token is None:
            return {}
        return {AUTH_HEADER: self.session_token}

    def invalidate(self) -> None:
        self.session_token = None
