"""
Main Freebox API Client
=======================

This module contains the vendor client used by the adapters: phone line
status, call log and LAN hosts from a Freebox OS router.

"""

import logging
import threading
from typing import Any, Optional

from freebox_status.config import DEFAULT_APP_ID, DEFAULT_HOST, BridgeConfig
from freebox_status.exceptions import FreeboxAPIError, FreeboxAuthenticationError
from freebox_status.instrumentation import PerformanceInstrumentation
from freebox_status.models import CallEntry, LanHost, PhoneStatus

from .auth import FreeboxAuthenticator
from .http import FreeboxRequestHandler, create_session
from .parser import FreeboxResponseParser

logger = logging.getLogger("freebox-status")

# error codes meaning the session token has expired or was never valid
SESSION_ERROR_CODES = {"auth_required", "invalid_session"}


class FreeboxClient:
    """
    Freebox OS API client.

    The client opens a session lazily on the first call and re-opens it once
    when the router reports an expired session. It can be shared by several
    poll tasks; session renewal is serialized with a lock.

    Example:
        >>> with FreeboxClient(app_token="...") as client:
        ...     for line in client.get_phone_status():
        ...         print(line.on_hook, line.is_ringing)
    """

    def __init__(
        self,
        app_token: str,
        host: str = DEFAULT_HOST,
        port: int = 443,
        app_id: str = DEFAULT_APP_ID,
        use_https: bool = True,
        verify_ssl: bool = False,
        timeout: tuple = (3, 10),
        max_retries: int = 2,
        base_backoff: float = 0.5,
        lan_interface: str = "pub",
        instrumentation: Optional[PerformanceInstrumentation] = None,
    ):
        """
        Initialize the client.

        Args:
            app_token: Application token granted by the router
            host: Router hostname (default: "mafreebox.freebox.fr")
            port: API port (default: 443)
            app_id: Application id the token belongs to
            use_https: Use https (default: True)
            verify_ssl: Verify the router certificate (default: False)
            timeout: (connect_timeout, read_timeout) in seconds
            max_retries: Retry attempts for connection errors
            base_backoff: Base backoff time in seconds
            lan_interface: LAN browser interface to list hosts from
            instrumentation: Optional request timing collector
        """
        self.host = host
        self.port = port
        scheme = "https" if use_https else "http"
        self.base_url = f"{scheme}://{host}:{port}"
        self.lan_interface = lan_interface
        self.instrumentation = instrumentation

        self.session = create_session(verify_ssl)
        self.authenticator = FreeboxAuthenticator(app_id, app_token)
        self.request_handler = FreeboxRequestHandler(
            session=self.session,
            base_url=self.base_url,
            max_retries=max_retries,
            base_backoff=base_backoff,
            timeout=timeout,
            instrumentation=instrumentation,
        )
        self.parser = FreeboxResponseParser()
        self._login_lock = threading.Lock()

        logger.info(f"🛡️ FreeboxClient initialized for {host}:{port}")

    @classmethod
    def from_config(
        cls, config: BridgeConfig, instrumentation: Optional[PerformanceInstrumentation] = None
    ) -> "FreeboxClient":
        return cls(
            app_token=config.app_token,
            host=config.host,
            port=config.port,
            app_id=config.app_id,
            use_https=config.use_https,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            max_retries=config.max_retries,
            instrumentation=instrumentation,
        )

    @property
    def authenticated(self) -> bool:
        return self.authenticator.authenticated

    def login(self) -> str:
        """
        Open an API session.

        Returns:
            The session token

        Raises:
            FreeboxAuthenticationError: Challenge or session request refused
            FreeboxConnectionError: Router unreachable
        """
        with self._login_lock:
            logger.info("🔐 Opening Freebox API session...")
            self.authenticator.invalidate()
            try:
                challenge = self.authenticator.parse_challenge(self.request_handler.request("GET", "/login/"))
                password = self.authenticator.compute_password(challenge)
                result = self.request_handler.request(
                    "POST", "/login/session/", payload=self.authenticator.build_session_request(password)
                )
            except FreeboxAPIError as e:
                raise FreeboxAuthenticationError(
                    f"Login refused: {e.message}",
                    details={"phase": "session", "error_code": e.error_code},
                ) from e

            token = self.authenticator.accept_session(result)
            logger.info("🎉 Freebox API session opened")
            return token

    def get_phone_status(self) -> list[PhoneStatus]:
        """Status of every phone line."""
        return self.parser.parse_phone_status(self._get("/phone/"))

    def get_call_entries(self) -> list[CallEntry]:
        """The router's call log, in the order it reports it."""
        return self.parser.parse_call_entries(self._get("/call/log/"))

    def get_lan_hosts(self) -> list[LanHost]:
        """Hosts known on the LAN interface."""
        return self.parser.parse_lan_hosts(self._get(f"/lan/browser/{self.lan_interface}/"))

    def _get(self, path: str) -> Any:
        if not self.authenticator.authenticated:
            self.login()

        try:
            return self.request_handler.request("GET", path, headers=self.authenticator.auth_headers())
        except FreeboxAPIError as e:
            if e.error_code not in SESSION_ERROR_CODES:
                raise
            logger.info(f"🔄 Session expired ({e.error_code}), logging in again")

        self.login()
        return self.request_handler.request("GET", path, headers=self.authenticator.auth_headers())

    def close(self) -> None:
        """Close the HTTP session."""
        self.authenticator.invalidate()
        self.session.close()
        logger.debug("🔒 FreeboxClient closed")

    def __enter__(self) -> "FreeboxClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["FreeboxClient"]
