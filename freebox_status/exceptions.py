"""
Custom exceptions for Freebox Status Monitor.

This module defines all custom exceptions used throughout the freebox-status
library. All exceptions inherit from FreeboxError for easy catching of
library-specific errors.

The taxonomy has two branches that matter to callers:

* FreeboxTransportError and its subclasses - a call to the router failed
  (network, timeout, HTTP, authentication or API-level refusal). Raised from
  inside scheduled polls and turned into a communication-error status.
* FreeboxConfigurationError - invalid or missing configuration, detected once
  at setup. A poll task with bad configuration is never scheduled.

Example usage:
    try:
        client = FreeboxClient(app_token="wrong")
        client.login()
    except FreeboxAuthenticationError as e:
        print(f"Authentication failed: {e}")
    except FreeboxError as e:
        print(f"Freebox error: {e}")

License: MIT
"""

from typing import Any, Optional


class FreeboxError(Exception):
    """
    Base exception for all Freebox Status Monitor errors.

    All exceptions include contextual details to help with debugging and
    monitoring integration.

    Attributes:
        message: Human-readable error message
        details: Optional dictionary with additional error context
    """

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class FreeboxTransportError(FreeboxError):
    """
    Raised when a call to the Freebox API fails.

    This is the recoverable failure of the vendor client: the poll that hit it
    is aborted, the device is reported offline, and the next scheduled poll
    retries from unchanged state.
    """


class FreeboxConnectionError(FreeboxTransportError):
    """
    Raised when connection to the router fails.

    Attributes:
        details: May include 'host', 'port', 'error_type', 'original_error'
    """


class FreeboxTimeoutError(FreeboxConnectionError):
    """
    Raised when a timeout occurs communicating with the router.

    Attributes:
        details: May include 'timeout_type', 'timeout', 'operation'
    """


class FreeboxHTTPError(FreeboxTransportError):
    """
    Raised when HTTP-level errors occur.

    Attributes:
        status_code: HTTP status code if available
        details: May include 'status_code', 'response_text', 'operation'
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        if status_code and self.details is not None:
            self.details["status_code"] = status_code


class FreeboxAuthenticationError(FreeboxTransportError):
    """
    Raised when opening an API session fails.

    This exception is raised when:
    - The app token is unknown or revoked on the router
    - The login challenge cannot be fetched
    - The session password is rejected

    Attributes:
        details: May include 'phase' (challenge/session), 'error_code'
    """


class FreeboxAPIError(FreeboxTransportError):
    """
    Raised when the API answers with ``success: false``.

    Attributes:
        error_code: Freebox error code (e.g. ``auth_required``, ``denied_from_external_ip``)
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, details)
        self.error_code = error_code
        if error_code and self.details is not None:
            self.details["error_code"] = error_code


class FreeboxParsingError(FreeboxError):
    """
    Raised when a router payload cannot be decoded.

    Attributes:
        details: May include 'payload_type', 'parse_error', 'raw_data'
    """


class FreeboxConfigurationError(FreeboxError):
    """
    Raised when configuration validation fails.

    Attributes:
        details: May include 'parameter', 'value'
    """


def wrap_connection_error(original_error: Exception, host: str, port: int) -> FreeboxConnectionError:
    """
    Wrap a standard connection exception in FreeboxConnectionError.

    Args:
        original_error: The original exception
        host: Host that failed to connect
        port: Port that failed to connect

    Returns:
        FreeboxConnectionError (or FreeboxTimeoutError) with context
    """
    import socket

    message = f"Failed to connect to {host}:{port}"

    if isinstance(original_error, socket.timeout):
        return FreeboxTimeoutError(
            f"Connection to {host}:{port} timed out",
            details={
                "host": host,
                "port": port,
                "timeout_type": "connection",
                "original_error": str(original_error),
            },
        )

    if isinstance(original_error, ConnectionRefusedError):
        message = f"Connection refused by {host}:{port} - router may be offline or API access disabled"

    return FreeboxConnectionError(
        message,
        details={
            "host": host,
            "port": port,
            "error_type": type(original_error).__name__,
            "original_error": str(original_error),
        },
    )


__all__ = [
    "FreeboxAPIError",
    "FreeboxAuthenticationError",
    "FreeboxConfigurationError",
    "FreeboxConnectionError",
    "FreeboxError",
    "FreeboxHTTPError",
    "FreeboxParsingError",
    "FreeboxTimeoutError",
    "FreeboxTransportError",
    "wrap_connection_error",
]
