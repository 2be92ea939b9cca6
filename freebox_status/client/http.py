"""
HTTP Request Handling for Freebox Status Monitor
================================================

This module handles HTTP requests, retries, and the Freebox OS response
envelope (``{"success": ..., "result": ...}``).

"""

import json
import logging
import random
import time
from typing import Any, Optional
from urllib.parse import urlparse

import requests
import urllib3
from requests.adapters import HTTPAdapter
from urllib3.exceptions import InsecureRequestWarning
from urllib3.util.retry import Retry

from freebox_status.exceptions import (
    FreeboxAPIError,
    FreeboxHTTPError,
    FreeboxParsingError,
    FreeboxTimeoutError,
    FreeboxTransportError,
    wrap_connection_error,
)

# The router serves its API with a certificate signed by the Freebox CA
urllib3.disable_warnings(InsecureRequestWarning)

logger = logging.getLogger("freebox-status")

API_ROOT = "/api/v3"


def create_session(verify_ssl: bool = False) -> requests.Session:
    """
    Create a requests Session for the Freebox API.

    Idempotent GETs are retried by urllib3 on gateway errors; connection
    failures are retried one level up by FreeboxRequestHandler.

    Returns:
        Configured requests.Session
    """
    session = requests.Session()

    retry_strategy = Retry(
        total=2,
        connect=0,
        status_forcelist=[502, 503, 504],
        allowed_methods=["GET"],
        backoff_factor=0.3,
        respect_retry_after_header=False,
        raise_on_status=False,
    )

    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=4,
        max_retries=retry_strategy,
        pool_block=False,
    )

    session.mount("https://", adapter)
    session.mount("http://", adapter)

    session.verify = verify_ssl
    session.headers.update(
        {
            "User-Agent": "FreeboxStatus/1.0",
            "Accept": "application/json",
            "Cache-Control": "no-cache",
        }
    )

    logger.debug(f"🔧 Created Freebox API session (verify_ssl={verify_ssl})")
    return session


class FreeboxRequestHandler:
    """Handles Freebox API HTTP requests with retry logic."""

    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        max_retries: int = 2,
        base_backoff: float = 0.5,
        timeout: tuple = (3, 10),
        instrumentation: Optional[Any] = None,
    ):
        """
        Initialize request handler.

        Args:
            session: HTTP session to use
            base_url: Base URL of the router ("https://mafreebox.freebox.fr:443")
            max_retries: Maximum retry attempts for connection errors
            base_backoff: Base backoff time in seconds
            timeout: Request timeout (connect, read)
            instrumentation: Optional PerformanceInstrumentation
        """
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.base_backoff = base_backoff
        self.timeout = timeout
        self.instrumentation = instrumentation

    def request(
        self,
        method: str,
        path: str,
        payload: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Any:
        """
        Call an API endpoint and return the ``result`` member of its envelope.

        Connection errors and timeouts are retried with exponential backoff.
        HTTP and API errors are raised immediately.

        Args:
            method: "GET" or "POST"
            path: Path below the API root, e.g. "/call/log/"
            payload: JSON body for POST requests
            headers: Additional headers

        Returns:
            The ``result`` member, or None when the router omits it

        Raises:
            FreeboxTimeoutError: Timeouts persisted through all retries
            FreeboxConnectionError: Connection failed through all retries
            FreeboxAPIError: The router answered ``success: false``
            FreeboxHTTPError: Non-200 response without an API envelope
            FreeboxParsingError: 200 response that is not a JSON envelope
            FreeboxTransportError: Any other requests failure
        """
        url = f"{self.base_url}{API_ROOT}{path}"

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                backoff_time = self._exponential_backoff(attempt - 1)
                logger.info(f"🔄 Retry {attempt}/{self.max_retries} for {method} {path} after {backoff_time:.2f}s")
                time.sleep(backoff_time)

            try:
                response = self._send(method, path, url, payload, headers)
            except requests.exceptions.Timeout as e:
                if attempt < self.max_retries:
                    logger.debug(f"🔧 Timeout on {path}, attempt {attempt + 1}")
                    continue
                raise FreeboxTimeoutError(
                    f"Request to {path} timed out",
                    details={"operation": path, "attempt": attempt + 1, "timeout": self.timeout},
                ) from e
            except requests.exceptions.ConnectionError as e:
                if attempt < self.max_retries:
                    logger.debug(f"🔧 Connection error on {path}, attempt {attempt + 1}")
                    continue
                parsed = urlparse(self.base_url)
                raise wrap_connection_error(e, parsed.hostname or "", parsed.port or 443) from e
            except requests.exceptions.RetryError as e:
                raise FreeboxHTTPError(
                    f"Retries exhausted for {path}",
                    details={"operation": path, "original_error": str(e)},
                ) from e
            except requests.exceptions.RequestException as e:
                raise FreeboxTransportError(
                    f"Request to {path} failed: {e}",
                    details={"operation": path, "error_type": type(e).__name__},
                ) from e

            return self._unwrap(path, response)

        # range() always runs at least once; every branch above returns or raises
        raise AssertionError("unreachable")

    def _send(
        self,
        method: str,
        path: str,
        url: str,
        payload: Optional[dict[str, Any]],
        headers: Optional[dict[str, str]],
    ) -> requests.Response:
        operation = f"api_{method.lower()}_{path.strip('/').replace('/', '_')}"
        start_time = self.instrumentation.start_timer(operation) if self.instrumentation else time.time()

        logger.debug(f"📤 {method} {path}")
        try:
            response = self.session.request(method, url, json=payload, headers=headers, timeout=self.timeout)
        except Exception as e:
            if self.instrumentation:
                self.instrumentation.record_timing(operation, start_time, success=False, error_type=type(e).__name__)
            raise

        logger.debug(f"📥 {path}: HTTP {response.status_code}, {len(response.text)} chars")
        if self.instrumentation:
            self.instrumentation.record_timing(
                operation,
                start_time,
                success=response.status_code == 200,
                error_type=None if response.status_code == 200 else f"HTTP_{response.status_code}",
                http_status=response.status_code,
            )
        return response

    def _unwrap(self, path: str, response: requests.Response) -> Any:
        try:
            envelope = json.loads(response.text)
        except (json.JSONDecodeError, TypeError) as e:
            if response.status_code != 200:
                raise FreeboxHTTPError(
                    f"HTTP {response.status_code} error for {path}",
                    status_code=response.status_code,
                    details={"operation": path, "response_text": str(response.text)[:500]},
                ) from e
            raise FreeboxParsingError(
                f"Invalid JSON from {path}",
                details={"payload_type": path, "parse_error": str(e), "raw_data": str(response.text)[:200]},
            ) from e

        if not isinstance(envelope, dict) or "success" not in envelope:
            if response.status_code != 200:
                raise FreeboxHTTPError(
                    f"HTTP {response.status_code} error for {path}",
                    status_code=response.status_code,
                    details={"operation": path},
                )
            raise FreeboxParsingError(
                f"Unexpected response envelope from {path}",
                details={"payload_type": path, "raw_data": str(response.text)[:200]},
            )

        if not envelope["success"]:
            error_code = envelope.get("error_code")
            raise FreeboxAPIError(
                envelope.get("msg") or f"API call {path} failed",
                error_code=error_code,
                details={"operation": path, "http_status": response.status_code},
            )

        return envelope.get("result")

    def _exponential_backoff(self, attempt: int, jitter: bool = True) -> float:
        """Calculate exponential backoff time with optional jitter."""
        backoff_time = self.base_backoff * (2**attempt)

        if jitter:
            backoff_time += random.uniform(0, backoff_time * 0.1)

        return float(min(backoff_time, 10.0))


__all__ = ["API_ROOT", "FreeboxRequestHandler", "create_session"]
