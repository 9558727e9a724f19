"""
HTTP Request Handling for Cisco Perfmon Client
==============================================

This module handles the HTTPS transport: session setup, authentication
headers, the SOAPAction header and the retry policy.

"""

import logging
import time
from http.cookiejar import DefaultCookiePolicy
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from urllib3.exceptions import InsecureRequestWarning

from cisco_perfmon.exceptions import wrap_connection_error
from cisco_perfmon.models import PerfmonRequest, RawResponse

logger = logging.getLogger("cisco-perfmon")

SERVICE_PATH = "/perfmonservice2/services/PerfmonService/"
SOAP_ACTION_TEMPLATE = '"http://schemas.cisco.com/ast/soap/action/#PerfmonPort#{operation}"'

# Failures worth another attempt; anything else from requests is a caller error
RETRYABLE_ERRORS = (requests.exceptions.ConnectionError, requests.exceptions.Timeout)


def create_perfmon_session(
    username: Optional[str] = None,
    password: Optional[str] = None,
    pool_maxsize: int = 10,
) -> requests.Session:
    """
    Create a requests Session for the perfmon service.

    Retries are handled by PerfmonRequestHandler, so the adapter itself
    never retries. Basic auth is attached to the session when a username is
    given; cookie-based clients pass None.

    The session never stores cookies: a Set-Cookie from one response must
    not leak into requests made by other callers of the same client. The
    value is surfaced on RawResponse.cookie instead.

    Returns:
        requests.Session configured for the perfmon endpoint
    """
    session = requests.Session()

    adapter = HTTPAdapter(
        pool_connections=1,
        pool_maxsize=pool_maxsize,
        max_retries=0,
        pool_block=False,
    )
    session.mount("https://", adapter)

    # CUCM ships a self-signed tomcat certificate
    session.verify = False
    urllib3.disable_warnings(InsecureRequestWarning)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.ERROR)

    session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    if username:
        session.auth = HTTPBasicAuth(username, password or "")

    session.headers.update(
        {
            "User-Agent": "CiscoPerfmonClient/1.0.0",
            "Accept": "text/xml",
            "Connection": "keep-alive",
        }
    )

    logger.debug("🔧 Created perfmon session")
    return session


class PerfmonRequestHandler:
    """Sends perfmon requests with a fixed-delay retry policy."""

    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        max_attempts: int = 3,
        retry_delay: float = 3.0,
        timeout: Optional[Any] = None,
        default_headers: Optional[Mapping[str, str]] = None,
        instrumentation: Optional[Any] = None,
    ):
        """
        Initialize perfmon request handler.

        Args:
            session: HTTP session to use
            base_url: Base URL of the server, e.g. https://cucm:8443
            max_attempts: Total attempts per request, the first one included
            retry_delay: Seconds between attempts
            timeout: Request timeout handed to requests (None = no timeout)
            default_headers: Headers sent with every request (auth, extras)
            instrumentation: Optional performance instrumentation
        """
        self.session = session
        self.base_url = base_url
        self.url = f"{base_url}{SERVICE_PATH}"
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.default_headers = dict(default_headers or {})
        self.instrumentation = instrumentation

        parts = urlsplit(base_url)
        self.host = parts.hostname or ""
        self.port = parts.port or 443

    def build_headers(self, operation: str) -> dict[str, str]:
        """Return a new header dict for one call of the given operation."""
        headers = {"Content-Type": "text/xml;charset=UTF-8"}
        headers.update(self.default_headers)
        headers["SOAPAction"] = SOAP_ACTION_TEMPLATE.format(operation=operation)
        return headers

    def build_request(self, operation: str, body: str, retry: bool = True) -> PerfmonRequest:
        return PerfmonRequest(operation=operation, body=body, headers=self.build_headers(operation), retry=retry)

    def send(self, request: PerfmonRequest) -> RawResponse:
        """
        Send a request, retrying on network failures and HTTP status >= 400.

        Args:
            request: The request to send

        Returns:
            RawResponse of the last attempt. An HTTP error status is returned,
            not raised, so its fault body can still be classified.

        Raises:
            PerfmonConnectionError: If every attempt failed at the network level,
                or on the first non-network requests error
            PerfmonTimeoutError: If every attempt timed out
        """
        attempts = max(self.max_attempts, 1) if request.retry else 1
        attempt = 0

        while True:
            try:
                response = self._make_raw_request(request, attempt)
            except requests.exceptions.RequestException as e:
                logger.debug(f"🔧 Request error for {request.operation}, attempt {attempt + 1}: {e}")
                if not isinstance(e, RETRYABLE_ERRORS) or attempt + 1 >= attempts:
                    if isinstance(e, RETRYABLE_ERRORS) and attempts > 1:
                        logger.error(f"💥 All retry attempts exhausted for {request.operation}")
                    error = wrap_connection_error(e, self.host, self.port)
                    error.details.update({"operation": request.operation, "attempts": attempt + 1})
                    raise error from e
            else:
                raw = RawResponse(
                    status_code=response.status_code,
                    content=response.content or b"",
                    cookie=response.headers.get("Set-Cookie", "") or "",
                )

                if raw.status_code < 400:
                    return raw

                if attempt + 1 >= attempts:
                    if attempts > 1:
                        logger.error(f"💥 All retry attempts exhausted for {request.operation}")
                    return raw

                logger.warning(f"⚠️ HTTP {raw.status_code} for {request.operation}")

            attempt += 1
            logger.info(f"🔄 Attempt {attempt + 1}/{attempts} for {request.operation} after {self.retry_delay:.2f}s")
            time.sleep(self.retry_delay)

    def _make_raw_request(self, request: PerfmonRequest, attempt: int) -> requests.Response:
        """Make one HTTP attempt and record its timing."""
        start_time = self.instrumentation.start_timer(request.operation) if self.instrumentation else time.time()

        logger.debug(f"📤 Perfmon: {request.operation}")

        try:
            response = self.session.post(
                self.url,
                data=request.body.encode("utf-8"),
                headers=dict(request.headers),
                timeout=self.timeout,
            )
        except Exception as e:
            if self.instrumentation:
                self.instrumentation.record_timing(
                    request.operation,
                    start_time,
                    success=False,
                    error_type=type(e).__name__,
                    retry_count=attempt,
                )
            raise

        response_size = len(response.content) if isinstance(response.content, bytes) else 0
        logger.debug(f"📥 Response: HTTP {response.status_code}, {response_size} bytes")

        if self.instrumentation:
            self.instrumentation.record_timing(
                request.operation,
                start_time,
                success=response.status_code < 400,
                error_type=None if response.status_code < 400 else f"HTTP_{response.status_code}",
                retry_count=attempt,
                http_status=response.status_code,
                response_size=response_size,
            )

        return response


__all__ = ["SERVICE_PATH", "PerfmonRequestHandler", "create_perfmon_session"]
