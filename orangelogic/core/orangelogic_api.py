"""
OrangeLogic Web API Transport

Low-level access to the OrangeLogic Asset Manager HTTP API. This module owns
the pieces every call shares: domain validation and endpoint construction,
the requests session (user agent, TLS verification, timeouts), forcing JSON
responses, the response envelope check, and the last-request / last-response
/ last-error bookkeeping that callers inspect after a call.

Routine failures never escape `get()` / `post()`: they are recorded in
`last_error` and `request_successful` is left False. Only configuration
errors raised from the constructor reach the caller as exceptions.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import requests

from ..utils.logger import log_api_request, log_api_response
from .config import (
    API_ENDPOINT_TEMPLATE,
    DEFAULT_TIMEOUT,
    DOMAIN_PATTERN,
    INVALID_RESPONSE_ERROR,
    RESPONSE_ENVELOPE,
    SUCCESS_CODE,
    USER_AGENT,
)

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class OrangeLogicAPIError(Exception):
    """Base exception for all OrangeLogic API errors."""

    def __init__(self, message: str, response: Optional[Any] = None):
        super().__init__(message)
        self.response = response


class ConfigurationError(OrangeLogicAPIError):
    """Raised when the client is constructed with an empty or malformed domain."""
    pass


class TransportError(OrangeLogicAPIError):
    """Raised when the HTTP call itself fails (network, timeout, bad URL)."""
    pass


class ProtocolError(OrangeLogicAPIError):
    """Raised when the body is empty, not JSON, or lacks the response envelope."""
    pass


class ApplicationError(OrangeLogicAPIError):
    """Raised when the envelope carries a non-success status code."""
    pass


def is_valid_domain(domain: str) -> bool:
    """Check a host name against the asset manager domain pattern."""
    return bool(DOMAIN_PATTERN.match(domain or ""))


# ============================================================================
# TRANSPORT
# ============================================================================

class OrangeLogicAPI:
    """
    HTTP transport for one OrangeLogic asset manager.

    Usage:
        ```python
        api = OrangeLogicAPI("mydam.example")
        body = api.get("Authentication/v1.0/Login", {"login": "id", "password": "pw"})
        if not api.request_successful:
            print(api.last_error)
        ```

    Attributes:
        domain: Validated asset manager host name
        api_endpoint: API root URL with the domain substituted
        timeout: Default per-request timeout in seconds
        request_successful: Outcome of the most recent call
        last_error: Description of the most recent failure ('' after success)
        last_request: Method, path, URL, body and timeout of the most recent call
        last_response: Status code, headers and raw body of the most recent call
    """

    def __init__(
        self,
        domain: str,
        verify_ssl: bool = True,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = USER_AGENT
    ):
        """
        Initialize the transport.

        Args:
            domain: OrangeLogic Asset Manager domain (e.g. "mydam.example")
            verify_ssl: Verify TLS certificates (default: True). Turning this
                        off exposes credentials to interception; use it only
                        against a test server with a self-signed certificate.
            timeout: Default request timeout in seconds
            user_agent: Client identifier sent with every request

        Raises:
            ConfigurationError: If the domain is empty or malformed
        """
        self.domain = (domain or "").strip()

        if not self.domain:
            raise ConfigurationError("Domain cannot be empty.")

        if not is_valid_domain(self.domain):
            raise ConfigurationError(f"Invalid domain format: {self.domain!r}")

        self.api_endpoint = API_ENDPOINT_TEMPLATE.replace("<domain>", self.domain)
        self.timeout = timeout
        self.verify_ssl = verify_ssl

        self.session = requests.Session()
        self.session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json",
        })

        self.request_successful = False
        self.last_error = ""
        self.last_exception: Optional[OrangeLogicAPIError] = None
        self.last_request: Dict[str, Any] = {}
        self.last_response: Dict[str, Any] = {"status_code": None, "headers": None, "body": None}

        self._request_count = 0
        self._response_hooks: List[Callable[[str, int], None]] = []

        logger.info(f"[ORANGELOGIC] Initialized API transport for {self.api_endpoint}")

    # ------------------------------------------------------------------------
    # CONFIGURATION
    # ------------------------------------------------------------------------

    @property
    def verify_ssl(self) -> bool:
        return self._verify_ssl

    @verify_ssl.setter
    def verify_ssl(self, value: bool):
        self._verify_ssl = bool(value)
        if not self._verify_ssl:
            logger.warning(
                f"[ORANGELOGIC] TLS certificate verification is DISABLED for {self.domain}. "
                "Credentials and tokens can be intercepted."
            )

    def add_response_hook(self, hook: Callable[[str, int], None]):
        """
        Register a callable run after every call that reached the server.

        The hook receives the request path and the timeout the call used.
        """
        self._response_hooks.append(hook)

    def get_request_count(self) -> int:
        """Number of HTTP calls attempted by this transport."""
        return self._request_count

    # ------------------------------------------------------------------------
    # CONTEXT MANAGER
    # ------------------------------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        """Release pooled connections."""
        self.session.close()

    # ------------------------------------------------------------------------
    # REQUEST HANDLING
    # ------------------------------------------------------------------------

    def get(self, path: str, args: Optional[Dict[str, Any]] = None,
            timeout: Optional[int] = None, *, keepalive: bool = True) -> Optional[Dict]:
        """
        Make an HTTP GET request, arguments sent as the query string.

        Args:
            path: API method path (e.g. 'Authentication/v1.0/Login')
            args: Request arguments
            timeout: Timeout in seconds (defaults to the transport timeout)
            keepalive: Run response hooks after the call

        Returns:
            Decoded JSON body, or None when nothing usable came back
        """
        return self.make_request("get", path, args, timeout, keepalive=keepalive)

    def post(self, path: str, args: Optional[Dict[str, Any]] = None,
             timeout: Optional[int] = None, *, keepalive: bool = True) -> Optional[Dict]:
        """
        Make an HTTP POST request, arguments sent form-encoded.

        Args:
            path: API method path (e.g. 'search/v3.0/search')
            args: Request arguments
            timeout: Timeout in seconds (defaults to the transport timeout)
            keepalive: Run response hooks after the call

        Returns:
            Decoded JSON body, or None when nothing usable came back
        """
        return self.make_request("post", path, args, timeout, keepalive=keepalive)

    def make_request(self, http_verb: str, path: str, args: Optional[Dict[str, Any]] = None,
                     timeout: Optional[int] = None, *, keepalive: bool = True) -> Optional[Dict]:
        """
        Perform a request and record its outcome instead of raising.

        A body with a failing status code is still returned so the caller can
        inspect it; `request_successful` tells the two apart.
        """
        try:
            return self._make_request(http_verb, path, args, timeout, keepalive)
        except OrangeLogicAPIError as e:
            self.record_error(e)
            return e.response

    def record_error(self, error: OrangeLogicAPIError):
        """Mark the current call as failed with the given error."""
        self.request_successful = False
        self.last_exception = error
        self.last_error = str(error)
        logger.warning(f"[ORANGELOGIC] {type(error).__name__}: {self.last_error}")

    def _make_request(self, http_verb: str, path: str, args: Optional[Dict[str, Any]],
                      timeout: Optional[int], keepalive: bool) -> Dict:
        """
        Perform the underlying HTTP request.

        Raises:
            TransportError: requests could not complete the call
            ProtocolError: body empty, not a JSON object, or no envelope
            ApplicationError: envelope carries a non-success Code
        """
        if timeout is None:
            timeout = self.timeout

        method = http_verb.upper()
        url = f"{self.api_endpoint}/{path.lstrip('/')}"

        self.last_error = ""
        self.last_exception = None
        self.request_successful = False
        self.last_response = {"status_code": None, "headers": None, "body": None}

        # Force response to JSON
        payload = dict(args or {})
        payload["format"] = "json"

        self.last_request = {
            "method": method,
            "path": path,
            "url": url,
            "body": "",
            "timeout": timeout,
        }

        request_kwargs: Dict[str, Any] = {"timeout": timeout, "verify": self.verify_ssl}
        if method == "POST":
            request_kwargs["data"] = payload
            self.last_request["body"] = urlencode(payload)
            log_api_request(logger, method, url, data=payload)
        else:
            request_kwargs["params"] = payload
            log_api_request(logger, method, url, params=payload)

        self._request_count += 1
        start_time = time.time()

        try:
            response = self.session.request(method, url, **request_kwargs)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out after {timeout}s: {e}")
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Network error: {e}")

        elapsed = time.time() - start_time
        self.last_response = {
            "status_code": response.status_code,
            "headers": dict(response.headers),
            "body": response.text,
        }

        # The server saw this call, so the remote session was refreshed
        if keepalive:
            for hook in self._response_hooks:
                hook(path, timeout)

        if not response.content:
            log_api_response(logger, response.status_code, elapsed_time=elapsed)
            raise ProtocolError(INVALID_RESPONSE_ERROR)

        try:
            data = response.json()
        except ValueError as e:
            logger.debug(f"[ORANGELOGIC] Body is not JSON: {e}")
            raise ProtocolError(INVALID_RESPONSE_ERROR)

        log_api_response(logger, response.status_code, data, elapsed)
        return self._check_envelope(data)

    def _check_envelope(self, data: Any) -> Dict:
        """Validate the response envelope and mark the call successful."""
        if not isinstance(data, dict) or RESPONSE_ENVELOPE not in data:
            raise ProtocolError(INVALID_RESPONSE_ERROR, response=data)

        envelope = data[RESPONSE_ENVELOPE]
        if not isinstance(envelope, dict):
            raise ProtocolError(INVALID_RESPONSE_ERROR, response=data)

        code = envelope.get("Code")
        if code is not None and str(code).lower() != SUCCESS_CODE:
            raise ApplicationError(str(code), response=data)

        self.request_successful = True
        return data
