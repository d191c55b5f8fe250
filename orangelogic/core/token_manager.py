"""
Token lifecycle for the OrangeLogic API.

The TokenManager guarantees that every outbound call carries a token that is
not known to be expired, while keeping login round-trips to a minimum:

    NoToken --renewal ok--> Valid --clock--> Expired --renewal ok--> Valid
    Valid / Expired --renewal failed--> NoToken

Tokens and their absolute expiry are written to a SessionStore so other
client instances bound to the same logical session can reuse them.
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from .config import (
    AUTH_LOGIN_PATH,
    DEFAULT_SESSION_KEY,
    INVALID_RESPONSE_ERROR,
    REQUEST_INFO_KEY,
    RESPONSE_ENVELOPE,
    TOKEN_SUFFIX,
    TOKEN_TIMEOUT_SUFFIX,
)
from .orangelogic_api import OrangeLogicAPI, ProtocolError
from .session import MemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


class TokenState(Enum):
    """Lifecycle state of the in-memory token."""
    NO_TOKEN = "no_token"
    VALID = "valid"
    EXPIRED = "expired"


class TokenManager:
    """
    Acquires, caches and renews the API token.

    Attributes:
        api: Transport used for the login call
        store: Session store shared with other clients of the same session
        token_key: Store key holding the token value
        timeout_key: Store key holding the absolute expiry (epoch seconds)
    """

    def __init__(
        self,
        api: OrangeLogicAPI,
        login: str,
        password: str,
        store: Optional[SessionStore] = None,
        session_key: str = DEFAULT_SESSION_KEY,
        clock: Callable[[], float] = time.time
    ):
        """
        Args:
            api: Transport for the asset manager
            login: API login ID
            password: API password
            store: Session store; a private in-memory store when omitted
            session_key: Prefix for the store keys of this logical session
            clock: Source of wall-clock time in epoch seconds
        """
        self.api = api
        self._login = login
        self._password = password
        self.store = store if store is not None else MemorySessionStore()
        self.token_key = f"{session_key}_{TOKEN_SUFFIX}"
        self.timeout_key = f"{session_key}_{TOKEN_TIMEOUT_SUFFIX}"
        self.clock = clock

        self._token: Optional[str] = None
        self._expires_at: Optional[float] = None

        # Any call the server sees keeps the remote session alive
        self.api.add_response_hook(self.extend_expiry)

    @property
    def token(self) -> Optional[str]:
        """The in-memory token, without validation or renewal."""
        return self._token

    @property
    def expires_at(self) -> Optional[float]:
        return self._expires_at

    @property
    def state(self) -> TokenState:
        if self._token is None:
            return TokenState.NO_TOKEN
        if self._is_past(self._expires_at, self.clock()):
            return TokenState.EXPIRED
        return TokenState.VALID

    @staticmethod
    def _is_past(expires_at: Optional[float], now: float) -> bool:
        return expires_at is None or expires_at < now

    def get_token(self) -> Optional[str]:
        """
        Return a usable token, renewing it only when necessary.

        Order of preference: the in-memory token, a non-expired token from the
        session store, a freshly issued token.

        Returns:
            Token string, or None if renewal failed (see `api.last_error`)
        """
        now = self.clock()

        if self._token is not None and not self._is_past(self._expires_at, now):
            return self._token

        cached_token = self.store.get(self.token_key)
        cached_expiry = self._parse_expiry(self.store.get(self.timeout_key))
        if isinstance(cached_token, str) and cached_token and not self._is_past(cached_expiry, now):
            logger.debug(f"[ORANGELOGIC] Reusing cached token from session store ({self.token_key})")
            self._token = cached_token
            self._expires_at = cached_expiry
            return self._token

        return self.renew()

    def _parse_expiry(self, value: Any) -> Optional[float]:
        """Cached expiry as epoch seconds, None when absent or unusable."""
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"[ORANGELOGIC] Ignoring unreadable {self.timeout_key} in session store: {value!r}")
            return None

    def renew(self) -> Optional[str]:
        """
        Request a new token from the login endpoint.

        On success the token and its expiry are kept in memory and written to
        the session store. On failure the in-memory token is cleared and the
        store is left untouched.
        """
        logger.info(f"[ORANGELOGIC] Requesting new token for login '{self._login}'")

        response = self.api.get(
            AUTH_LOGIN_PATH,
            {"login": self._login, "password": self._password},
            keepalive=False
        )

        if not self.api.request_successful:
            return self._renewal_failed()

        try:
            token, timeout_minutes = self._parse_login_response(response)
        except ProtocolError as e:
            self.api.record_error(e)
            return self._renewal_failed()

        self._token = token
        self._expires_at = self.clock() + timeout_minutes * 60
        self.store.set(self.token_key, self._token)
        self.store.set(self.timeout_key, self._expires_at)

        logger.info(f"[ORANGELOGIC] [OK] Token issued, valid for {timeout_minutes} minute(s)")
        return self._token

    def _renewal_failed(self) -> None:
        logger.error(f"[ORANGELOGIC] Token renewal failed: {self.api.last_error}")
        self._token = None
        self._expires_at = None
        return None

    @staticmethod
    def _parse_login_response(response: Dict[str, Any]) -> Tuple[str, int]:
        """
        Extract the token and its lifetime from a login response.

        The login endpoint is held to a stricter standard than search: a
        passing envelope is not enough, the token and the timeout must both
        be present.
        """
        envelope = response.get(RESPONSE_ENVELOPE)
        request_info = response.get(REQUEST_INFO_KEY)

        token = envelope.get("Token") if isinstance(envelope, dict) else None
        if not token or not isinstance(request_info, dict):
            raise ProtocolError(INVALID_RESPONSE_ERROR, response=response)

        try:
            timeout_minutes = int(request_info.get("TimeoutPeriodMinutes"))
        except (TypeError, ValueError):
            raise ProtocolError(INVALID_RESPONSE_ERROR, response=response)

        return str(token), timeout_minutes

    def extend_expiry(self, path: str, timeout: int):
        """
        Push the cached expiry to now + `timeout` minutes.

        Called after every request that reached the server. Nothing happens
        while the store holds no expiry.
        """
        if self.store.get(self.timeout_key) is None:
            return

        new_expiry = self.clock() + timeout * 60
        self.store.set(self.timeout_key, new_expiry)
        if self._token is not None:
            self._expires_at = new_expiry
        logger.debug(f"[ORANGELOGIC] Token expiry extended after {path}")

    def invalidate(self):
        """Forget the token in memory and in the session store."""
        self._token = None
        self._expires_at = None
        self.store.expire(self.token_key)
        self.store.expire(self.timeout_key)
        logger.info("[ORANGELOGIC] Token invalidated")
