"""
Session Management Module
==========================

This module defines the connection configuration and the session store used
by the OrangeLogic client:

- ConnectionConfig: where to connect and how (domain, credentials, TLS, paging)
- SessionStore: key-value abstraction holding the issued token between calls
- MemorySessionStore: process-local store, also the default for tests
- JsonFileSessionStore: store persisted to a JSON file so a token outlives
  the process that obtained it

The store is created and torn down by the embedding application and handed to
the client explicitly; the client never starts a session on its own.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import DEFAULT_COUNT_PER_PAGE, DEFAULT_SESSION_KEY, DEFAULT_TIMEOUT

# ============================================================================
# CONFIGURATION DATACLASSES
# ============================================================================

@dataclass
class ConnectionConfig:
    """
    Configuration for an OrangeLogic connection.

    Attributes:
        domain: Asset manager host name (e.g. 'mydam.example')
        login: API login ID
        password: API password
        verify_ssl: Verify TLS certificates. Only disable against a known
                    test server; a warning is logged when it is off.
        timeout: Per-request timeout in seconds
        count_per_page: Number of items requested per search page
        session_key: Prefix for the keys written to the session store
    """
    domain: str = ""
    login: str = ""
    password: str = ""
    verify_ssl: bool = True
    timeout: int = DEFAULT_TIMEOUT
    count_per_page: int = DEFAULT_COUNT_PER_PAGE
    session_key: str = DEFAULT_SESSION_KEY

# ============================================================================
# SESSION STORES
# ============================================================================

class SessionStore(ABC):
    """Key-value store shared by every client bound to one logical session."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key."""

    @abstractmethod
    def expire(self, key: str) -> None:
        """Drop key from the store. Missing keys are ignored."""

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class MemorySessionStore(SessionStore):
    """Dictionary-backed store living as long as the object does."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def expire(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileSessionStore(SessionStore):
    """
    Store persisted as a flat JSON object on disk.

    The file is re-read on every access so several processes sharing it see
    each other's writes. Writes are not locked: two processes renewing at the
    same moment may overwrite each other's token.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.logger = logging.getLogger(__name__)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Session file {self.path} is unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def expire(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
