"""
OrangeLogic API Client
======================

Authentication and media search against an OrangeLogic Asset Manager.
"""

from .core.orangelogic_api import (
    ApplicationError,
    ConfigurationError,
    OrangeLogicAPI,
    OrangeLogicAPIError,
    ProtocolError,
    TransportError,
)
from .core.orangelogic_client import OrangeLogicClient
from .core.search import MediaType, SearchQuery, SearchResult, SortOrder
from .core.session import ConnectionConfig, JsonFileSessionStore, MemorySessionStore, SessionStore
from .core.token_manager import TokenManager, TokenState

__version__ = "1.0.0"

__all__ = [
    "ApplicationError",
    "ConfigurationError",
    "ConnectionConfig",
    "JsonFileSessionStore",
    "MediaType",
    "MemorySessionStore",
    "OrangeLogicAPI",
    "OrangeLogicAPIError",
    "OrangeLogicClient",
    "ProtocolError",
    "SearchQuery",
    "SearchResult",
    "SessionStore",
    "SortOrder",
    "TokenManager",
    "TokenState",
    "TransportError",
]
