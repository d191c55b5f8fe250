"""
Client Configuration and Constants
==================================

This module contains all global configuration values, constants, and defaults used
throughout the OrangeLogic client. It serves as a single source of truth for:

- Endpoint templates and API versions
- Search vocabulary (media types, sort orders, default result fields)
- Network defaults (timeouts, page size, user agent)
- Session store key names

Note:
    All constants use UPPER_SNAKE_CASE naming convention. Modify these values to
    change client-wide behavior without touching business logic.
"""

import re

# ============================================================================
# ENDPOINTS
# ============================================================================
# The API root is built by substituting the asset manager domain into the
# template. Paths below are appended as "<root>/<path>".

API_ENDPOINT_TEMPLATE = "https://<domain>/API"

AUTH_LOGIN_PATH = "Authentication/v1.0/Login"
SEARCH_PATH = "search/v3.0/search"

# Asset manager domains: one label of 2-100 chars, then a 2-8 char suffix
DOMAIN_PATTERN = re.compile(r"^[-A-Za-z0-9]{2,100}(\.[A-Za-z.]{2,8})$", re.IGNORECASE)

# ============================================================================
# RESPONSE ENVELOPE
# ============================================================================

RESPONSE_ENVELOPE = "APIResponse"
REQUEST_INFO_KEY = "APIRequestInfo"
SUCCESS_CODE = "success"
INVALID_RESPONSE_ERROR = "Invalid response."

# ============================================================================
# SEARCH VOCABULARY
# ============================================================================

MEDIA_TYPES = ("Image", "Video", "Audio", "Album", "Story", "Graphic")

SORT_ORDERS = ("Newest", "Oldest", "Ranking", "Relevancy")
DEFAULT_SORT = "Newest"

# Fields returned for each item when the caller does not pick their own
DEFAULT_FIELDS = (
    "Path_WebHigh",
    "Path_CMS1",
    "Path_TR7",
    "Path_TR3",
    "Path_TR2",
    "Path_TR1",
    "SystemIdentifier",
    "MediaIdentifier",
    "MediaEncryptedIdentifier",
    "MediaNumber",
    "Title",
    "Caption",
    "CaptionLong",
    "MediaDate",
    "CreateDate",
    "EditDate",
    "copyright",
    "Photographer",
    "Artist",
    "MediaType",
    "Link",
    "MaxWidth",
    "MaxHeight",
)

# ============================================================================
# NETWORK CONFIGURATION
# ============================================================================

# Per-request timeout in seconds. The same figure, read as minutes, is the
# window by which each request extends the cached token expiry.
DEFAULT_TIMEOUT = 10

DEFAULT_COUNT_PER_PAGE = 20

USER_AGENT = "OrangeLogic-API-Python/1.0"

# ============================================================================
# SESSION STORE KEYS
# ============================================================================
# Keys are prefixed with the logical session key, e.g. "ol_token".

DEFAULT_SESSION_KEY = "ol"
TOKEN_SUFFIX = "token"
TOKEN_TIMEOUT_SUFFIX = "token_timeout"
