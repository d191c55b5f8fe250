"""
OrangeLogic Asset Manager Client for authenticating and searching media.
"""

import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, Sequence, Union

from ..utils.logger import log_api_call
from .config import (
    DEFAULT_COUNT_PER_PAGE,
    DEFAULT_FIELDS,
    DEFAULT_SESSION_KEY,
    DEFAULT_SORT,
    DEFAULT_TIMEOUT,
    SEARCH_PATH,
)
from .orangelogic_api import OrangeLogicAPI
from .search import MediaType, SearchQuery, SearchResult, SortOrder
from .session import ConnectionConfig, SessionStore
from .token_manager import TokenManager

logger = logging.getLogger(__name__)


class OrangeLogicClient:
    """Client for the OrangeLogic authentication and search endpoints.

    Supports context manager protocol for automatic cleanup:
        with OrangeLogicClient(domain, login, password) as client:
            if client.search(text="city", media_type="Image"):
                items = client.get_items()

    Failed calls return False/None; the reason is in `get_last_error()`.
    """

    def __init__(
        self,
        domain: str,
        login: str,
        password: str,
        store: Optional[SessionStore] = None,
        verify_ssl: bool = True,
        timeout: int = DEFAULT_TIMEOUT,
        session_key: str = DEFAULT_SESSION_KEY,
        escape_quotes: bool = False,
        authenticate: bool = True,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the client.

        Args:
            domain: OrangeLogic Asset Manager domain
            login: API login ID
            password: API password
            store: Session store shared by clients of one logical session.
                   Created and disposed of by the caller; a private in-memory
                   store is used when omitted.
            verify_ssl: Verify TLS certificates (default: True)
            timeout: Default request timeout in seconds
            session_key: Prefix for this session's keys in the store
            escape_quotes: Backslash-escape double quotes inside query values
            authenticate: Obtain a token right away
            clock: Source of wall-clock time, for token expiry

        Raises:
            ConfigurationError: If the domain is empty or malformed
        """
        self.api = OrangeLogicAPI(domain, verify_ssl=verify_ssl, timeout=timeout)
        self.token_manager = TokenManager(
            self.api, login, password,
            store=store, session_key=session_key, clock=clock
        )
        self.escape_quotes = escape_quotes
        self._count_per_page = DEFAULT_COUNT_PER_PAGE
        self._search_result = SearchResult()

        if authenticate:
            self.token_manager.get_token()

    @classmethod
    def from_config(cls, config: ConnectionConfig, store: Optional[SessionStore] = None, **kwargs) -> "OrangeLogicClient":
        """Build a client from a ConnectionConfig."""
        client = cls(
            config.domain,
            config.login,
            config.password,
            store=store,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            session_key=config.session_key,
            **kwargs
        )
        client.set_count_per_page(config.count_per_page)
        return client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        self.api.close()

    @property
    def verify_ssl(self) -> bool:
        return self.api.verify_ssl

    @verify_ssl.setter
    def verify_ssl(self, value: bool):
        self.api.verify_ssl = value

    # ------------------------------------------------------------------------
    # SEARCH
    # ------------------------------------------------------------------------

    @log_api_call(api_name="OrangeLogic")
    def search(
        self,
        text: str = "",
        keyword: str = "",
        media_type: Union[str, MediaType, None] = "",
        page: int = 1,
        sort_by: Union[str, SortOrder] = DEFAULT_SORT,
        fields: Sequence[str] = DEFAULT_FIELDS
    ) -> bool:
        """
        Search media in the asset manager.

        Args:
            text: Partial match on title, description, keywords, artist and
                  other searchable fields
            keyword: Exact keyword filter
            media_type: 'Image', 'Video', 'Audio', 'Album', 'Story' or
                        'Graphic'; anything else searches all types
            page: 1-based page number
            sort_by: 'Newest', 'Oldest', 'Ranking' or 'Relevancy'
            fields: Item fields to include in the result

        Returns:
            True if the search succeeded. The result is available through
            get_items(), get_total_count() and get_search_result(); after a
            failure those return the empty defaults.
        """
        query = SearchQuery(
            text=text,
            keyword=keyword,
            media_type=media_type,
            page=page,
            sort_by=sort_by,
            fields=fields,
        )

        token = self.token_manager.get_token()
        self._search_result = SearchResult()

        if token is None:
            logger.error("[ORANGELOGIC] Search skipped, no valid token")
            return False

        response = self.api.post(
            SEARCH_PATH,
            query.to_params(self._count_per_page, token, self.escape_quotes)
        )

        if not self.api.request_successful:
            return False

        self._search_result = SearchResult.from_response(response)
        logger.info(
            f"[ORANGELOGIC] Page {page}: {len(self._search_result.items)} item(s) "
            f"of {self._search_result.total_count}"
        )
        return True

    def iter_pages(
        self,
        text: str = "",
        keyword: str = "",
        media_type: Union[str, MediaType, None] = "",
        start_page: int = 1,
        sort_by: Union[str, SortOrder] = DEFAULT_SORT,
        fields: Sequence[str] = DEFAULT_FIELDS,
        max_pages: Optional[int] = None
    ) -> Iterator[SearchResult]:
        """
        Yield one SearchResult per page, following NextPage.

        Stops after a page without a next page, after a failed search, or
        after `max_pages` pages.
        """
        page = start_page
        pages_fetched = 0

        while max_pages is None or pages_fetched < max_pages:
            if not self.search(text=text, keyword=keyword, media_type=media_type,
                               page=page, sort_by=sort_by, fields=fields):
                logger.warning(f"[ORANGELOGIC] Pagination stopped at page {page}: {self.get_last_error()}")
                return

            result = self._search_result
            pages_fetched += 1
            yield result

            if not result.has_next_page:
                return
            page += 1

    def get_items(self) -> list:
        """Items of the last search."""
        return self._search_result.items

    def get_total_count(self) -> int:
        """Total number of matches reported by the last search."""
        return self._search_result.total_count

    def get_search_result(self) -> SearchResult:
        return self._search_result

    def set_count_per_page(self, count: int):
        """Set the number of items requested per page."""
        self._count_per_page = int(count)

    def get_count_per_page(self) -> int:
        return self._count_per_page

    # ------------------------------------------------------------------------
    # TOKEN & RAW ACCESS
    # ------------------------------------------------------------------------

    def get_current_token(self) -> Optional[str]:
        """The token currently held in memory, None before login or after a failed one."""
        return self.token_manager.token

    def get(self, path: str, params: Optional[Dict[str, Any]] = None,
            timeout: Optional[int] = None) -> Optional[Dict]:
        """GET an endpoint not otherwise modeled. Add the token to params yourself."""
        return self.api.get(path, params, timeout)

    def post(self, path: str, params: Optional[Dict[str, Any]] = None,
             timeout: Optional[int] = None) -> Optional[Dict]:
        """POST to an endpoint not otherwise modeled. Add the token to params yourself."""
        return self.api.post(path, params, timeout)

    def get_last_error(self) -> str:
        return self.api.last_error

    def get_last_request(self) -> Dict[str, Any]:
        return self.api.last_request

    def get_last_response(self) -> Dict[str, Any]:
        return self.api.last_response

    def was_last_request_successful(self) -> bool:
        return self.api.request_successful

    def get_request_count(self) -> int:
        return self.api.get_request_count()
