"""
Search query construction and result normalization.

Structured search parameters are translated into the asset manager's query
language (`Text:"..." Keyword:"..." MediaType:"..." `) and search responses
are mapped into a SearchResult with stable types and defaults.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .config import (
    DEFAULT_FIELDS,
    DEFAULT_SORT,
    MEDIA_TYPES,
    RESPONSE_ENVELOPE,
)


# ============================================================================
# ENUMS
# ============================================================================

class MediaType(Enum):
    """Media types understood by the MediaType query clause."""
    IMAGE = "Image"
    VIDEO = "Video"
    AUDIO = "Audio"
    ALBUM = "Album"
    STORY = "Story"
    GRAPHIC = "Graphic"


class SortOrder(Enum):
    """Result orderings accepted by the search endpoint."""
    NEWEST = "Newest"
    OLDEST = "Oldest"
    RANKING = "Ranking"
    RELEVANCY = "Relevancy"


_MEDIA_TYPE_LOOKUP = {name.lower(): name for name in MEDIA_TYPES}


def normalize_media_type(media_type: Union[str, MediaType, None]) -> str:
    """
    Return the canonical media type name, or '' for "all types".

    Unknown values are cleared rather than rejected.
    """
    if isinstance(media_type, MediaType):
        return media_type.value
    if not media_type:
        return ""
    return _MEDIA_TYPE_LOOKUP.get(str(media_type).strip().lower(), "")


def _quote(value: str, escape_quotes: bool) -> str:
    if escape_quotes:
        value = value.replace('"', '\\"')
    return f'"{value}"'


# ============================================================================
# QUERY
# ============================================================================

@dataclass
class SearchQuery:
    """
    One search request.

    Attributes:
        text: Partial match on title, description, keywords, artist, etc.
        keyword: Exact keyword filter
        media_type: One of MediaType, '' for all types
        page: 1-based page number
        sort_by: One of SortOrder
        fields: Item fields to return, in order
    """
    text: str = ""
    keyword: str = ""
    media_type: Union[str, MediaType, None] = ""
    page: int = 1
    sort_by: Union[str, SortOrder] = DEFAULT_SORT
    fields: Sequence[str] = DEFAULT_FIELDS

    def build_query(self, escape_quotes: bool = False) -> str:
        """
        Build the free-text query string.

        Clauses appear in the order Text, Keyword, MediaType, each followed by
        a single space. Empty clauses are left out. Values go in verbatim
        unless `escape_quotes` is set, in which case embedded double quotes
        are backslash-escaped.
        """
        query = ""
        text = (self.text or "").strip()
        keyword = (self.keyword or "").strip()
        media_type = normalize_media_type(self.media_type)

        if text:
            query += f"Text:{_quote(text, escape_quotes)} "

        if keyword:
            query += f"Keyword:{_quote(keyword, escape_quotes)} "

        if media_type:
            query += f"MediaType:{_quote(media_type, escape_quotes)} "

        return query

    @property
    def sort(self) -> str:
        return self.sort_by.value if isinstance(self.sort_by, SortOrder) else str(self.sort_by)

    @property
    def field_list(self) -> str:
        if isinstance(self.fields, str):
            return self.fields
        return ",".join(self.fields)

    def to_params(self, count_per_page: int, token: Optional[str], escape_quotes: bool = False) -> Dict[str, Any]:
        """Form parameters for the search endpoint."""
        return {
            "query": self.build_query(escape_quotes),
            "fields": self.field_list,
            "sort": self.sort,
            "countperpage": count_per_page,
            "pagenumber": self.page,
            "token": token,
        }


# ============================================================================
# RESULT
# ============================================================================

def _to_int(value: Any) -> int:
    """Coerce a count to a non-negative int, 0 when absent or unparseable."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return 0
    return max(number, 0)


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


@dataclass
class SearchResult:
    """Normalized search response. A fresh instance is the zeroed default."""
    total_count: int = 0
    sort: str = ""
    has_next_page: bool = False
    has_prev_page: bool = False
    items: List[Any] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "SearchResult":
        """
        Map a successful search body onto a SearchResult.

        Missing GlobalInfo entries fall back to the defaults; Items are passed
        through untouched.
        """
        envelope = data.get(RESPONSE_ENVELOPE) if isinstance(data, dict) else None
        if not isinstance(envelope, dict):
            envelope = {}
        global_info = envelope.get("GlobalInfo")
        if not isinstance(global_info, dict):
            global_info = {}
        items = envelope.get("Items")

        return cls(
            total_count=_to_int(global_info.get("TotalCount")),
            sort=str(global_info.get("Sort") or ""),
            has_next_page=_to_bool(global_info.get("NextPage", False)),
            has_prev_page=_to_bool(global_info.get("PrevPage", False)),
            items=items if isinstance(items, list) else [],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Result in the API's own key names."""
        return {
            "TotalCount": self.total_count,
            "Sort": self.sort,
            "NextPage": self.has_next_page,
            "PrevPage": self.has_prev_page,
            "Items": self.items,
        }
