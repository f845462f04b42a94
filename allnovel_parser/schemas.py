"""
Pydantic schemas for everything the source hands back to the host app.

Every model is frozen and every collection is a tuple: a re-extraction
produces a new value instead of mutating an old one. Attributes are
snake_case; model_dump(by_alias=True) yields the camelCase keys the reading
application expects.

Data flow:
  listing page  -> ListingExtractor -> WorkSummary[] -> ListingPage
  detail page   -> DetailExtractor + ChapterDiscovery -> WorkDetail
  chapter page  -> ContentSanitizer -> ChapterContent
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WorkStatus(str, Enum):
    """Closed set of publication states."""
    ONGOING = "ongoing"
    COMPLETED = "completed"
    HIATUS = "hiatus"
    CANCELLED = "cancelled"
    PUBLISHING_FINISHED = "publishing_finished"
    UNKNOWN = "unknown"

    @property
    def code(self) -> int:
        """Integer status used by the host application."""
        return _STATUS_CODES[self]


_STATUS_CODES = {
    WorkStatus.ONGOING: 0,
    WorkStatus.COMPLETED: 1,
    WorkStatus.HIATUS: 2,
    WorkStatus.CANCELLED: 3,
    WorkStatus.PUBLISHING_FINISHED: 4,
    WorkStatus.UNKNOWN: 5,
}


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# --- Listing models ---

class WorkSummary(_Record):
    """One work as it appears on a popular/latest/search listing."""
    name: str
    url: str                             # Absolute; the only identity a work has
    cover: Optional[str] = None
    author: Optional[str] = None
    summary: Optional[str] = None
    published_at: Optional[str] = None


class ListingPage(_Record):
    """One page of listing results plus the continuation signal."""
    items: tuple[WorkSummary, ...] = Field(default_factory=tuple)
    has_more: bool = False


# --- Detail models ---

class ChapterRef(_Record):
    """A chapter link in source read order."""
    name: str
    url: str
    uploaded_at: Optional[str] = None


class WorkDetail(_Record):
    """Full record for a single work."""
    title: str
    url: str
    cover: Optional[str] = None
    description: str = ""
    author: str = ""
    genres: tuple[str, ...] = Field(default_factory=tuple)
    status: WorkStatus = WorkStatus.UNKNOWN
    chapters: tuple[ChapterRef, ...] = Field(default_factory=tuple)


class ChapterContent(_Record):
    """Sanitized chapter body."""
    data: str = Field(description="Sanitized HTML fragment")
    source_url: str


# --- Host registration ---

class FilterOption(_Record):
    """A filter the host may render above search results."""
    type: str
    name: str
    values: tuple[str, ...] = Field(default_factory=tuple)


class SourceInfo(_Record):
    """Registration metadata the reading application reads once per source."""
    name: str = "AllNovel"
    lang: str = "en"
    base_url: str = "https://allnovel.org"
    api_url: str = ""
    icon_url: str = (
        "https://github.com/hato3D/Mangayomi-BetterNovelExtensions/blob/main/images/AllNovel.png"
    )
    type_source: str = "single"
    item_type: int = 2                   # 0 manga, 1 anime, 2 novel
    version: str = "1.0.0"
    date_format: str = ""
    date_format_locale: str = ""
    pkg_path: str = "novel/src/en/allnovel.js"
    has_cloudflare: bool = False
