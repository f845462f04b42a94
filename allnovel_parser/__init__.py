"""
AllNovel Parser

Resilient extraction of works, chapter lists and chapter bodies from the
AllNovel site for a reading application.
- Field Locator: ordered fallback chains shared by every extractor
- Extractors: listing, detail, chapter discovery, content sanitizer
- Source: the async operations the host application calls

Public API surface:
  Entry point   - AllNovelSource
  Fetching      - BaseFetcher, HttpxFetcher, Fetcher
  Data models   - WorkSummary, WorkDetail, ChapterRef, ChapterContent, ListingPage, WorkStatus
  Configuration - SourceConfig
  Error types   - AllNovelError, FetchError, SourceExhaustedError
"""

from .source import AllNovelSource

from .fetcher import BaseFetcher, HttpxFetcher, Fetcher

from .schemas import (
    WorkSummary, WorkDetail, ChapterRef, ChapterContent, ListingPage, WorkStatus,
    SourceInfo, FilterOption,
)

from .config import SourceConfig

from .exceptions import AllNovelError, FetchError, SourceExhaustedError

__version__ = "1.0.0"
__all__ = [
    "AllNovelSource",
    "BaseFetcher",
    "HttpxFetcher",
    "Fetcher",
    "WorkSummary",
    "WorkDetail",
    "ChapterRef",
    "ChapterContent",
    "ListingPage",
    "WorkStatus",
    "SourceInfo",
    "FilterOption",
    "SourceConfig",
    "AllNovelError",
    "FetchError",
    "SourceExhaustedError",
]
