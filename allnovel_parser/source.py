"""
Main orchestrator: the operations the reading application calls.

Each operation fetches one or more candidate documents through the fetcher,
runs the matching extractor and returns a fresh, immutable result:

  list_popular / list_latest / search -> ListingPage
  get_detail                          -> WorkDetail
  get_chapter_list                    -> list[ChapterRef]
  get_chapter_content                 -> ChapterContent

Listing candidates are tried strictly one after another. The first one that
yields items wins; a candidate that fails to fetch is logged and skipped.
"""

from typing import Optional
from urllib.parse import quote_plus

from .chapters import ChapterDiscovery
from .config import SourceConfig
from .detail import DetailExtractor
from .document import Node, parse_document
from .exceptions import FetchError, SourceExhaustedError
from .fetcher import BaseFetcher, Fetcher
from .listing import ListingExtractor, dedupe_by_url, has_next_page
from .normalize import resolve_url
from .sanitizer import ContentSanitizer
from .schemas import (
    ChapterContent, ChapterRef, FilterOption, ListingPage, SourceInfo, WorkDetail,
)
from .logger import get_module_logger, setup_logger

logger = get_module_logger("source")


class AllNovelSource:
    """
    Entry points for the AllNovel site.

    Holds configuration and stateless extractors only; nothing is cached
    between calls.
    """

    def __init__(
        self,
        fetcher: Optional[BaseFetcher] = None,
        config: Optional[SourceConfig] = None,
        log_level: Optional[int] = None
    ):
        if log_level is not None:
            setup_logger(level=log_level)

        self.config = config or SourceConfig.from_env()
        self.fetcher = fetcher or Fetcher.create(self.config)

        base_url = self.config.base_url
        self.listing = ListingExtractor(base_url, self.config.image_query_max_length)
        self.detail = DetailExtractor(
            base_url,
            image_query_max_length=self.config.image_query_max_length,
            description_paragraph_max=self.config.description_paragraph_max,
        )
        self.chapters = ChapterDiscovery(base_url)
        self.sanitizer = ContentSanitizer(
            base_url,
            image_query_max_length=self.config.image_query_max_length,
            content_min_length=self.config.content_min_length,
        )

        logger.info(f"AllNovelSource initialized for {base_url}")

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def info(self) -> SourceInfo:
        return SourceInfo(base_url=self.base_url)

    def get_headers(self, url: Optional[str] = None) -> dict:
        """Headers sent with every request."""
        return {
            "Referer": f"{self.base_url}/",
            "User-Agent": self.config.user_agent,
        }

    def list_filters(self) -> list[FilterOption]:
        """Search supports the query string only; there is no filter catalog."""
        return []

    # --- Candidate URLs ---

    def popular_urls(self, page: int) -> list[str]:
        return [
            f"{self.base_url}/most-popular?page={page}",
            f"{self.base_url}/hot-novel?page={page}",
        ]

    def latest_urls(self, page: int) -> list[str]:
        return [
            f"{self.base_url}/latest-release-novel?page={page}",
            f"{self.base_url}/page/{page}/",
        ]

    def search_urls(self, query: str, page: int) -> list[str]:
        keyword = quote_plus(query.strip())
        return [
            f"{self.base_url}/search?keyword={keyword}&page={page}",
            f"{self.base_url}/page/{page}/?s={keyword}",
        ]

    # --- Listings ---

    async def list_popular(self, page: int = 1) -> ListingPage:
        return await self._listing("popular", self.popular_urls(_page_number(page)), dedupe=True)

    async def list_latest(self, page: int = 1) -> ListingPage:
        return await self._listing("latest", self.latest_urls(_page_number(page)))

    async def search(self, query: str, page: int = 1, filters: Optional[list] = None) -> ListingPage:
        """Query-string search. filters are accepted for the host's sake and not applied."""
        if filters:
            logger.debug(f"Ignoring {len(filters)} filters")
        return await self._listing("search", self.search_urls(query or "", _page_number(page)))

    async def _listing(self, operation: str, urls: list[str], dedupe: bool = False) -> ListingPage:
        """
        Try candidate URLs in order and return the first non-empty listing.

        Raises:
            SourceExhaustedError: if every candidate failed to fetch
        """
        failures: list[FetchError] = []

        for url in urls:
            try:
                document = await self.fetch_document(url)
            except FetchError as e:
                logger.warning(f"{operation} candidate failed: {e.message}")
                failures.append(e)
                continue

            items = self.listing.extract(document)
            if dedupe:
                items = dedupe_by_url(items)
            if items:
                page = ListingPage(items=tuple(items), has_more=has_next_page(document))
                logger.info(f"{operation}: {len(items)} items from {url} (has_more={page.has_more})")
                return page
            logger.info(f"{operation} candidate {url} had no items")

        if len(failures) == len(urls):
            raise SourceExhaustedError(operation, failures)
        return ListingPage(items=(), has_more=False)

    # --- Detail, chapters, content ---

    async def get_detail(self, work_url: str) -> WorkDetail:
        url = self._absolute(work_url)
        document = await self.fetch_document(url)
        title = self.detail.extract_title(document)
        chapters = await self.chapters.discover(document, url, self.fetch_document, title=title)
        return self.detail.extract(document, url, chapters)

    async def get_chapter_list(self, work_url: str) -> list[ChapterRef]:
        url = self._absolute(work_url)
        document = await self.fetch_document(url)
        title = self.detail.extract_title(document)
        return await self.chapters.discover(document, url, self.fetch_document, title=title)

    async def get_chapter_content(self, chapter_url: str) -> ChapterContent:
        url = self._absolute(chapter_url)
        document = await self.fetch_document(url)
        return ChapterContent(data=self.sanitizer.extract_content(document), source_url=url)

    def clean_html_content(self, html: str) -> str:
        """Sanitize markup the host obtained on its own."""
        return self.sanitizer.clean_html(html)

    async def fetch_document(self, url: str) -> Node:
        """Fetch a URL and parse it. FetchError propagates."""
        html = await self.fetcher.fetch(url, self.get_headers(url))
        return parse_document(html)

    def _absolute(self, url: str) -> str:
        return resolve_url(url, self.base_url) or self.base_url


def _page_number(page) -> int:
    """Pages are 1-based; anything lower is treated as the first page."""
    try:
        return max(int(page), 1)
    except (TypeError, ValueError):
        return 1
