"""
Chapter Discovery.

Three tiers, each tried only when the previous one found nothing:
  1. chapter anchors on the detail page itself
  2. a "table of contents" style link, followed to a second page
  3. one synthetic chapter pointing at the work page (single-page work)

Chapters keep the order the site lists them in. They are neither sorted
nor deduplicated.
"""

from typing import Awaitable, Callable, Optional

from .document import Node
from .exceptions import FetchError
from .locator import select_first_pattern, text_of
from .normalize import is_navigable, resolve_url
from .schemas import ChapterRef
from .logger import get_module_logger

logger = get_module_logger("chapters")

CHAPTER_SELECTORS = [
    '#list-chapter ul.list-chapter li a',
    'ul.list-chapter li a',
    '.chapter-list a',
    'ul.chapters li a',
    'li.wp-manga-chapter a',
    '.eplister li a',
    '#chapters a',
    '.entry-content a[href*="chapter"]',
]

UPLOAD_DATE_SELECTORS = '.chapter-release-date, .chapter-date, time, .date'

TOC_KEYWORDS = ('table of contents', 'chapters', 'view all')

SYNTHETIC_CHAPTER_NAME = 'Full Text'

DocumentFetcher = Callable[[str], Awaitable[Node]]


class ChapterDiscovery:
    """Finds the ordered chapter list of a work."""

    def __init__(self, base_url: str):
        self.base_url = base_url

    async def discover(
        self,
        document: Node,
        work_url: str,
        fetch_document: DocumentFetcher,
        title: Optional[str] = None
    ) -> list[ChapterRef]:
        """
        Run the tiers against a detail page.

        Args:
            document: Parsed detail page
            work_url: Absolute URL of the detail page
            fetch_document: Coroutine fetching and parsing a URL (tier 2)
            title: Work title, used to name the synthetic chapter

        Returns:
            Non-empty chapter list
        """
        chapters = self.scan(document)
        if chapters:
            logger.info(f"Found {len(chapters)} chapters on the detail page")
            return chapters

        toc_url = self.find_toc_link(document, work_url)
        if toc_url:
            logger.info(f"No chapters on detail page, following {toc_url}")
            try:
                toc_document = await fetch_document(toc_url)
            except FetchError as e:
                logger.warning(f"Table of contents fetch failed: {e.message}")
            else:
                chapters = self.scan(toc_document)
                if chapters:
                    logger.info(f"Found {len(chapters)} chapters on {toc_url}")
                    return chapters

        logger.info(f"No chapter list for {work_url}, treating it as a single-page work")
        return [self.synthetic_chapter(work_url, title)]

    def scan(self, document: Node) -> list[ChapterRef]:
        """Tier 1: anchors of the first chapter selector that matches."""
        selector, anchors = select_first_pattern(document, CHAPTER_SELECTORS)
        if selector:
            logger.debug(f"Chapter selector '{selector}' matched {len(anchors)} anchors")

        chapters = []
        for anchor in anchors:
            href = anchor.attr('href')
            name = text_of(anchor) or text_of_title(anchor)
            if not name or not is_navigable(href):
                continue
            url = resolve_url(href, self.base_url)
            if not url:
                continue
            chapters.append(ChapterRef(name=name, url=url, uploaded_at=self._upload_date(anchor)))
        return chapters

    def find_toc_link(self, document: Node, work_url: str) -> Optional[str]:
        """Tier 2 lookup: first anchor labelled like a chapter index."""
        for anchor in document.select('a[href]'):
            label = text_of(anchor).lower()
            if not any(keyword in label for keyword in TOC_KEYWORDS):
                continue
            href = anchor.attr('href')
            if not is_navigable(href):
                continue
            url = resolve_url(href, self.base_url)
            if url and url != work_url:
                return url
        return None

    def synthetic_chapter(self, work_url: str, title: Optional[str] = None) -> ChapterRef:
        return ChapterRef(name=title or SYNTHETIC_CHAPTER_NAME, url=work_url)

    def _upload_date(self, anchor: Node) -> Optional[str]:
        entry = anchor.find_parent('li')
        if entry is None:
            return None
        date = entry.select_one(UPLOAD_DATE_SELECTORS)
        if date is None:
            return None
        return date.attr('datetime') or text_of(date) or None


def text_of_title(anchor: Node) -> str:
    """Anchors wrapping only an icon often carry the chapter name in title=."""
    return (anchor.attr('title') or '').strip()
