"""
Listing Extractor and Pagination Detector.

Turns a popular/latest/search results page into WorkSummary records.

Pipeline position: listing HTML -> parse_document -> ListingExtractor.extract
Input:  parsed listing document
Output: ordered list[WorkSummary]; has_next_page() gives the continuation flag
"""

from typing import Iterable, Optional

from .document import Node
from .locator import (
    Strategy, locate, select_first_pattern, text_of, attr_of, image_source,
    text_strategies,
)
from .normalize import (
    IMAGE_QUERY_MAX_LENGTH, clean_text, is_navigable, normalize_image_url,
    resolve_url, strip_by_prefix,
)
from .schemas import WorkSummary
from .logger import get_module_logger

logger = get_module_logger("listing")

# Item containers, most structured first. The first selector with any match
# is used on its own; results from different selectors are never merged.
ITEM_SELECTORS = [
    '.list-truyen .row[itemtype]',
    '.list-novel .row',
    '.list-truyen .row',
    'div.novel-item',
    '.page-item-detail',
    '.c-tabs-item__content',
    'article',
]

# Last-resort pass when the structured containers yield nothing usable
LOOSE_ITEM_SELECTORS = [
    '.item, .list-item, li:not(nav li, header li, footer li, .pagination li, .menu li)',
]

# Heading links beat arbitrary anchors (the first anchor is often the cover)
LINK_SELECTORS = [
    'h3.truyen-title a',
    '.novel-title a',
    'h3 a', 'h2 a', 'h4 a', 'h1 a',
    '.title a',
    '.post-title a',
    'a[title]',
    'a[href]',
]

# Used only when the winning link carries no text of its own
NAME_STRATEGIES = text_strategies(
    'h3.truyen-title', '.novel-title', 'h3', 'h2', 'h4', '.title',
) + [Strategy('img[alt]', attr_of('alt'))]

COVER_SELECTORS = ['img.cover', '.book img', '.thumbnail img', '.cover img', 'img']

AUTHOR_SELECTORS = [
    'span.author', '.author', '[itemprop=author]', '.novel-author', '.byline',
]

SUMMARY_SELECTORS = [
    '.excerpt', '.summary', '.entry-summary', '.desc', '[itemprop=description]', 'p',
]

PUBLISHED_STRATEGIES = [
    Strategy('time[datetime]', attr_of('datetime')),
] + text_strategies('time', '.post-date', '.date', '.posted-on')

# Any of these present means another page exists. WordPress themes label
# the next page of results "older" / "previous".
NEXT_PAGE_SELECTORS = [
    'ul.pagination li.next:not(.disabled) a',
    '.pagination a[rel=next]',
    'a.next.page-numbers',
    '.nav-links .next',
    '.nav-previous a',
    '.older-posts a',
    'a.older-posts',
    'a[rel=next]',
    'link[rel=next]',
]


def has_next_page(document: Node) -> bool:
    """True iff the document shows a next/older navigation affordance."""
    return any(document.select_one(selector) is not None for selector in NEXT_PAGE_SELECTORS)


def dedupe_by_url(items: Iterable[WorkSummary]) -> list[WorkSummary]:
    """Drop repeated works by absolute URL; first occurrence wins."""
    seen = set()
    unique = []
    for item in items:
        if item.url in seen:
            continue
        seen.add(item.url)
        unique.append(item)
    return unique


class ListingExtractor:
    """Extracts WorkSummary records from listing pages."""

    def __init__(self, base_url: str, image_query_max_length: int = IMAGE_QUERY_MAX_LENGTH):
        self.base_url = base_url
        self.image_query_max_length = image_query_max_length

        self.link_strategies = [Strategy(s, self._link) for s in LINK_SELECTORS]
        self.cover_strategies = [Strategy(s, self._cover) for s in COVER_SELECTORS]
        self.author_strategies = [Strategy(s, lambda n: strip_by_prefix(n.text))
                                  for s in AUTHOR_SELECTORS]
        self.summary_strategies = text_strategies(*SUMMARY_SELECTORS)

    def extract(self, document: Node) -> list[WorkSummary]:
        """
        Extract every usable work summary from a listing document.

        Args:
            document: Parsed listing page

        Returns:
            Summaries in document order (possibly empty)
        """
        selector, nodes = select_first_pattern(document, ITEM_SELECTORS)
        items = self._extract_items(nodes)
        if items:
            logger.info(f"Extracted {len(items)} items using '{selector}'")
            return items

        selector, nodes = select_first_pattern(document, LOOSE_ITEM_SELECTORS)
        items = self._extract_items(nodes)
        if items:
            logger.info(f"Extracted {len(items)} items from loose pass '{selector}'")
        else:
            logger.info("No listing items found")
        return items

    def _extract_items(self, nodes: list[Node]) -> list[WorkSummary]:
        items = []
        for node in nodes:
            # One malformed entry must not abort the whole listing
            try:
                item = self.extract_item(node)
            except Exception as e:
                logger.warning(f"Skipping listing item after error: {e}")
                continue
            if item is not None:
                items.append(item)
        return items

    def extract_item(self, node: Node) -> Optional[WorkSummary]:
        """Build one summary, or None when the link or name is missing."""
        link = locate(node, self.link_strategies)
        if link is None:
            return None
        name, url = link
        if not name:
            name = clean_text(locate(node, NAME_STRATEGIES))
        if not name:
            return None

        return WorkSummary(
            name=name,
            url=url,
            cover=locate(node, self.cover_strategies),
            author=locate(node, self.author_strategies),
            summary=locate(node, self.summary_strategies),
            published_at=locate(node, PUBLISHED_STRATEGIES),
        )

    def _link(self, node: Node) -> Optional[tuple[str, str]]:
        href = node.attr('href')
        if not is_navigable(href):
            return None
        url = resolve_url(href, self.base_url)
        if not url:
            return None
        name = text_of(node) or clean_text(node.attr('title'))
        return name, url

    def _cover(self, node: Node) -> Optional[str]:
        return normalize_image_url(image_source(node), self.base_url, self.image_query_max_length)
