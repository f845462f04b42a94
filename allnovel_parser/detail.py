"""
Detail Extractor.

Assembles one WorkDetail from a work's own page: title, cover, description,
author, status and genres. Chapters are discovered separately (see
chapters.py) and handed in by the caller.
"""

from typing import Optional

from .document import Node
from .locator import (
    Strategy, locate, select_first_pattern, text_of, image_source, text_strategies,
)
from .normalize import (
    IMAGE_QUERY_MAX_LENGTH, classify_status, clean_text, normalize_image_url,
    strip_by_prefix, strip_label,
)
from .schemas import ChapterRef, WorkDetail, WorkStatus
from .logger import get_module_logger

logger = get_module_logger("detail")

# Paragraphs shorter than this stand in for the whole description container
DESCRIPTION_PARAGRAPH_MAX = 400

TITLE_SELECTORS = [
    'h3.title', 'h1.entry-title', '.book-title', '.post-title h1', '.novel-title', 'h1', 'h2.title',
]

COVER_SELECTORS = [
    '.book img', '.summary_image img', '.post-thumbnail img', '.thumbnail img',
    'img.wp-post-image', '.cover img', 'figure img',
]

DESCRIPTION_SELECTORS = [
    '.desc-text', '[itemprop=description]', '.summary__content', '.description',
    '.entry-content', '.post-content', '.summary',
]

# "Label: value" rows. First selector with any match wins.
META_SELECTORS = [
    '.info > div',
    '.info li',
    '.novel-info li',
    '.post-content_item',
    'ul.meta li',
    '.post-meta li',
]

AUTHOR_LABEL = r'author(?:\(s\)|s)?'
STATUS_LABEL = r'status'
GENRE_LABEL = r'genres?(?:\(s\))?|categor(?:y|ies)'

AUTHOR_SELECTORS = [
    'a[href*="/author/"]', '.author a', '[itemprop=author]', '.author', '.byline',
]

# Site-wide menus list every genre; only anchors outside them describe this work
_OUTSIDE_MENUS = ':not(nav a, header a, footer a, .navbar a, .dropdown-menu a)'
TAG_SELECTORS = [
    f'a[rel~=tag]{_OUTSIDE_MENUS}',
    f'a[rel~=category]{_OUTSIDE_MENUS}',
    f'.tags a{_OUTSIDE_MENUS}',
    f'.genres a{_OUTSIDE_MENUS}',
    f'.cat-links a{_OUTSIDE_MENUS}',
    f'a[href*="/genre/"]{_OUTSIDE_MENUS}',
]


class DetailExtractor:
    """Extracts the full work record from a detail page."""

    def __init__(
        self,
        base_url: str,
        image_query_max_length: int = IMAGE_QUERY_MAX_LENGTH,
        description_paragraph_max: int = DESCRIPTION_PARAGRAPH_MAX
    ):
        self.base_url = base_url
        self.image_query_max_length = image_query_max_length
        self.description_paragraph_max = description_paragraph_max

        self.title_strategies = text_strategies(*TITLE_SELECTORS)
        self.cover_strategies = [Strategy(s, self._cover) for s in COVER_SELECTORS] + [
            Strategy('meta[property="og:image"]', lambda n: self._normalize(n.attr('content'))),
        ]
        self.description_strategies = [Strategy(s, self._description) for s in DESCRIPTION_SELECTORS]
        self.author_strategies = [Strategy(s, lambda n: strip_by_prefix(n.text))
                                  for s in AUTHOR_SELECTORS]

    def extract(
        self,
        document: Node,
        url: str,
        chapters: Optional[list[ChapterRef]] = None
    ) -> WorkDetail:
        """
        Build the WorkDetail for one detail page.

        Args:
            document: Parsed detail page
            url: Absolute URL the page was fetched from
            chapters: Chapter list discovered for the work

        Returns:
            WorkDetail (fields that could not be located are empty)
        """
        author, status, genres = self.extract_metadata(document)
        self._merge_tag_genres(document, genres)

        detail = WorkDetail(
            title=self.extract_title(document),
            url=url,
            cover=locate(document, self.cover_strategies),
            description=locate(document, self.description_strategies) or '',
            author=author or '',
            genres=tuple(genres),
            status=status,
            chapters=tuple(chapters or ()),
        )
        logger.info(f"Extracted detail '{detail.title}' ({len(detail.genres)} genres, "
                    f"status {detail.status.value})")
        return detail

    def extract_title(self, document: Node) -> str:
        title = locate(document, self.title_strategies)
        if title:
            return title
        title_node = document.select_one('title')
        return text_of(title_node) if title_node is not None else ''

    def extract_metadata(self, document: Node) -> tuple[Optional[str], WorkStatus, list[str]]:
        """
        Scan "Label: value" rows for author, status and genres.

        Returns:
            (author or None, status, genres in document order)
        """
        author = None
        status = WorkStatus.UNKNOWN
        genres: list[str] = []

        _, rows = select_first_pattern(document, META_SELECTORS)
        if not rows:
            logger.debug("No metadata rows, falling back to author links")
            return locate(document, self.author_strategies), status, genres

        for row in rows:
            text = clean_text(row.text)
            lowered = text.lower()
            if 'author' in lowered:
                if author is None:
                    author = strip_label(text, AUTHOR_LABEL) or None
            elif 'status' in lowered:
                status = classify_status(strip_label(text, STATUS_LABEL))
            elif 'genre' in lowered or 'category' in lowered or 'categories' in lowered:
                value = strip_label(text, GENRE_LABEL)
                genres.extend(g.strip() for g in value.split(',') if g.strip())

        return author, status, genres

    def _merge_tag_genres(self, document: Node, genres: list[str]) -> None:
        # Union: tag anchors already listed in the metadata rows are skipped
        for selector in TAG_SELECTORS:
            for anchor in document.select(selector):
                name = text_of(anchor)
                if name and name not in genres:
                    genres.append(name)

    def _description(self, node: Node) -> str:
        first = node.select_one('p')
        if first is not None:
            paragraph = text_of(first)
            if paragraph and len(paragraph) < self.description_paragraph_max:
                return paragraph
        return text_of(node)

    def _cover(self, node: Node) -> Optional[str]:
        return self._normalize(image_source(node))

    def _normalize(self, href: Optional[str]) -> Optional[str]:
        return normalize_image_url(href, self.base_url, self.image_query_max_length)
