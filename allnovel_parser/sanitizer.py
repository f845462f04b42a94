"""
Content Sanitizer.

Isolates the chapter body on a chapter page and cleans it for the reader:
  1. pick the best content container (ordered selectors, then largest block)
  2. drop executable / embedded nodes (script, style, iframe, ...)
  3. drop ads, share bars, related posts and post navigation
  4. strip on* event-handler attributes from every node
  5. rewrite images to a single absolute, normalized src

Design principle: always return a fragment. When no body can be found the
placeholder CONTENT_NOT_FOUND is returned instead of raising.
"""

import re
from typing import Optional

from .document import Node, parse_document, text_length
from .locator import LAZY_IMAGE_ATTRS, image_source, select_first_pattern
from .normalize import IMAGE_QUERY_MAX_LENGTH, normalize_image_url
from .logger import get_module_logger

logger = get_module_logger("sanitizer")

CONTENT_NOT_FOUND = '<p>Content not found.</p>'

# Containers must hold more text than this to count as the chapter body
CONTENT_MIN_LENGTH = 10

CONTENT_SELECTORS = [
    '#chapter-content',
    '#chr-content',
    '.chapter-c',
    '.chapter-content',
    '.reading-content',
    '.text-left',
    '.entry-content',
    '.post-content',
    'article .content',
]

# Nearest article-like container, searched when no content selector qualifies
ARTICLE_SELECTORS = ['article', 'main', '#content', '.content', 'body']

BLOCK_TAGS = ['div', 'section', 'p', 'blockquote', 'td']

REMOVE_TAGS = ['script', 'style', 'iframe', 'noscript', 'object', 'embed']

JUNK_SELECTORS = [
    '.ads', '.ad', '.adsbygoogle', '[class*="advert"]', '[id*="advert"]',
    '.share', '.sharedaddy', '.social-share', '.share-buttons',
    '.related', '.related-posts', '.jp-relatedposts', '.yarpp-related',
    '.post-navigation', '.nav-links', '.chr-nav', '.chapter-nav', '.wp-post-navigation',
]

EVENT_HANDLER_PATTERN = re.compile(r'^on', re.IGNORECASE)

# Lazy-load markers removed once src holds the real image
LAZY_MARKER_ATTRS = LAZY_IMAGE_ATTRS + ('data-srcset', 'data-lazy-srcset', 'loading')
LAZY_CLASSES = {'lazy', 'lazyload', 'lazyloaded'}


class ContentSanitizer:
    """Selects and cleans chapter bodies."""

    def __init__(
        self,
        base_url: str,
        image_query_max_length: int = IMAGE_QUERY_MAX_LENGTH,
        content_min_length: int = CONTENT_MIN_LENGTH
    ):
        self.base_url = base_url
        self.image_query_max_length = image_query_max_length
        self.content_min_length = content_min_length

    def extract_content(self, document: Node) -> str:
        """
        Select the chapter body of a page and return it sanitized.

        Args:
            document: Parsed chapter page

        Returns:
            Sanitized inner HTML, or CONTENT_NOT_FOUND
        """
        container = self.select_container(document)
        if container is None:
            logger.warning("No content container found")
            return CONTENT_NOT_FOUND
        return self.sanitize(container)

    def select_container(self, document: Node) -> Optional[Node]:
        """Best candidate for the chapter body, or None."""
        for selector in CONTENT_SELECTORS:
            node = document.select_one(selector)
            if node is not None and text_length(node) > self.content_min_length:
                logger.debug(f"Content container '{selector}'")
                return node

        selector, articles = select_first_pattern(document, ARTICLE_SELECTORS)
        if not articles:
            return None
        article = articles[0]

        largest, largest_length = None, 0
        for block in article.descendants(*BLOCK_TAGS):
            length = text_length(block)
            if length > largest_length:
                largest, largest_length = block, length
        if largest is not None:
            logger.debug(f"Using largest block under '{selector}' ({largest_length} chars)")
            return largest

        if text_length(article) == 0:
            return None
        logger.debug(f"Using article container '{selector}'")
        return article

    def sanitize(self, container: Node) -> str:
        """Clean a container in place and return its inner HTML."""
        removed = 0
        for tag in REMOVE_TAGS:
            for node in container.descendants(tag):
                if not node.is_removed:
                    node.remove()
                    removed += 1

        for selector in JUNK_SELECTORS:
            for node in container.select(selector):
                if not node.is_removed:
                    node.remove()
                    removed += 1

        handlers = self._strip_event_handlers(container)
        images = self._rewrite_images(container)

        logger.debug(f"Sanitized content: {removed} nodes removed, "
                     f"{handlers} handlers stripped, {images} images rewritten")
        return container.inner_html.strip()

    def clean_html(self, html: str) -> str:
        """Sanitize an arbitrary raw fragment."""
        document = parse_document(html)
        body = document.select_one('body') or document
        return self.sanitize(body)

    def _strip_event_handlers(self, container: Node) -> int:
        count = 0
        for node in [container] + container.descendants():
            names = [name for name in node.attrs if EVENT_HANDLER_PATTERN.match(name)]
            node.remove_attr(*names)
            count += len(names)
        return count

    def _rewrite_images(self, container: Node) -> int:
        count = 0
        for img in container.descendants('img'):
            src = normalize_image_url(image_source(img), self.base_url, self.image_query_max_length)
            if src:
                img.set_attr('src', src)
                count += 1
            img.remove_attr(*LAZY_MARKER_ATTRS)
            classes = (img.attr('class') or '').split()
            if classes and LAZY_CLASSES.intersection(classes):
                kept = [c for c in classes if c not in LAZY_CLASSES]
                if kept:
                    img.set_attr('class', ' '.join(kept))
                else:
                    img.remove_attr('class')
        return count
