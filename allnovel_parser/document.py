"""
Document parsing and the node interface every extractor works against.

Extractors never touch BeautifulSoup directly. They see a Node, which
exposes text, attribute read/write, CSS selection, inner markup and
subtree removal. Swapping the tree library means reimplementing Node only.

Design principle: NEVER FAIL on bad HTML. parse_document always returns a
usable (possibly empty) document.
"""

from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import PreformattedString
from soupsieve import SelectorSyntaxError

from .logger import get_module_logger
from .normalize import clean_text

logger = get_module_logger("document")

# Control characters except tab/newline/CR
CONTROL_CHARS = ''.join(chr(c) for c in range(32) if c not in (9, 10, 13))
CONTROL_CHAR_TABLE = str.maketrans('', '', CONTROL_CHARS)

# Phrasing elements; every other element boundary separates words
INLINE_TAGS = frozenset({
    'a', 'abbr', 'b', 'bdi', 'bdo', 'cite', 'code', 'data', 'dfn', 'em', 'font',
    'i', 'kbd', 'mark', 'q', 's', 'samp', 'small', 'span', 'strike', 'strong',
    'sub', 'sup', 'time', 'tt', 'u', 'var',
})
NON_TEXT_TAGS = frozenset({'script', 'style', 'template'})


def _sanitize_markup(html: str) -> str:
    """String-level cleanup applied before the markup reaches a parser."""
    if '\x00' in html:
        html = html.replace('\x00', '')
    html = html.replace('\r\n', '\n').replace('\r', '\n')
    if any(c in html for c in CONTROL_CHARS):
        html = html.translate(CONTROL_CHAR_TABLE)
    return html


def _build_soup(html: str) -> BeautifulSoup:
    # html5lib -> lxml -> html.parser: the last one ships with Python
    try:
        return BeautifulSoup(html, 'html5lib')
    except Exception as e:
        logger.warning(f"html5lib parsing failed, trying lxml: {e}")
    try:
        return BeautifulSoup(html, 'lxml')
    except Exception as e:
        logger.warning(f"lxml parsing also failed: {e}")
    return BeautifulSoup(html, 'html.parser')


def parse_document(html: Optional[str]) -> "Node":
    """
    Parse raw markup into a Node wrapping the whole document.

    Args:
        html: Raw HTML string (None is treated as empty)

    Returns:
        Root Node
    """
    soup = _build_soup(_sanitize_markup(html or ''))
    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()
    return Node(soup)


class Node:
    """Thin capability wrapper around a parsed element."""

    __slots__ = ('tag',)

    def __init__(self, tag: Tag):
        self.tag = tag

    def __repr__(self) -> str:
        return f"Node(<{self.name}>)"

    def __eq__(self, other) -> bool:
        return isinstance(other, Node) and other.tag is self.tag

    def __hash__(self) -> int:
        return id(self.tag)

    @property
    def name(self) -> str:
        return self.tag.name or ''

    @property
    def text(self) -> str:
        """
        All descendant text.

        Inline markup joins as written; any other element boundary becomes a space.
        """
        parts = []
        for element in self.tag.descendants:
            if isinstance(element, Tag):
                if element.name not in INLINE_TAGS:
                    parts.append(' ')
            elif isinstance(element, NavigableString) and not isinstance(element, PreformattedString):
                if element.parent is None or element.parent.name not in NON_TEXT_TAGS:
                    parts.append(str(element))
        return ''.join(parts)

    # --- Selection ---

    def select(self, selector: str) -> list["Node"]:
        """All matches in document order; an invalid selector matches nothing."""
        try:
            return [Node(tag) for tag in self.tag.select(selector)]
        except (SelectorSyntaxError, ValueError) as e:
            logger.warning(f"Invalid CSS '{selector}': {e}")
            return []

    def select_one(self, selector: str) -> Optional["Node"]:
        try:
            tag = self.tag.select_one(selector)
        except (SelectorSyntaxError, ValueError) as e:
            logger.warning(f"Invalid CSS '{selector}': {e}")
            return None
        return Node(tag) if tag is not None else None

    def find_parent(self, *names: str) -> Optional["Node"]:
        """Nearest ancestor whose tag name is one of names."""
        parent = self.tag.find_parent(list(names))
        return Node(parent) if parent is not None else None

    def descendants(self, *names: str) -> list["Node"]:
        """Descendant elements in document order, optionally filtered by tag name."""
        target = list(names) if names else True
        return [Node(tag) for tag in self.tag.find_all(target)]

    # --- Attributes ---

    @property
    def attrs(self) -> dict:
        return dict(self.tag.attrs)

    def attr(self, *names: str) -> Optional[str]:
        """
        First non-blank value among the given attribute names.

        Multi-valued attributes (class, rel) are joined with spaces.
        """
        for name in names:
            value = self.tag.get(name)
            if isinstance(value, list):
                value = ' '.join(value)
            if value and value.strip():
                return value.strip()
        return None

    def set_attr(self, name: str, value: str) -> None:
        self.tag[name] = value

    def remove_attr(self, *names: str) -> None:
        for name in names:
            if name in self.tag.attrs:
                del self.tag[name]

    # --- Markup ---

    @property
    def inner_html(self) -> str:
        return self.tag.decode_contents()

    def set_inner_html(self, html: str) -> None:
        self.tag.clear()
        fragment = BeautifulSoup(html, 'html.parser')
        for child in list(fragment.contents):
            self.tag.append(child.extract())

    def remove(self) -> None:
        """Detach and destroy this subtree."""
        self.tag.decompose()

    @property
    def is_removed(self) -> bool:
        return getattr(self.tag, 'decomposed', False)


def text_length(node: Optional[Node]) -> int:
    """Length of a node's whitespace-collapsed text (0 for None)."""
    if node is None:
        return 0
    return len(clean_text(node.text))
