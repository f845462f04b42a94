"""
Field Locator: the ordered-fallback chain runner shared by every extractor.

A field (title, cover, author, ...) is described as data: an ordered list of
Strategy(selector, extract) pairs, most specific first. locate() walks the
list and returns the first extracted value that passes validation. A chain
that runs dry yields None; a missing field is never an error.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from .document import Node
from .normalize import clean_text
from .logger import get_module_logger

logger = get_module_logger("locator")

# Lazy-load attributes are checked before the eager src, which often holds a
# 1x1 placeholder on lazily loaded pages.
LAZY_IMAGE_ATTRS = ('data-src', 'data-lazy-src', 'data-original', 'data-lazy')
IMAGE_SOURCE_ATTRS = LAZY_IMAGE_ATTRS + ('src',)


@dataclass(frozen=True)
class Strategy:
    """One candidate location for a field."""
    selector: str
    extract: Callable[[Node], Any]


def is_present(value: Any) -> bool:
    """Default validity predicate: not None and not blank."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict)):
        return bool(value)
    return True


def locate(
    root: Node,
    strategies: Iterable[Strategy],
    validate: Callable[[Any], bool] = is_present
) -> Optional[Any]:
    """
    Run a fallback chain against a document or fragment.

    Args:
        root: Node to search under
        strategies: Ordered candidates, highest priority first
        validate: Predicate a value must satisfy to be accepted

    Returns:
        First valid extracted value, or None when every strategy misses
    """
    for strategy in strategies:
        node = root.select_one(strategy.selector)
        if node is None:
            continue
        value = strategy.extract(node)
        if validate(value):
            return value
        logger.debug(f"Strategy '{strategy.selector}' matched but produced no value")
    return None


def select_first_pattern(root: Node, selectors: Iterable[str]) -> tuple[Optional[str], list[Node]]:
    """
    Return every node matched by the first selector that matches anything.

    Later selectors are never merged in, even when the winning one matches
    nodes that later turn out to be unusable.

    Returns:
        (winning selector, nodes), or (None, []) when nothing matched
    """
    for selector in selectors:
        nodes = root.select(selector)
        if nodes:
            return selector, nodes
    return None, []


# --- Extraction functions used in strategy tables ---

def text_of(node: Node) -> str:
    return clean_text(node.text)


def attr_of(*names: str) -> Callable[[Node], Optional[str]]:
    """Extractor reading the first non-blank attribute among names."""
    def extract(node: Node) -> Optional[str]:
        return node.attr(*names)
    return extract


def image_source(node: Node) -> Optional[str]:
    """Effective source of an <img>: lazy-load attribute first, then src."""
    for name in IMAGE_SOURCE_ATTRS:
        value = node.attr(name)
        if value and not value.startswith('data:'):
            return value
    return None


def text_strategies(*selectors: str) -> list[Strategy]:
    return [Strategy(selector, text_of) for selector in selectors]
