"""
Leaf normalizers: URLs, image URLs, free text and status labels.

Every function here is best-effort and never raises. On input it cannot
make sense of, it hands back the best string it has.
"""

import re
from typing import Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from .schemas import WorkStatus

# Query strings longer than this on image URLs are opaque CDN tokens that
# break some image loaders; short ones (?w=300) are kept.
IMAGE_QUERY_MAX_LENGTH = 60

WHITESPACE_PATTERN = re.compile(r'\s+')
BY_PREFIX_PATTERN = re.compile(r'^\s*by\b\s*[:\-]?\s*', re.IGNORECASE)

# Hrefs that never lead to another document
NON_NAVIGABLE_PREFIXES = ('javascript:', 'mailto:', 'tel:', '#')

# Checked in order, first hit wins. "publishing finished" must precede the
# Completed family because "finished" alone maps to Completed.
STATUS_RULES = [
    (('publishing finished',), WorkStatus.PUBLISHING_FINISHED),
    (('ongoing', 'updating', 'serial'), WorkStatus.ONGOING),
    (('complete', 'completed', 'finished'), WorkStatus.COMPLETED),
    (('hiatus',), WorkStatus.HIATUS),
    (('cancel',), WorkStatus.CANCELLED),
]


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Turn any href into an absolute URL on the site origin.

    Args:
        href: Absolute, scheme-relative ("//cdn/x"), root-relative ("/x")
              or path-relative ("x") reference
        base_url: Site origin, e.g. "https://allnovel.org"

    Returns:
        Absolute URL, None for empty input, or href unchanged if it cannot be parsed
    """
    if href is None:
        return None
    href = href.strip()
    if not href:
        return None

    origin = base_url.rstrip('/')
    try:
        if href.startswith('//'):
            return f"https:{href}"
        if href.startswith('/'):
            return f"{origin}{href}"
        parts = urlsplit(href)
        if parts.scheme and parts.netloc:
            return href
        return urljoin(f"{origin}/", href)
    except ValueError:
        return href


def normalize_image_url(
    href: Optional[str],
    base_url: str,
    max_query_length: int = IMAGE_QUERY_MAX_LENGTH
) -> Optional[str]:
    """Resolve an image reference and drop an oversized query string."""
    url = resolve_url(href, base_url)
    if not url:
        return url
    try:
        parts = urlsplit(url)
        if len(parts.query) > max_query_length:
            return urlunsplit(parts._replace(query=''))
    except ValueError:
        pass
    return url


def is_navigable(href: Optional[str]) -> bool:
    """False for empty, fragment-only and script/mail pseudo links."""
    if not href or not href.strip():
        return False
    return not href.strip().lower().startswith(NON_NAVIGABLE_PREFIXES)


def clean_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace (nbsp included) into single spaces."""
    if not text:
        return ''
    return WHITESPACE_PATTERN.sub(' ', text).strip()


def strip_by_prefix(text: Optional[str]) -> str:
    """'By Jane Doe' -> 'Jane Doe'."""
    return BY_PREFIX_PATTERN.sub('', clean_text(text)).strip()


def strip_label(text: Optional[str], label_pattern: str) -> str:
    """
    Return what follows a field label such as "Author:" or "Genre(s) :".

    The label does not have to open the line ("Novel Author: X" -> "X").
    Text without the label comes back whitespace-cleaned but otherwise intact.

    Args:
        text: Raw metadata line
        label_pattern: Regex for the label words, matched case-insensitively

    Returns:
        The remainder, whitespace-cleaned
    """
    cleaned = clean_text(text)
    match = re.search(rf'(?:{label_pattern})\s*:?\s*', cleaned, re.IGNORECASE)
    if match is None:
        return cleaned
    return cleaned[match.end():].strip()


def classify_status(text: Optional[str]) -> WorkStatus:
    """Map a free-form status label onto WorkStatus."""
    if not text:
        return WorkStatus.UNKNOWN
    lowered = text.lower()
    for needles, status in STATUS_RULES:
        if any(needle in lowered for needle in needles):
            return status
    return WorkStatus.UNKNOWN
