"""
Tests for the leaf normalizers: URL resolution, image URLs, text cleanup
and status classification.
"""

import pytest

from allnovel_parser.normalize import (
    classify_status, clean_text, is_navigable, normalize_image_url, resolve_url,
    strip_by_prefix, strip_label,
)
from allnovel_parser.schemas import WorkStatus

BASE = "https://allnovel.org"
LONG_TOKEN = "token=" + "a1b2c3d4e5" * 8


@pytest.mark.parametrize("href, expected", [
    ("/novel-one.html", "https://allnovel.org/novel-one.html"),
    ("novel-one.html", "https://allnovel.org/novel-one.html"),
    ("//cdn.allnovel.org/cover.jpg", "https://cdn.allnovel.org/cover.jpg"),
    ("https://allnovel.org/novel-one.html", "https://allnovel.org/novel-one.html"),
    ("http://other.example/x", "http://other.example/x"),
    ("  /padded.html  ", "https://allnovel.org/padded.html"),
])
def test_resolve_url(href, expected):
    """Every href shape resolves to an absolute URL."""
    assert resolve_url(href, BASE) == expected


def test_resolve_url_empty_input():
    assert resolve_url(None, BASE) is None
    assert resolve_url("", BASE) is None
    assert resolve_url("   ", BASE) is None


def test_resolve_url_is_idempotent():
    once = resolve_url("/novel/chapter-1.html", BASE)
    assert resolve_url(once, BASE) == once


def test_resolve_url_tolerates_trailing_slash_on_base():
    assert resolve_url("/a.html", BASE + "/") == "https://allnovel.org/a.html"


def test_resolve_url_returns_unparseable_input_unchanged():
    """Malformed URLs come back as-is instead of raising."""
    broken = "http://[not-an-ipv6"
    assert resolve_url(broken, BASE) == broken


def test_image_url_drops_long_query():
    url = normalize_image_url(f"/covers/one.jpg?{LONG_TOKEN}", BASE)
    assert url == "https://allnovel.org/covers/one.jpg"


def test_image_url_keeps_short_query():
    url = normalize_image_url("//cdn.allnovel.org/one.jpg?w=300", BASE)
    assert url == "https://cdn.allnovel.org/one.jpg?w=300"


def test_image_url_is_idempotent():
    once = normalize_image_url(f"/covers/one.jpg?{LONG_TOKEN}", BASE)
    assert normalize_image_url(once, BASE) == once


def test_image_url_threshold_is_tunable():
    url = normalize_image_url("/one.jpg?w=300", BASE, max_query_length=3)
    assert url == "https://allnovel.org/one.jpg"


def test_image_url_never_raises_on_bad_input():
    assert normalize_image_url(None, BASE) is None
    assert normalize_image_url("http://[broken", BASE) == "http://[broken"


@pytest.mark.parametrize("text, expected", [
    ("Currently Ongoing", WorkStatus.ONGOING),
    ("Updating", WorkStatus.ONGOING),
    ("Serialized", WorkStatus.ONGOING),
    ("Completed!", WorkStatus.COMPLETED),
    ("COMPLETE", WorkStatus.COMPLETED),
    ("Finished", WorkStatus.COMPLETED),
    ("On Hiatus", WorkStatus.HIATUS),
    ("Cancelled", WorkStatus.CANCELLED),
    ("Canceled by author", WorkStatus.CANCELLED),
    ("Publishing Finished", WorkStatus.PUBLISHING_FINISHED),
    ("Licensed", WorkStatus.UNKNOWN),
    ("", WorkStatus.UNKNOWN),
    (None, WorkStatus.UNKNOWN),
])
def test_classify_status(text, expected):
    assert classify_status(text) == expected


def test_status_codes_match_host_values():
    assert [status.code for status in WorkStatus] == [0, 1, 2, 3, 4, 5]


def test_clean_text_collapses_whitespace():
    assert clean_text("  Martial \n\t Peak  ") == "Martial Peak"
    assert clean_text(None) == ""


def test_strip_by_prefix():
    assert strip_by_prefix("By Jane Doe") == "Jane Doe"
    assert strip_by_prefix("by: Jane Doe") == "Jane Doe"
    assert strip_by_prefix("Byron Hale") == "Byron Hale"


def test_strip_label():
    assert strip_label("Author: Jane Doe", r"author") == "Jane Doe"
    assert strip_label("GENRE(S) : Action, Drama", r"genres?(?:\(s\))?") == "Action, Drama"
    assert strip_label("Novel Author: Jane", r"author") == "Jane"
    assert strip_label("Jane Doe", r"author") == "Jane Doe"


def test_is_navigable():
    assert is_navigable("/chapter-1.html")
    assert not is_navigable("#")
    assert not is_navigable("javascript:void(0)")
    assert not is_navigable("")
    assert not is_navigable(None)
