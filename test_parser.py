"""
Tests for the extraction engine: field locator, listing, pagination,
detail, chapter discovery and content sanitizing.

All fixtures are inline HTML; nothing here touches the network.
"""

import asyncio

import pytest

from allnovel_parser.chapters import ChapterDiscovery
from allnovel_parser.detail import DetailExtractor
from allnovel_parser.document import parse_document
from allnovel_parser.exceptions import FetchError
from allnovel_parser.listing import ListingExtractor, dedupe_by_url, has_next_page
from allnovel_parser.locator import Strategy, locate, select_first_pattern, text_of, attr_of
from allnovel_parser.sanitizer import CONTENT_NOT_FOUND, ContentSanitizer
from allnovel_parser.schemas import WorkStatus, WorkSummary

BASE = "https://allnovel.org"
LONG_TOKEN = "sig=" + "0f9e8d7c6b" * 8


def listing_row(slug: str, title: str, with_link: bool = True, image: str = None) -> str:
    image = image or f"/uploads/{slug}.jpg"
    heading = (f'<h3 class="truyen-title"><a href="/{slug}.html">{title}</a></h3>'
               if with_link else f'<h3 class="truyen-title">{title}</h3>')
    return f"""
    <div class="row" itemscope itemtype="https://schema.org/Book">
      <div class="col-xs-3"><img class="cover" data-src="{image}" src="data:image/gif;base64,R0lGOD"></div>
      <div class="col-xs-7">{heading}<span class="author">By Writer {slug}</span></div>
    </div>"""


def listing_page(rows: str, pagination: str = "") -> str:
    return f"""<html><body>
    <div class="list list-truyen col-xs-12">{rows}</div>
    {pagination}
    </body></html>"""


# --- Field locator ---

def test_locate_returns_first_valid_strategy():
    document = parse_document('<div><h1> </h1><h2 class="t">Second</h2><h3>Third</h3></div>')
    strategies = [
        Strategy("h1", text_of),
        Strategy(".missing", text_of),
        Strategy("h2.t", text_of),
        Strategy("h3", text_of),
    ]
    assert locate(document, strategies) == "Second"


def test_locate_returns_none_when_exhausted():
    document = parse_document("<p>nothing relevant</p>")
    assert locate(document, [Strategy("h1", text_of), Strategy("img", attr_of("src"))]) is None


def test_locate_skips_invalid_selector():
    document = parse_document("<h1>Title</h1>")
    assert locate(document, [Strategy("h1[", text_of), Strategy("h1", text_of)]) == "Title"


def test_select_first_pattern_does_not_merge():
    document = parse_document('<ul class="a"><li>1</li></ul><ul class="b"><li>2</li><li>3</li></ul>')
    selector, nodes = select_first_pattern(document, [".missing li", ".a li", ".b li"])
    assert selector == ".a li"
    assert [text_of(n) for n in nodes] == ["1"]


def test_node_markup_and_attribute_writes():
    document = parse_document('<div id="box" class="a b"><span>old</span></div>')
    box = document.select_one("#box")

    assert box.attr("class") == "a b"
    box.set_attr("data-x", "1")
    box.remove_attr("class")
    box.set_inner_html("<em>new</em> text")

    assert box.attrs == {"id": "box", "data-x": "1"}
    assert box.inner_html == "<em>new</em> text"
    assert document.select_one("span") is None


@pytest.mark.parametrize("html, expected", [
    ('<h3 class="title">Martial <em>Peak</em>!</h3>', "Martial Peak!"),
    ("<p>It is <i>great</i>.</p>", "It is great."),
    ("<div><p>First</p><p>Second</p></div>", "First Second"),
    ("<p>Line one<br>Line two</p>", "Line one Line two"),
    ("<div>Kept<script>dropped()</script></div>", "Kept"),
])
def test_node_text_joins_inline_markup(html, expected):
    assert text_of(parse_document(html)) == expected


def test_detail_title_with_inline_markup():
    document = parse_document('<h3 class="title">Martial <em>Peak</em>!</h3>'
                              '<div class="desc-text"><p>It is <i>great</i>.</p></div>')
    detail = DetailExtractor(BASE).extract(document, f"{BASE}/martial-peak.html")

    assert detail.title == "Martial Peak!"
    assert detail.description == "It is great."


def test_parse_document_survives_junk():
    document = parse_document("\x00<p>ok\x07</p><!-- hidden -->")
    assert text_of(document) == "ok"
    assert "hidden" not in document.inner_html


# --- Listing ---

def test_listing_uses_lazy_cover_for_every_item():
    """Three items with lazy-only images give three summaries with resolved covers."""
    rows = (listing_row("novel-one", "Novel One")
            + listing_row("novel-two", "Novel Two", image=f"//cdn.allnovel.org/two.jpg?{LONG_TOKEN}")
            + listing_row("novel-three", "Novel Three"))
    items = ListingExtractor(BASE).extract(parse_document(listing_page(rows)))

    assert [item.name for item in items] == ["Novel One", "Novel Two", "Novel Three"]
    assert items[0].url == "https://allnovel.org/novel-one.html"
    assert items[0].cover == "https://allnovel.org/uploads/novel-one.jpg"
    assert items[1].cover == "https://cdn.allnovel.org/two.jpg"
    assert items[2].cover == "https://allnovel.org/uploads/novel-three.jpg"
    assert items[0].author == "Writer novel-one"


def test_listing_drops_item_without_title_link():
    rows = (listing_row("novel-one", "Novel One")
            + listing_row("novel-two", "Novel Two", with_link=False)
            + listing_row("novel-three", "Novel Three"))
    items = ListingExtractor(BASE).extract(parse_document(listing_page(rows)))

    assert [item.name for item in items] == ["Novel One", "Novel Three"]


def test_listing_falls_back_to_loose_pass():
    html = """<html><body>
    <nav><ul><li><a href="/genre/action">Action</a></li></ul></nav>
    <ul class="results">
      <li><a href="/novel-one.html">Novel One</a></li>
      <li><a href="/novel-two.html">Novel Two</a></li>
    </ul></body></html>"""
    items = ListingExtractor(BASE).extract(parse_document(html))

    assert [item.url for item in items] == [
        "https://allnovel.org/novel-one.html",
        "https://allnovel.org/novel-two.html",
    ]


def test_listing_reads_wordpress_articles():
    html = """<html><body>
    <article>
      <a href="/novel-one/"><img src="/wp-content/one.jpg"></a>
      <h2 class="entry-title"><a href="/novel-one/">Novel One</a></h2>
      <time datetime="2024-05-01T10:00:00">May 1, 2024</time>
      <div class="excerpt">A short pitch.</div>
    </article>
    </body></html>"""
    items = ListingExtractor(BASE).extract(parse_document(html))

    assert len(items) == 1
    assert items[0].name == "Novel One"
    assert items[0].cover == "https://allnovel.org/wp-content/one.jpg"
    assert items[0].published_at == "2024-05-01T10:00:00"
    assert items[0].summary == "A short pitch."


def test_listing_skips_item_that_raises(monkeypatch):
    """One failing item is dropped; the rest of the listing survives."""
    rows = listing_row("novel-one", "Novel One") + listing_row("novel-two", "Novel Two")
    extractor = ListingExtractor(BASE)
    original = extractor.extract_item
    calls = []

    def flaky(node):
        calls.append(node)
        if len(calls) == 1:
            raise RuntimeError("boom")
        return original(node)

    monkeypatch.setattr(extractor, "extract_item", flaky)
    items = extractor.extract(parse_document(listing_page(rows)))

    assert [item.name for item in items] == ["Novel Two"]


def test_dedupe_by_url_keeps_first_occurrence():
    items = [
        WorkSummary(name="A", url="https://allnovel.org/a.html"),
        WorkSummary(name="B", url="https://allnovel.org/b.html"),
        WorkSummary(name="A again", url="https://allnovel.org/a.html"),
    ]
    assert [item.name for item in dedupe_by_url(items)] == ["A", "B"]


# --- Pagination ---

@pytest.mark.parametrize("html, expected", [
    ('<ul class="pagination"><li class="next"><a href="?page=2">Next</a></li></ul>', True),
    ('<ul class="pagination"><li class="next disabled"><a href="#">Next</a></li></ul>', False),
    ('<div class="nav-previous"><a href="/page/2/">Older posts</a></div>', True),
    ('<a class="next page-numbers" href="/page/2/">Next</a>', True),
    ('<p>no navigation</p>', False),
    ("", False),
])
def test_has_next_page(html, expected):
    assert has_next_page(parse_document(html)) is expected


# --- Detail ---

DETAIL_HTML = """<html><head><title>Novel One - AllNovel</title></head><body>
<div id="nav" class="navbar"><ul class="dropdown-menu">
  <li><a href="/genre/Romance">Romance</a></li>
</ul></div>
<div class="col-info-desc">
  <div class="books"><div class="book"><img src="/uploads/thumbs/novel-one.jpg?v=1" alt="Novel One"></div></div>
  <div class="info">
    <div><h3>Author:</h3><a href="/author/Jane-Doe">Jane Doe</a></div>
    <div><h3>Genre:</h3><a href="/genre/Action">Action</a>, <a href="/genre/Fantasy">Fantasy</a></div>
    <div><h3>Source:</h3>Web</div>
    <div><h3>Status:</h3><a href="/status/Completed">Completed</a></div>
  </div>
  <h3 class="title">Novel One</h3>
  <div class="desc-text"><p>A short synopsis.</p><p>Second paragraph.</p></div>
  <div class="tags"><a rel="tag" href="/tag/system">System</a><a rel="tag" href="/tag/action">Action</a></div>
</div>
</body></html>"""


def test_detail_reads_metadata_rows():
    detail = DetailExtractor(BASE).extract(parse_document(DETAIL_HTML), f"{BASE}/novel-one.html")

    assert detail.title == "Novel One"
    assert detail.url == "https://allnovel.org/novel-one.html"
    assert detail.cover == "https://allnovel.org/uploads/thumbs/novel-one.jpg?v=1"
    assert detail.author == "Jane Doe"
    assert detail.status == WorkStatus.COMPLETED
    assert detail.description == "A short synopsis."
    assert detail.chapters == ()


def test_detail_unions_tag_genres_without_menu_links():
    detail = DetailExtractor(BASE).extract(parse_document(DETAIL_HTML), f"{BASE}/novel-one.html")
    assert detail.genres == ("Action", "Fantasy", "System")


def test_detail_uses_whole_container_for_long_first_paragraph():
    long_paragraph = "word " * 100
    html = f'<h1>T</h1><div class="desc-text"><p>{long_paragraph}</p><p>Tail.</p></div>'
    detail = DetailExtractor(BASE).extract(parse_document(html), f"{BASE}/t.html")
    assert detail.description.endswith("Tail.")
    assert len(detail.description) > 400


def test_detail_fallbacks_without_metadata_rows():
    html = """<html><head><title>Lonely Tale</title></head><body>
    <p class="byline">by <a href="/author/x-writer">X Writer</a></p>
    <meta property="og:image" content="//cdn.allnovel.org/lonely.jpg">
    </body></html>"""
    detail = DetailExtractor(BASE).extract(parse_document(html), f"{BASE}/lonely.html")

    assert detail.title == "Lonely Tale"
    assert detail.author == "X Writer"
    assert detail.cover == "https://cdn.allnovel.org/lonely.jpg"
    assert detail.status == WorkStatus.UNKNOWN
    assert detail.genres == ()
    assert detail.description == ""


def test_detail_splits_category_row():
    html = """<h1>Tale</h1><ul class="post-meta">
      <li>Categories: Drama, Slice of Life</li>
      <li>Status: On Hiatus</li>
    </ul>"""
    detail = DetailExtractor(BASE).extract(parse_document(html), f"{BASE}/tale/")
    assert detail.genres == ("Drama", "Slice of Life")
    assert detail.status == WorkStatus.HIATUS


# --- Chapter discovery ---

CHAPTER_LIST = """<div id="list-chapter"><ul class="list-chapter">
  <li><a href="/novel-one/chapter-1.html">Chapter 1</a><span class="chapter-release-date">2024-01-01</span></li>
  <li><a href="/novel-one/chapter-2.html">Chapter 2</a></li>
  <li><a href="/novel-one/chapter-2.html">Chapter 2</a></li>
  <li><a href="#">  </a></li>
</ul></div>"""


async def never_fetch(url):
    raise AssertionError(f"unexpected fetch of {url}")


def test_chapters_found_on_detail_page_keep_order_and_duplicates():
    chapters = asyncio.run(ChapterDiscovery(BASE).discover(
        parse_document(CHAPTER_LIST), f"{BASE}/novel-one.html", never_fetch))

    assert [c.name for c in chapters] == ["Chapter 1", "Chapter 2", "Chapter 2"]
    assert chapters[0].url == "https://allnovel.org/novel-one/chapter-1.html"
    assert chapters[0].uploaded_at == "2024-01-01"
    assert chapters[1].uploaded_at is None


def test_chapters_follow_table_of_contents_link():
    detail = parse_document('<p>Intro</p><a href="/novel-one/toc">Table of Contents</a>')
    requested = []

    async def fetch(url):
        requested.append(url)
        return parse_document(CHAPTER_LIST)

    chapters = asyncio.run(ChapterDiscovery(BASE).discover(detail, f"{BASE}/novel-one.html", fetch))

    assert requested == ["https://allnovel.org/novel-one/toc"]
    assert len(chapters) == 3


def test_chapters_synthesize_single_page_work():
    """No chapter anchors and no index link: one chapter pointing at the work."""
    work_url = f"{BASE}/one-shot.html"
    chapters = asyncio.run(ChapterDiscovery(BASE).discover(
        parse_document("<h1>One Shot</h1><p>The whole story.</p>"), work_url, never_fetch,
        title="One Shot"))

    assert len(chapters) == 1
    assert chapters[0].url == work_url
    assert chapters[0].name == "One Shot"


def test_chapters_synthesize_when_toc_fetch_fails():
    work_url = f"{BASE}/novel-one.html"
    detail = parse_document('<a href="/novel-one/all">View all chapters</a>')

    async def failing(url):
        raise FetchError(f"HTTP 500 for {url}", url=url, status_code=500)

    chapters = asyncio.run(ChapterDiscovery(BASE).discover(detail, work_url, failing))
    assert [c.url for c in chapters] == [work_url]


# --- Content sanitizer ---

CHAPTER_PAGE = """<html><body>
<div class="chr-nav"><a href="/prev">Prev</a></div>
<div id="chapter-content">
  <script>alert('x')</script>
  <style>p { color: red; }</style>
  <p onclick="steal()">First paragraph of the chapter.</p>
  <div class="share"><a href="#">Share this</a></div>
  <p>Second paragraph.</p>
  <img data-src="/images/map.png" src="data:image/gif;base64,AAAA" loading="lazy" onerror="oops()">
  <iframe src="https://ads.example/frame"></iframe>
</div>
</body></html>"""


def test_sanitizer_strips_scripts_handlers_and_share_blocks():
    data = ContentSanitizer(BASE).extract_content(parse_document(CHAPTER_PAGE))

    assert "<script" not in data
    assert "<style" not in data
    assert "<iframe" not in data
    assert "onclick" not in data
    assert "onerror" not in data
    assert "Share this" not in data
    assert "<p>First paragraph of the chapter.</p>" in data
    assert "<p>Second paragraph.</p>" in data


def test_sanitizer_rewrites_lazy_images():
    data = ContentSanitizer(BASE).extract_content(parse_document(CHAPTER_PAGE))

    assert 'src="https://allnovel.org/images/map.png"' in data
    assert "data-src" not in data
    assert "loading=" not in data


def test_sanitizer_falls_back_to_largest_block():
    html = """<html><body><article>
      <div id="chapter-content">tiny</div>
      <p>Short intro.</p>
      <p>This paragraph is clearly the longest block in the article body.</p>
    </article></body></html>"""
    data = ContentSanitizer(BASE).extract_content(parse_document(html))
    assert data == "This paragraph is clearly the longest block in the article body."


def test_sanitizer_placeholder_when_nothing_found():
    assert ContentSanitizer(BASE).extract_content(parse_document("")) == CONTENT_NOT_FOUND


def test_clean_html_on_raw_fragment():
    html = '<p onmouseover="x()">Hello</p><script>bad()</script><div class="related">More</div>'
    assert ContentSanitizer(BASE).clean_html(html) == "<p>Hello</p>"
