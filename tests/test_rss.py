import time
from datetime import datetime, timezone
from types import SimpleNamespace

from collectors.rss import (
    RssCollector,
    _author,
    _entry_html,
    _image_url,
    _published_dt,
    entry_to_article,
    feed_to_articles,
)

FEED_URL = "https://news.example.com/rss.xml"


def _make_entry(**kwargs):
    """Create a mock feedparser entry."""
    defaults = {
        "title": "Test Article",
        "link": "https://news.example.com/article-1",
        "description": "This is a test description.",
        "summary": "This is a test summary.",
        "author": "Jane Doe",
        "content": None,
        "published_parsed": time.struct_time((2024, 6, 15, 12, 0, 0, 5, 167, 0)),
        "updated_parsed": None,
        "dc_creator": None,
        "media_content": None,
        "media_thumbnail": None,
        "enclosures": None,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── _entry_html ───────────────────────────────────────────────

class TestEntryHtml:
    def test_uses_content_first(self):
        content_obj = SimpleNamespace(value="<p>Content HTML</p>")
        e = _make_entry(content=[content_obj], description="Fallback")
        assert _entry_html(e) == "<p>Content HTML</p>"

    def test_falls_back_to_description(self):
        e = _make_entry(content=None, description="Description text")
        assert _entry_html(e) == "Description text"

    def test_falls_back_to_summary(self):
        e = _make_entry(content=None, description=None, summary="Summary text")
        assert _entry_html(e) == "Summary text"

    def test_empty(self):
        e = _make_entry(content=None, description=None, summary=None)
        assert _entry_html(e) == ""


# ── _author ───────────────────────────────────────────────────

class TestAuthor:
    def test_author(self):
        assert _author(_make_entry(author="  Jane  ")) == "Jane"

    def test_dc_creator(self):
        assert _author(_make_entry(author=None, dc_creator="Wire desk")) == "Wire desk"

    def test_none(self):
        assert _author(_make_entry(author=None, dc_creator=None)) is None


# ── _image_url ────────────────────────────────────────────────

class TestImageUrl:
    def test_media_content(self):
        e = _make_entry(media_content=[{"url": "/img/a.jpg", "medium": "image"}])
        assert _image_url(e, FEED_URL) == "https://news.example.com/img/a.jpg"

    def test_media_content_video_ignored(self):
        e = _make_entry(media_content=[{"url": "https://cdn/v.mp4", "medium": "video"}])
        assert _image_url(e, FEED_URL) is None

    def test_thumbnail(self):
        e = _make_entry(media_thumbnail=[{"url": "https://cdn.example.com/t.png"}])
        assert _image_url(e, FEED_URL) == "https://cdn.example.com/t.png"

    def test_image_enclosure(self):
        e = _make_entry(enclosures=[
            {"href": "https://cdn.example.com/a.mp3", "type": "audio/mpeg"},
            {"href": "https://cdn.example.com/b.jpg", "type": "image/jpeg"},
        ])
        assert _image_url(e, FEED_URL) == "https://cdn.example.com/b.jpg"

    def test_none(self):
        assert _image_url(_make_entry(), FEED_URL) is None


# ── _published_dt ─────────────────────────────────────────────

class TestPublishedDt:
    def test_published(self):
        assert _published_dt(_make_entry()) == datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

    def test_updated_fallback(self):
        e = _make_entry(
            published_parsed=None,
            updated_parsed=time.struct_time((2024, 1, 2, 3, 4, 5, 1, 2, 0)),
        )
        assert _published_dt(e) == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_missing_is_now(self):
        before = datetime.now(timezone.utc)
        dt = _published_dt(_make_entry(published_parsed=None))
        assert dt >= before
        assert dt.tzinfo is not None


# ── entry_to_article ──────────────────────────────────────────

class TestEntryToArticle:
    def test_fields(self):
        e = _make_entry(content=[SimpleNamespace(value="<p>Hello&nbsp;<b>world</b></p>")])
        a = entry_to_article(e, FEED_URL, "Example News")
        assert a.id.startswith("rss_")
        assert len(a.id) == len("rss_") + 8
        assert a.source == "Example News"
        assert a.source_kind == "feed"
        assert a.title == "Test Article"
        assert a.content == "Hello world"
        assert a.url == "https://news.example.com/article-1"
        assert a.author == "Jane Doe"

    def test_id_stable_for_same_link(self):
        a = entry_to_article(_make_entry(title="One"), FEED_URL, "S")
        b = entry_to_article(_make_entry(title="Two"), FEED_URL, "S")
        assert a.id == b.id

    def test_relative_link(self):
        a = entry_to_article(_make_entry(link="/world/42"), FEED_URL, "S")
        assert a.url == "https://news.example.com/world/42"

    def test_no_link(self):
        a = entry_to_article(_make_entry(link=None), FEED_URL, "S")
        assert a.url is None

    def test_no_title_skipped(self):
        assert entry_to_article(_make_entry(title="  "), FEED_URL, "S") is None

    def test_content_capped(self):
        a = entry_to_article(_make_entry(description="x" * 6000), FEED_URL, "S")
        assert len(a.content) == 5000


# ── feed_to_articles ──────────────────────────────────────────

class TestFeedToArticles:
    def test_limit_and_skip(self):
        entries = [_make_entry(title=f"T{i}", link=f"https://n/{i}") for i in range(5)]
        entries.insert(1, _make_entry(title=""))
        feed = SimpleNamespace(entries=entries)
        articles = feed_to_articles(feed, FEED_URL, "S", limit=4)
        assert [a.title for a in articles] == ["T0", "T1", "T2"]

    def test_empty_feed(self):
        assert feed_to_articles(SimpleNamespace(entries=[]), FEED_URL, "S") == []


class TestRssCollector:
    def test_name_defaults_to_host(self):
        assert RssCollector(FEED_URL).name == "news.example.com"

    def test_explicit_name(self):
        assert RssCollector(FEED_URL, name="Example").name == "Example"
        assert RssCollector(FEED_URL).kind == "feed"
