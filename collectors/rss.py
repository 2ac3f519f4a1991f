import logging
from datetime import datetime, timezone
from typing import Any, List, Optional
from urllib.parse import urljoin, urlparse

import aiohttp
import feedparser

from collectors.base import Collector, fetch_text
from core.models import RawArticle
from core.utils import short_hash, strip_html_to_text

log = logging.getLogger("vigie.collector.rss")

CONTENT_MAX = 5000


def _entry_html(entry: Any) -> str:
    content = getattr(entry, "content", None)
    if content and isinstance(content, list) and len(content) > 0:
        v = getattr(content[0], "value", None)
        if v:
            return str(v)
    return str(getattr(entry, "description", "") or getattr(entry, "summary", "") or "")


def _author(entry: Any) -> Optional[str]:
    a = getattr(entry, "author", None)
    if a:
        return str(a).strip()
    dc = getattr(entry, "dc_creator", None)
    if dc:
        return str(dc).strip()
    return None


def _image_url(entry: Any, base_url: str) -> Optional[str]:
    for media in (getattr(entry, "media_content", None) or []):
        url = media.get("url") if isinstance(media, dict) else None
        if url and media.get("medium", "image") == "image":
            return urljoin(base_url, url)
    for thumb in (getattr(entry, "media_thumbnail", None) or []):
        url = thumb.get("url") if isinstance(thumb, dict) else None
        if url:
            return urljoin(base_url, url)
    for enc in (getattr(entry, "enclosures", None) or []):
        href = enc.get("href") if isinstance(enc, dict) else None
        if href and str(enc.get("type", "")).startswith("image/"):
            return urljoin(base_url, href)
    return None


def _published_dt(entry: Any) -> datetime:
    st = getattr(entry, "published_parsed", None) or getattr(entry, "updated_parsed", None)
    if st:
        try:
            return datetime(*st[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            pass
    return datetime.now(timezone.utc)


def entry_to_article(entry: Any, feed_url: str, source: str) -> Optional[RawArticle]:
    title = str(getattr(entry, "title", "") or "").strip()
    if not title:
        return None
    link = str(getattr(entry, "link", "") or "").strip()
    url = urljoin(feed_url, link) if link else None
    return RawArticle(
        id=f"rss_{short_hash(link or title)}",
        source=source,
        source_kind="feed",
        title=title,
        content=strip_html_to_text(_entry_html(entry))[:CONTENT_MAX],
        published_at=_published_dt(entry),
        url=url,
        author=_author(entry),
        image_url=_image_url(entry, feed_url),
    )


def feed_to_articles(feed: Any, feed_url: str, source: str, limit: int = 30) -> List[RawArticle]:
    """Convert a parsed RSS or Atom feed; entries without a title are skipped."""
    articles = []
    for entry in (getattr(feed, "entries", None) or [])[:limit]:
        article = entry_to_article(entry, feed_url, source)
        if article is not None:
            articles.append(article)
    return articles


class RssCollector(Collector):
    kind = "feed"

    def __init__(self, url: str, name: Optional[str] = None, limit: int = 30):
        self.url = url
        self.name = name or urlparse(url).hostname or url
        self.limit = limit

    async def collect(self, session: aiohttp.ClientSession) -> List[RawArticle]:
        log.info("Lecture du flux %s", self.url)
        body = await fetch_text(session, self.url)
        feed = feedparser.parse(body)
        if getattr(feed, "bozo", False) and not getattr(feed, "entries", None):
            raise ValueError(f"flux illisible: {getattr(feed, 'bozo_exception', '?')}")
        return feed_to_articles(feed, self.url, self.name, self.limit)
