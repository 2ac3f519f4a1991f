import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional
from urllib.parse import urljoin

import aiohttp
from bs4 import BeautifulSoup

from collectors.base import Collector, fetch_text
from core.models import RawArticle
from core.utils import short_hash

log = logging.getLogger("vigie.collector.website")

DEFAULT_TITLE_SELECTOR = "h1, h2, h3, .title, .headline"
DEFAULT_CONTENT_SELECTOR = "p, .summary, .excerpt, .description"
DEFAULT_DATE_SELECTOR = "time, .date, .timestamp"
TITLE_MAX = 300
CONTENT_MAX = 5000


def _clean(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def parse_date(value: Optional[str]) -> datetime:
    """Parse ISO 8601 or RFC 2822 dates; anything else is "now" (UTC)."""
    value = (value or "").strip()
    if value:
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
        try:
            dt = parsedate_to_datetime(value)
            return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
        except (TypeError, ValueError):
            pass
    return datetime.now(timezone.utc)


class WebsiteCollector(Collector):
    """Extracts article blocks from a listing page with CSS selectors."""

    kind = "site"

    def __init__(self, name: str, url: str, article_selector: str,
                 title_selector: Optional[str] = None,
                 content_selector: Optional[str] = None,
                 date_selector: Optional[str] = None,
                 limit: int = 20):
        self.name = name
        self.url = url
        self.article_selector = article_selector
        self.title_selector = title_selector or DEFAULT_TITLE_SELECTOR
        self.content_selector = content_selector or DEFAULT_CONTENT_SELECTOR
        self.date_selector = date_selector or DEFAULT_DATE_SELECTOR
        self.limit = limit

    def parse(self, html: str) -> List[RawArticle]:
        soup = BeautifulSoup(html, "html.parser")
        articles = []
        for block in soup.select(self.article_selector)[: self.limit]:
            title_el = block.select_one(self.title_selector)
            title = _clean(title_el.get_text(" ")) if title_el else ""
            link_el = block.find("a")
            if not title and link_el:
                title = _clean(link_el.get_text(" "))
            if not title:
                continue

            content = _clean(" ".join(el.get_text(" ") for el in block.select(self.content_selector)))
            if not content:
                content = _clean(block.get_text(" "))

            href = link_el.get("href") if link_el else None
            url = urljoin(self.url, href) if href else None

            date_el = block.select_one(self.date_selector)
            date_str = None
            if date_el:
                date_str = date_el.get("datetime") or date_el.get_text(" ")

            articles.append(RawArticle(
                id=f"web_{self.name}_{short_hash(title)}",
                source=self.name,
                source_kind="site",
                title=title[:TITLE_MAX],
                content=content[:CONTENT_MAX],
                published_at=parse_date(date_str),
                url=url,
            ))
        return articles

    async def collect(self, session: aiohttp.ClientSession) -> List[RawArticle]:
        log.info("Lecture du site %s", self.name)
        html = await fetch_text(session, self.url)
        return self.parse(html)
