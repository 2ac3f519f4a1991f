"""Reader for public Telegram channels through their web preview (t.me/s/<channel>)."""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import aiohttp
from bs4 import BeautifulSoup

from collectors.base import Collector, fetch_text
from collectors.website import parse_date
from core.models import RawArticle

log = logging.getLogger("vigie.collector.telegram")

PREVIEW_URL = "https://t.me/s/{username}"
TITLE_MAX = 200


class TelegramChannelCollector(Collector):
    kind = "channel"

    def __init__(self, username: str, name: Optional[str] = None,
                 hours_back: float = 24, limit: int = 100):
        self.username = username.lstrip("@")
        self.name = name or self.username
        self.hours_back = hours_back
        self.limit = limit

    def parse(self, html: str, now: Optional[datetime] = None) -> List[RawArticle]:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=self.hours_back)
        soup = BeautifulSoup(html, "html.parser")

        articles = []
        # La page liste les messages du plus ancien au plus recent
        for msg in reversed(soup.select(".tgme_widget_message[data-post]")[-self.limit:]):
            post = msg.get("data-post", "")
            msg_id = post.rsplit("/", 1)[-1]
            if not msg_id:
                continue

            text_el = msg.select_one(".tgme_widget_message_text")
            if text_el is None:
                continue
            for br in text_el.find_all("br"):
                br.replace_with("\n")
            content = text_el.get_text().strip()
            if not content:
                continue

            time_el = msg.select_one("time[datetime]")
            published = parse_date(time_el.get("datetime") if time_el else None)
            if published < cutoff:
                continue

            lines = [ln.strip() for ln in content.split("\n") if ln.strip()]
            title = lines[0][:TITLE_MAX] if lines else "Untitled"

            articles.append(RawArticle(
                id=f"tg_{self.username}_{msg_id}",
                source=self.name,
                source_kind="channel",
                title=title,
                content=re.sub(r"\n{3,}", "\n\n", content),
                published_at=published,
                url=f"https://t.me/{self.username}/{msg_id}",
            ))
        return articles

    async def collect(self, session: aiohttp.ClientSession) -> List[RawArticle]:
        log.info("Lecture du canal Telegram @%s", self.username)
        html = await fetch_text(session, PREVIEW_URL.format(username=self.username))
        return self.parse(html)
