import asyncio
import html as htmlmod
import logging
from typing import Dict, Any, List, Optional

import aiohttp

from core.models import DailyDigest, DigestArticle, DigestSection
from core.utils import add_utm, strip_html_to_text, truncate_text
from publishers.base import Publisher

log = logging.getLogger("vigie.publisher.telegram")

MESSAGE_MAX = 4096
HEADLINE_MAX = 200
SYNOPSIS_MAX = 900
NOTE_MAX = 300
SOURCES_MAX = 200
URL_MAX = 1024


def escape_capped(text: str, limit: int) -> str:
    """HTML-escape text, truncated so the escaped result fits in limit."""
    text = text or ""
    cut = limit
    out = htmlmod.escape(truncate_text(text, cut))
    while len(out) > limit and cut > 3:
        cut = max(3, cut - (len(out) - limit))
        out = htmlmod.escape(truncate_text(text, cut))
    return out


class TelegramPublisher(Publisher):
    name = "telegram"

    def __init__(self, token: str, chat_id: str, message_max: int = MESSAGE_MAX,
                 send_delay: float = 0.5):
        self.token = token
        self.chat_id = chat_id
        self.message_max = message_max
        self.send_delay = send_delay
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=20)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    # ---------- rendu ----------

    @staticmethod
    def _badge(article: DigestArticle) -> str:
        if article.status == "verified":
            return "✅ <i>Fact-checked</i>"
        if article.status == "warning":
            note = escape_capped(article.note or "Disputed claims", NOTE_MAX)
            return f"⚠️ <i>{note}</i>"
        return ""

    def _build_article(self, index: int, article: DigestArticle) -> str:
        parts = [f"<b>{index}. {escape_capped(article.headline, HEADLINE_MAX)}</b>"]
        if article.synopsis:
            parts.append(escape_capped(article.synopsis, SYNOPSIS_MAX))
        badge = self._badge(article)
        if badge:
            parts.append(badge)
        meta = []
        if article.sources:
            meta.append(f"<i>Source: {escape_capped(', '.join(article.sources), SOURCES_MAX)}</i>")
        if article.url:
            url = add_utm(article.url, source="telegram", medium="social", campaign="digest")
            url = htmlmod.escape(url)
            if len(url) <= URL_MAX:
                meta.append(f"<a href='{url}'>Read more</a>")
        if meta:
            parts.append(" • ".join(meta))
        return "\n".join(parts)

    def _build_section(self, section: DigestSection) -> List[str]:
        title = f"{section.emoji} <b>{htmlmod.escape(section.category.upper())}</b>"
        blocks = [self._build_article(i, a) for i, a in enumerate(section.articles, 1)]
        if blocks:
            blocks[0] = f"{title}\n\n{blocks[0]}"
        else:
            blocks = [title]
        return blocks

    def build_blocks(self, digest: DailyDigest) -> List[str]:
        blocks = [
            "📰 <b>Daily News Digest</b>\n"
            f"<i>{digest.date.strftime('%A %d %B %Y')}</i>"
        ]
        for section in digest.sections:
            blocks.extend(self._build_section(section))
        s = digest.stats
        blocks.append(
            f"📊 <i>{s.total_articles} articles • {s.fact_checks_performed} fact-checks • "
            f"{s.categories_covered} categories</i>"
        )
        return blocks

    def build_messages(self, digest: DailyDigest) -> List[str]:
        """Join blocks into messages no longer than message_max, never splitting a block.

        A block that cannot fit on its own is sent as escaped plain text.
        """
        messages: List[str] = []
        current = ""
        for block in self.build_blocks(digest):
            if len(block) > self.message_max:
                block = escape_capped(strip_html_to_text(block), self.message_max)
            candidate = f"{current}\n\n{block}" if current else block
            if len(candidate) <= self.message_max:
                current = candidate
                continue
            messages.append(current)
            current = block
        if current:
            messages.append(current)
        return messages

    # ---------- envoi ----------

    async def _send(self, text: str, disable_preview: bool = True) -> bool:
        sess = await self._ensure_session()
        endpoint = f"https://api.telegram.org/bot{self.token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": "true" if disable_preview else "false",
        }
        try:
            async with sess.post(endpoint, data=payload) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    log.warning("Telegram erreur status=%s body=%s", resp.status, body[:600])
                    return False
            return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            log.warning("Telegram exception: %s", e)
            return False

    async def publish_digest(self, digest: DailyDigest, cfg: Dict[str, Any]) -> bool:
        messages = self.build_messages(digest)
        disable_preview = bool(cfg.get("disable_preview", True))
        for i, text in enumerate(messages):
            if i > 0 and self.send_delay > 0:
                await asyncio.sleep(self.send_delay)
            if not await self._send(text, disable_preview=disable_preview):
                log.warning("Digest Telegram interrompu au message %d/%d.", i + 1, len(messages))
                return False
        log.info("Digest Telegram publie (%d message(s)).", len(messages))
        return True

    async def publish_notice(self, text: str, cfg: Dict[str, Any]) -> bool:
        return await self._send(htmlmod.escape(text))
