import asyncio
import logging
from typing import Dict, Any, List, Optional

import aiohttp
import discord

from core.models import DailyDigest, DigestSection
from core.utils import add_utm, truncate_text
from publishers.base import Publisher

log = logging.getLogger("vigie.publisher.discord")

EMBEDS_PER_MESSAGE = 10
MESSAGE_EMBED_CHARS = 6000
DESCRIPTION_MAX = 4096


class DiscordPublisher(Publisher):
    """Posts the digest through a Discord webhook, one embed per section."""

    name = "discord"

    def __init__(self, webhook_url: str, color: int = 0x0B0F14, send_delay: float = 0.5,
                 username: str = "Vigie"):
        self.webhook_url = webhook_url
        self.color = color
        self.send_delay = send_delay
        self.username = username
        self._session: Optional[aiohttp.ClientSession] = None

    async def _webhook(self) -> discord.Webhook:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=20))
        return discord.Webhook.from_url(self.webhook_url, session=self._session)

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    def build_section_embed(self, section: DigestSection) -> discord.Embed:
        lines = []
        for i, article in enumerate(section.articles, 1):
            headline = article.headline
            if article.url:
                url = add_utm(article.url, source="discord", medium="social", campaign="digest")
                headline = f"[{headline}]({url})"
            lines.append(f"**{i}. {headline}**")
            if article.synopsis:
                lines.append(truncate_text(article.synopsis, 700))
            if article.status == "verified":
                lines.append("✅ *Fact-checked*")
            elif article.status == "warning":
                lines.append(f"⚠️ *{truncate_text(article.note or 'Disputed claims', 300)}*")
            if article.sources:
                lines.append(f"*Source: {', '.join(article.sources)}*")
            lines.append("")
        return discord.Embed(
            title=f"{section.emoji} {section.category.capitalize()}",
            description=truncate_text("\n".join(lines).strip(), DESCRIPTION_MAX),
            color=self.color,
        )

    def build_embeds(self, digest: DailyDigest) -> List[discord.Embed]:
        embeds = [self.build_section_embed(s) for s in digest.sections]
        s = digest.stats
        footer = (f"{s.total_articles} articles • {s.fact_checks_performed} fact-checks • "
                  f"{s.categories_covered} categories")
        if embeds:
            embeds[-1].set_footer(text=footer)
        return embeds

    @staticmethod
    def group_embeds(embeds: List[discord.Embed]) -> List[List[discord.Embed]]:
        """Split embeds into messages within Discord's per-message limits."""
        groups: List[List[discord.Embed]] = []
        current: List[discord.Embed] = []
        size = 0
        for embed in embeds:
            n = len(embed)
            if current and (len(current) >= EMBEDS_PER_MESSAGE or size + n > MESSAGE_EMBED_CHARS):
                groups.append(current)
                current, size = [], 0
            current.append(embed)
            size += n
        if current:
            groups.append(current)
        return groups

    async def publish_digest(self, digest: DailyDigest, cfg: Dict[str, Any]) -> bool:
        groups = self.group_embeds(self.build_embeds(digest))
        header = f"📰 **Daily News Digest** • {digest.date.strftime('%d %b %Y')}"
        try:
            webhook = await self._webhook()
            for i, group in enumerate(groups):
                if i > 0 and self.send_delay > 0:
                    await asyncio.sleep(self.send_delay)
                await webhook.send(
                    content=header if i == 0 else discord.utils.MISSING,
                    embeds=group,
                    username=cfg.get("username", self.username),
                )
            if not groups:
                await webhook.send(content=header, username=cfg.get("username", self.username))
        except (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning("Discord webhook en echec: %s", e)
            return False
        log.info("Digest Discord publie (%d message(s)).", max(1, len(groups)))
        return True

    async def publish_notice(self, text: str, cfg: Dict[str, Any]) -> bool:
        try:
            webhook = await self._webhook()
            await webhook.send(content=text, username=cfg.get("username", self.username))
            return True
        except (discord.HTTPException, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            log.warning("Discord webhook en echec: %s", e)
            return False
