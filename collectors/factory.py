import logging
from typing import Any, Dict, List

from collectors.base import Collector
from collectors.rss import RssCollector
from collectors.telegram_channel import TelegramChannelCollector
from collectors.website import WebsiteCollector
from core import config

log = logging.getLogger("vigie.collectors")


def build_collectors(sources: Dict[str, Any]) -> List[Collector]:
    """Build collectors from a loaded sources.json; bad entries are logged and skipped."""
    collectors: List[Collector] = []

    for cfg in sources.get("telegram", {}).get("channels", []):
        username = str(cfg.get("username") or "").strip()
        if not username:
            log.warning("Canal Telegram sans username ignore: %s", cfg)
            continue
        collectors.append(TelegramChannelCollector(
            username=username,
            name=cfg.get("name"),
            hours_back=config.COLLECT_WINDOW_HOURS,
            limit=config.TELEGRAM_MESSAGES_MAX,
        ))

    for cfg in sources.get("websites", []):
        try:
            collectors.append(WebsiteCollector(
                name=cfg["name"],
                url=cfg["url"],
                article_selector=cfg["article_selector"],
                title_selector=cfg.get("title_selector"),
                content_selector=cfg.get("content_selector"),
                date_selector=cfg.get("date_selector"),
                limit=config.WEBSITE_ITEMS_MAX,
            ))
        except KeyError as e:
            log.warning("Site mal configure (cle %s manquante): %s", e, cfg)

    for cfg in sources.get("rss", []):
        url = str(cfg.get("url") or "").strip()
        if not url:
            log.warning("Flux RSS sans url ignore: %s", cfg)
            continue
        collectors.append(RssCollector(url=url, name=cfg.get("name"), limit=config.RSS_ITEMS_MAX))

    return collectors
