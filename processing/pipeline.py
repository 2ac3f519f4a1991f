"""Collect -> deduplicate -> enrich -> analyze -> assemble -> publish."""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import aiohttp

from collectors.base import Collector
from core.models import DailyDigest, RawArticle
from core.monitoring import HealthMonitor
from processing.analyzer import Analyzer
from processing.dedup import DEFAULT_THRESHOLD, deduplicate
from processing.digest import assemble_digest
from processing.enricher import BatchEnricher
from publishers.base import NO_ARTICLES_NOTICE, Publisher

log = logging.getLogger("vigie.pipeline")

DEFAULT_SOURCE_DELAYS = {"channel": 1.0, "site": 2.0, "feed": 0.5}


class DigestPipeline:
    def __init__(self, collectors: Sequence[Collector], enricher: BatchEnricher, analyzer: Analyzer,
                 publishers: Sequence[Publisher], targets: Optional[Dict[str, Any]] = None,
                 monitor: Optional[HealthMonitor] = None,
                 dedup_threshold: float = DEFAULT_THRESHOLD, top_n: int = 3,
                 window_hours: float = 24, source_delays: Optional[Dict[str, float]] = None,
                 session_factory: Optional[Callable[[], aiohttp.ClientSession]] = None,
                 today: Optional[Callable[[], date]] = None):
        self.collectors = list(collectors)
        self.enricher = enricher
        self.analyzer = analyzer
        self.publishers = list(publishers)
        self.targets = targets or {}
        self.monitor = monitor or HealthMonitor()
        self.dedup_threshold = dedup_threshold
        self.top_n = top_n
        self.window_hours = window_hours
        self.source_delays = DEFAULT_SOURCE_DELAYS if source_delays is None else source_delays
        self.session_factory = session_factory or aiohttp.ClientSession
        self.today = today or (lambda: datetime.now().date())
        self.collected: List[RawArticle] = []

    # ---------- collecte ----------

    async def _collect_from(self, collectors: Sequence[Collector],
                            session: aiohttp.ClientSession) -> List[RawArticle]:
        articles: List[RawArticle] = []
        for i, collector in enumerate(collectors):
            key = f"{collector.kind}:{collector.name}"
            if self.monitor.is_in_cooldown(key):
                continue
            try:
                found = await collector.collect(session)
            except Exception as e:
                log.warning("Collecte %s en echec: %s", key, e)
                self.monitor.record_failure(key, e)
                found = []
            else:
                self.monitor.record_success(key)
                log.info("%s: %d article(s).", key, len(found))
            articles.extend(found)

            delay = self.source_delays.get(collector.kind, 0)
            if delay > 0 and i < len(collectors) - 1:
                await asyncio.sleep(delay)
        return articles

    async def collect(self, now: Optional[datetime] = None) -> List[RawArticle]:
        log.info("Debut de la collecte (%d sources).", len(self.collectors))
        async with self.session_factory() as session:
            articles = await self._collect_from(self.collectors, session)

        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(hours=self.window_hours)
        self.collected = [a for a in articles if a.published_at >= cutoff]
        log.info("Total collecte: %d article(s) (%d hors fenetre).",
                 len(self.collected), len(articles) - len(self.collected))
        for key in self.monitor.failing_sources():
            log.warning("Source en echec: %s (%d echec(s) consecutif(s), derniere erreur: %s)",
                        key, self.monitor.get_failures(key), self.monitor.last_error(key))
        return self.collected

    # ---------- traitement ----------

    async def process(self, articles: Sequence[RawArticle]) -> DailyDigest:
        unique = deduplicate(articles, threshold=self.dedup_threshold)
        processed = await self.enricher.enrich(unique)
        log.info("%d article(s) classe(s).", len(processed))
        analyzed = await self.analyzer.analyze(processed)
        return assemble_digest(analyzed, top_n=self.top_n, generated_on=self.today())

    def _enabled(self) -> List[Publisher]:
        enabled = set(self.targets.get("enabled", [p.name for p in self.publishers]))
        return [p for p in self.publishers if p.name in enabled]

    async def process_and_publish(self) -> Optional[DailyDigest]:
        publishers = self._enabled()
        if not self.collected:
            log.info("Aucun article a traiter.")
            for pub in publishers:
                await pub.publish_notice(NO_ARTICLES_NOTICE, self.targets.get(pub.name, {}))
            return None

        digest = await self.process(self.collected)
        for pub in publishers:
            ok = await pub.publish_digest(digest, self.targets.get(pub.name, {}))
            if ok:
                log.info("Digest publie sur %s.", pub.name)
            else:
                log.warning("Publication %s en echec.", pub.name)
        self.collected = []
        return digest

    async def run(self) -> Optional[DailyDigest]:
        await self.collect()
        return await self.process_and_publish()

    async def close(self) -> None:
        for pub in self.publishers:
            await pub.close()
