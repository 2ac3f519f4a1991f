import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from core.models import CATEGORIES, ENTITY_KINDS, Entity, ProcessedArticle, RawArticle
from core.utils import content_hash

log = logging.getLogger("vigie.enricher")

DEFAULT_CATEGORY = "other"
DEFAULT_LANGUAGE = "en"


def validate_category(value: Any) -> str:
    normalized = value.lower().strip() if isinstance(value, str) else ""
    return normalized if normalized in CATEGORIES else DEFAULT_CATEGORY


def _language(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip().lower()
    return DEFAULT_LANGUAGE


def _entities(raw: Any) -> List[Entity]:
    if not isinstance(raw, list):
        return []
    out = []
    for e in raw:
        if not isinstance(e, dict):
            continue
        kind = str(e.get("type") or "").strip().lower()
        name = str(e.get("name") or "").strip()
        if kind not in ENTITY_KINDS or not name:
            continue
        mentions = e.get("mentions")
        if not isinstance(mentions, int) or isinstance(mentions, bool) or mentions < 1:
            mentions = 1
        out.append(Entity(kind=kind, name=name, mentions=mentions))
    return out


def default_processed(article: RawArticle) -> ProcessedArticle:
    return ProcessedArticle(
        article=article,
        language=DEFAULT_LANGUAGE,
        category=DEFAULT_CATEGORY,
        entities=[],
        content_hash=content_hash(article.title + article.content),
    )


def _index_payload(payload: Any, size: int) -> Optional[Dict[int, Dict[str, Any]]]:
    """Map batch position -> classification, or None when the payload is unusable."""
    if not isinstance(payload, dict):
        return None
    items = payload.get("articles")
    if not isinstance(items, list):
        return None
    by_index: Dict[int, Dict[str, Any]] = {}
    for item in items:
        if not isinstance(item, dict):
            continue
        idx = item.get("index")
        if isinstance(idx, str) and idx.strip().isdigit():
            idx = int(idx)
        if not isinstance(idx, int) or isinstance(idx, bool) or not 0 <= idx < size:
            continue
        by_index.setdefault(idx, item)
    return by_index


class BatchEnricher:
    """Classifies articles in fixed-size batches through the oracle.

    Exactly one ProcessedArticle is produced per input article, in input
    order. A failing or garbled batch falls back to the default
    classification for all of its articles; an article the oracle skipped
    falls back on its own.
    """

    def __init__(self, oracle, batch_size: int = 5, delay: float = 1.0):
        if batch_size < 1:
            raise ValueError("batch_size doit etre >= 1")
        self.oracle = oracle
        self.batch_size = batch_size
        self.delay = delay

    async def enrich(self, articles: Sequence[RawArticle]) -> List[ProcessedArticle]:
        processed: List[ProcessedArticle] = []
        for start in range(0, len(articles), self.batch_size):
            if start > 0 and self.delay > 0:
                await asyncio.sleep(self.delay)
            batch = list(articles[start:start + self.batch_size])
            processed.extend(await self.process_batch(batch))
        return processed

    async def process_batch(self, batch: List[RawArticle]) -> List[ProcessedArticle]:
        try:
            payload = await self.oracle.classify(batch)
        except Exception as e:
            log.warning("Classification du lot (%d articles) en echec: %s", len(batch), e)
            return [default_processed(a) for a in batch]

        by_index = _index_payload(payload, len(batch))
        if by_index is None:
            log.warning("Classification du lot (%d articles): reponse invalide.", len(batch))
            return [default_processed(a) for a in batch]

        results = []
        for i, article in enumerate(batch):
            data = by_index.get(i)
            if data is None:
                log.info("Article %s absent de la reponse, categorie par defaut.", article.id)
                results.append(default_processed(article))
                continue
            results.append(ProcessedArticle(
                article=article,
                language=_language(data.get("language")),
                category=validate_category(data.get("category")),
                entities=_entities(data.get("entities")),
                content_hash=content_hash(article.title + article.content),
            ))
        return results
