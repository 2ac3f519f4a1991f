import logging
from typing import List, Sequence

from core.models import RawArticle
from processing.similarity import jaccard_similarity, normalize_text

log = logging.getLogger("vigie.dedup")

DEFAULT_THRESHOLD = 0.8


def deduplicate(articles: Sequence[RawArticle], threshold: float = DEFAULT_THRESHOLD) -> List[RawArticle]:
    """Collapse articles whose normalized titles are near-duplicates.

    Survivors keep the position of the first article of their cluster. When a
    later duplicate carries strictly more content it takes that position
    instead, and its title becomes the one later articles are compared to.
    A similarity equal to ``threshold`` is not a duplicate.
    """
    kept: List[RawArticle] = []
    kept_titles: List[str] = []

    for article in articles:
        title = normalize_text(article.title)

        slot = None
        for i, existing_title in enumerate(kept_titles):
            if jaccard_similarity(title, existing_title) > threshold:
                slot = i
                break

        if slot is None:
            kept.append(article)
            kept_titles.append(title)
            continue

        # Garder la version la plus riche
        if len(article.content) > len(kept[slot].content):
            kept[slot] = article
            kept_titles[slot] = title

    log.info("Deduplication: %d -> %d articles", len(articles), len(kept))
    return kept
