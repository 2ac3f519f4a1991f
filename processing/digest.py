import logging
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from core.models import (
    AnalyzedArticle,
    DailyDigest,
    DigestArticle,
    DigestSection,
    DigestStats,
    FactCheck,
)
from core.utils import category_emoji

log = logging.getLogger("vigie.digest")

DIGEST_CATEGORY_ORDER: Tuple[str, ...] = (
    "world",
    "politics",
    "technology",
    "business",
    "science",
    "health",
    "sports",
    "entertainment",
    "other",
)
WARNING_VERDICTS = ("disputed", "false")


def fact_check_status(fact_checks: Sequence[FactCheck]) -> Tuple[str, Optional[str]]:
    """Badge for an article: ("warning", note), ("verified", None) or ("none", None)."""
    if not fact_checks:
        return "none", None
    for fc in fact_checks:
        if fc.verdict in WARNING_VERDICTS:
            return "warning", fc.explanation
    if all(fc.verdict == "verified" for fc in fact_checks):
        return "verified", None
    return "none", None


def to_digest_article(article: AnalyzedArticle) -> DigestArticle:
    status, note = fact_check_status(article.fact_checks)
    return DigestArticle(
        headline=article.summary.headline,
        synopsis=article.summary.synopsis,
        status=status,
        note=note,
        sources=[article.processed.source],
        url=article.processed.url,
    )


def assemble_digest(analyzed: Sequence[AnalyzedArticle], top_n: int = 3,
                    generated_on: Optional[date] = None) -> DailyDigest:
    by_category: Dict[str, List[AnalyzedArticle]] = {}
    for article in analyzed:
        by_category.setdefault(article.category, []).append(article)

    sections: List[DigestSection] = []
    for category in DIGEST_CATEGORY_ORDER:
        articles = by_category.get(category)
        if not articles:
            continue
        # sorted() est stable: a importance egale, l'ordre d'arrivee est conserve
        ranked = sorted(articles, key=lambda a: a.importance, reverse=True)
        sections.append(DigestSection(
            category=category,
            emoji=category_emoji(category),
            articles=[to_digest_article(a) for a in ranked[:top_n]],
        ))

    stats = DigestStats(
        total_articles=len(analyzed),
        fact_checks_performed=sum(len(a.fact_checks) for a in analyzed),
        categories_covered=len(sections),
    )
    log.info(
        "Digest: %d sections, %d articles, %d verifications.",
        stats.categories_covered, stats.total_articles, stats.fact_checks_performed,
    )
    return DailyDigest(
        date=generated_on or datetime.now().date(),
        sections=sections,
        stats=stats,
    )
