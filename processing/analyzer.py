import asyncio
import logging
import math
from typing import Any, List, Sequence

from core.models import VERDICTS, AnalyzedArticle, ArticleSummary, FactCheck, ProcessedArticle

log = logging.getLogger("vigie.analyzer")

DEFAULT_IMPORTANCE = 5
MAX_FACT_CHECKS = 3
FALLBACK_SYNOPSIS_CHARS = 200


def _importance(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_IMPORTANCE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_IMPORTANCE
    if not math.isfinite(score):
        return DEFAULT_IMPORTANCE
    return min(10, max(1, int(round(score))))


def _confidence(value: Any) -> float:
    if isinstance(value, bool):
        return 0.5
    try:
        c = float(value)
    except (TypeError, ValueError):
        return 0.5
    if c != c:  # NaN
        return 0.5
    return min(1.0, max(0.0, c))


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def fallback_summary(article: ProcessedArticle) -> ArticleSummary:
    return ArticleSummary(
        article_id=article.id,
        headline=article.title,
        synopsis=article.content[:FALLBACK_SYNOPSIS_CHARS] + "...",
        key_points=[],
        importance=DEFAULT_IMPORTANCE,
    )


class Analyzer:
    """Summarizes and fact-checks processed articles one by one."""

    def __init__(self, oracle, trusted_sources: Sequence[str] = (), delay: float = 1.0):
        self.oracle = oracle
        self.trusted_sources = list(trusted_sources)
        self.delay = delay

    async def summarize(self, article: ProcessedArticle) -> ArticleSummary:
        try:
            data = await self.oracle.summarize(article)
        except Exception as e:
            log.warning("Resume de l'article %s en echec: %s", article.id, e)
            return fallback_summary(article)
        if not isinstance(data, dict):
            log.warning("Resume de l'article %s: reponse invalide.", article.id)
            return fallback_summary(article)

        headline = data.get("headline")
        synopsis = data.get("summary", data.get("synopsis"))
        return ArticleSummary(
            article_id=article.id,
            headline=str(headline).strip() if headline else article.title,
            synopsis=str(synopsis).strip() if synopsis else "",
            key_points=_str_list(data.get("key_points", data.get("keyPoints"))),
            importance=_importance(data.get("importance", DEFAULT_IMPORTANCE)),
        )

    async def fact_check(self, article: ProcessedArticle) -> List[FactCheck]:
        try:
            data = await self.oracle.fact_check(article, self.trusted_sources)
        except Exception as e:
            log.warning("Verification de l'article %s en echec: %s", article.id, e)
            return []
        claims = data.get("claims") if isinstance(data, dict) else None
        if not isinstance(claims, list):
            log.warning("Verification de l'article %s: reponse invalide.", article.id)
            return []

        checks = []
        for c in claims:
            if not isinstance(c, dict):
                continue
            claim = str(c.get("claim") or "").strip()
            if not claim:
                continue
            verdict = str(c.get("verdict") or "").strip().lower()
            checks.append(FactCheck(
                claim=claim,
                verdict=verdict if verdict in VERDICTS else "unverified",
                confidence=_confidence(c.get("confidence", 0.5)),
                explanation=str(c.get("explanation") or "").strip(),
                sources=_str_list(c.get("sources")),
            ))
            if len(checks) >= MAX_FACT_CHECKS:
                break
        return checks

    async def analyze_article(self, article: ProcessedArticle) -> AnalyzedArticle:
        summary, fact_checks = await asyncio.gather(
            self.summarize(article),
            self.fact_check(article),
        )
        return AnalyzedArticle(processed=article, summary=summary, fact_checks=fact_checks)

    async def analyze(self, articles: Sequence[ProcessedArticle]) -> List[AnalyzedArticle]:
        analyzed: List[AnalyzedArticle] = []
        for i, article in enumerate(articles):
            if i > 0 and self.delay > 0:
                await asyncio.sleep(self.delay)
            log.info("Analyse: %s", article.title[:50])
            analyzed.append(await self.analyze_article(article))
        return analyzed
