"""Instructions and prompt builders for the language-model oracle."""

from typing import Sequence

from core.models import ProcessedArticle, RawArticle

CLASSIFY_CONTENT_MAX = 500
ANALYZE_CONTENT_MAX = 3000
DEFAULT_TRUSTED_SOURCES = "Reuters, AP News, official government sources"

CLASSIFY_INSTRUCTIONS = """You classify news articles.

For each numbered article, determine:
1. category: one of technology, politics, business, sports, entertainment, science, health, world, other
2. language: ISO 639-1 code of the article text (e.g. "en", "ru", "es")
3. entities: the key people, organizations, locations and events mentioned

Respond with a JSON object only:
{
  "articles": [
    {
      "index": 0,
      "category": "technology",
      "language": "en",
      "entities": [
        {"type": "person", "name": "Ada Lovelace"},
        {"type": "organization", "name": "Royal Society"}
      ]
    }
  ]
}

"index" is the number in brackets before the article. Entity "type" is one of person, organization, location, event."""

SUMMARY_INSTRUCTIONS = """You summarize a news article.

Respond with a JSON object only:
{
  "headline": "A clear, concise headline (max 100 chars)",
  "summary": "2-3 sentences with the key information",
  "key_points": ["point 1", "point 2", "point 3"],
  "importance": 7
}

"importance" is an integer from 1 to 10 weighing global impact, number of people
affected, urgency and novelty of the information."""

FACT_CHECK_INSTRUCTIONS = """You review a news article for factual claims that can be verified.

For each significant claim, decide whether it is verified against known facts,
an unverified assertion, disputed, or false.

Respond with a JSON object only:
{
  "claims": [
    {
      "claim": "The specific claim made",
      "verdict": "verified|unverified|disputed|false",
      "confidence": 0.85,
      "explanation": "Brief explanation of the assessment",
      "sources": ["source1", "source2"]
    }
  ]
}

List at most 3 claims, the most important ones. If there is no significant
verifiable claim, return an empty "claims" array. Never invent claims."""


def format_batch_for_prompt(batch: Sequence[RawArticle]) -> str:
    blocks = []
    for i, article in enumerate(batch):
        blocks.append(f"[{i}] Title: {article.title}\nContent: {article.content[:CLASSIFY_CONTENT_MAX]}")
    return "ARTICLES:\n" + "\n\n---\n\n".join(blocks)


def format_article_for_prompt(article: ProcessedArticle) -> str:
    return (
        "ARTICLE:\n"
        f"Title: {article.title}\n"
        f"Source: {article.source}\n"
        f"Content: {article.content[:ANALYZE_CONTENT_MAX]}"
    )


def format_fact_check_prompt(article: ProcessedArticle, trusted_sources: Sequence[str]) -> str:
    trusted = ", ".join(s for s in trusted_sources if s) or DEFAULT_TRUSTED_SOURCES
    return (
        f"{format_article_for_prompt(article)}\n\n"
        f"TRUSTED SOURCES FOR VERIFICATION: {trusted}"
    )
