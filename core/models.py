from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional, Tuple

SOURCE_KINDS: Tuple[str, ...] = ("feed", "site", "channel")
ENTITY_KINDS: Tuple[str, ...] = ("person", "organization", "location", "event")
VERDICTS: Tuple[str, ...] = ("verified", "unverified", "disputed", "false")
CATEGORIES: Tuple[str, ...] = (
    "technology",
    "politics",
    "business",
    "sports",
    "entertainment",
    "science",
    "health",
    "world",
    "other",
)


@dataclass(frozen=True)
class RawArticle:
    id: str
    source: str
    source_kind: str  # feed | site | channel
    title: str
    content: str
    published_at: datetime  # UTC si possible
    url: Optional[str] = None
    author: Optional[str] = None
    image_url: Optional[str] = None


@dataclass(frozen=True)
class Entity:
    kind: str
    name: str
    mentions: int = 1


@dataclass(frozen=True)
class ProcessedArticle:
    article: RawArticle
    language: str
    category: str
    entities: List[Entity]
    content_hash: str

    @property
    def id(self) -> str:
        return self.article.id

    @property
    def title(self) -> str:
        return self.article.title

    @property
    def content(self) -> str:
        return self.article.content

    @property
    def source(self) -> str:
        return self.article.source

    @property
    def url(self) -> Optional[str]:
        return self.article.url


@dataclass(frozen=True)
class ArticleSummary:
    article_id: str
    headline: str
    synopsis: str
    key_points: List[str]
    importance: int  # 1-10


@dataclass(frozen=True)
class FactCheck:
    claim: str
    verdict: str
    confidence: float  # 0-1
    explanation: str
    sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class AnalyzedArticle:
    processed: ProcessedArticle
    summary: ArticleSummary
    fact_checks: List[FactCheck]

    @property
    def category(self) -> str:
        return self.processed.category

    @property
    def importance(self) -> int:
        return self.summary.importance


@dataclass(frozen=True)
class DigestArticle:
    headline: str
    synopsis: str
    status: str  # verified | warning | none
    note: Optional[str] = None
    sources: List[str] = field(default_factory=list)
    url: Optional[str] = None


@dataclass(frozen=True)
class DigestSection:
    category: str
    emoji: str
    articles: List[DigestArticle]


@dataclass(frozen=True)
class DigestStats:
    total_articles: int
    fact_checks_performed: int
    categories_covered: int


@dataclass(frozen=True)
class DailyDigest:
    date: date
    sections: List[DigestSection]
    stats: DigestStats
