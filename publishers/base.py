from abc import ABC, abstractmethod
from typing import Dict, Any

from core.models import DailyDigest

NO_ARTICLES_NOTICE = "📭 No news articles found for today's digest."


class Publisher(ABC):
    name: str

    @abstractmethod
    async def publish_digest(self, digest: DailyDigest, cfg: Dict[str, Any]) -> bool:
        ...

    @abstractmethod
    async def publish_notice(self, text: str, cfg: Dict[str, Any]) -> bool:
        ...

    async def close(self) -> None:
        pass
