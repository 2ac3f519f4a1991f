from abc import ABC, abstractmethod
from typing import List

import aiohttp

from core.models import RawArticle


class Collector(ABC):
    name: str
    kind: str  # feed | site | channel

    @abstractmethod
    async def collect(self, session: aiohttp.ClientSession) -> List[RawArticle]:
        ...


async def fetch_text(session: aiohttp.ClientSession, url: str) -> str:
    """GET a page and return its body; HTTP errors raise aiohttp.ClientResponseError."""
    async with session.get(url) as resp:
        resp.raise_for_status()
        return await resp.text()
