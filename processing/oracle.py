"""Language-model oracle used for classification, summaries and fact-checks."""

import asyncio
import logging
import os
from typing import Any, Dict, Optional, Sequence

from openai import AsyncOpenAI

from core.models import ProcessedArticle, RawArticle
from core.utils import extract_json_object
from processing.prompts import (
    CLASSIFY_INSTRUCTIONS,
    FACT_CHECK_INSTRUCTIONS,
    SUMMARY_INSTRUCTIONS,
    format_article_for_prompt,
    format_batch_for_prompt,
    format_fact_check_prompt,
)

log = logging.getLogger("vigie.oracle")

DEFAULT_MODEL = "gpt-4o-mini"


class OracleError(Exception):
    """The oracle could not be reached or did not answer with usable JSON."""


class OpenAIOracle:
    """Chat-completions client answering the three oracle questions as JSON.

    Every method either returns the parsed JSON object or raises OracleError;
    callers decide on the fallback. ``timeout`` (seconds) bounds each call.
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = DEFAULT_MODEL,
                 timeout: Optional[float] = None):
        self.client = client or AsyncOpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        self.model = model
        self.timeout = timeout if timeout and timeout > 0 else None

    async def _ask_json(self, instructions: str, content: str, max_tokens: int) -> Dict[str, Any]:
        try:
            call = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": content},
                ],
                max_tokens=max_tokens,
                response_format={"type": "json_object"},
            )
            if self.timeout is not None:
                response = await asyncio.wait_for(call, timeout=self.timeout)
            else:
                response = await call
        except asyncio.TimeoutError as e:
            raise OracleError(f"pas de reponse apres {self.timeout}s") from e
        except Exception as e:
            raise OracleError(str(e)) from e

        try:
            text = response.choices[0].message.content or ""
        except (AttributeError, IndexError) as e:
            raise OracleError("reponse vide") from e

        data = extract_json_object(text)
        if data is None:
            raise OracleError(f"reponse non JSON: {text[:120]!r}")
        return data

    async def classify(self, batch: Sequence[RawArticle]) -> Dict[str, Any]:
        return await self._ask_json(CLASSIFY_INSTRUCTIONS, format_batch_for_prompt(batch), max_tokens=1000)

    async def summarize(self, article: ProcessedArticle) -> Dict[str, Any]:
        return await self._ask_json(SUMMARY_INSTRUCTIONS, format_article_for_prompt(article), max_tokens=500)

    async def fact_check(self, article: ProcessedArticle, trusted_sources: Sequence[str]) -> Dict[str, Any]:
        return await self._ask_json(
            FACT_CHECK_INSTRUCTIONS,
            format_fact_check_prompt(article, trusted_sources),
            max_tokens=800,
        )
