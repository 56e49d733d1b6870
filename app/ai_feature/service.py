"""Summarization adapter.

The generative model is treated as an untrusted, fallible black box: every
call returns a SummaryResult, either a success carrying the raw payload
(text or already-parsed JSON) or a failure carrying a readable message.
Validation of the payload happens in one place, the summary workflow.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import openai

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SummaryResult:
    ok: bool
    payload: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, payload: Any) -> "SummaryResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error: str) -> "SummaryResult":
        return cls(ok=False, error=error)


class Summarizer(Protocol):
    async def summarize(self, system_prompt: str, prompt: str) -> SummaryResult: ...


class OpenAISummarizer:
    """Chat completion in JSON mode with a hard timeout."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        self.timeout = timeout or settings.SUMMARY_TIMEOUT_SECONDS
        self.client = (
            openai.AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
            if self.api_key
            else None
        )

    async def summarize(self, system_prompt: str, prompt: str) -> SummaryResult:
        if self.client is None:
            return SummaryResult.failure("Summarization service is not configured")

        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": prompt},
                    ],
                    response_format={"type": "json_object"},
                    temperature=0.2,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Summarization timed out after {self.timeout}s")
            return SummaryResult.failure(
                f"Summarization timed out after {self.timeout:g} seconds"
            )
        except openai.OpenAIError as error:
            logger.error(f"Summarization request failed: {error}")
            return SummaryResult.failure(str(error) or type(error).__name__)

        if not response.choices:
            return SummaryResult.failure("Summarization returned no choices")

        return SummaryResult.success(response.choices[0].message.content)


_summarizer: Optional[OpenAISummarizer] = None


# FastAPI dependency, tests swap it through app.dependency_overrides
def get_summarizer() -> Summarizer:
    global _summarizer

    if _summarizer is None:
        _summarizer = OpenAISummarizer()

    return _summarizer
