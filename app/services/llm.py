"""Claude completions used for knowledge enrichment (keywords and summaries)."""

from __future__ import annotations

import logging
import re
import time
from functools import lru_cache
from typing import Optional

from anthropic import AsyncAnthropic

from app.core.config import settings
from app.core.logging_utils import log_ai_call

logger = logging.getLogger("Converse.LLM")


def is_anthropic_configured() -> bool:
    return bool(settings.ANTHROPIC_API_KEY)


class ClaudeCompletionClient:
    """Thin async wrapper over the Anthropic messages API for short completions."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None) -> None:
        key = api_key or settings.ANTHROPIC_API_KEY
        if not key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")
        self.client = AsyncAnthropic(api_key=key)
        self.model = model or settings.CLAUDE_MODEL
        logger.info("Claude completion client initialized with model: %s", self.model)

    async def complete(
        self,
        prompt: str,
        max_tokens: int = 100,
        temperature: float = 0.3,
        operation: str = "completion",
    ) -> str:
        """Send the prompt to Claude and return the stripped text output."""

        started = time.perf_counter()
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=[{"role": "user", "content": prompt}],
        )

        usage = getattr(response, "usage", None)
        log_ai_call(
            logger,
            provider="anthropic",
            model=self.model,
            operation=operation,
            input_tokens=getattr(usage, "input_tokens", None),
            output_tokens=getattr(usage, "output_tokens", None),
            duration_ms=(time.perf_counter() - started) * 1000,
        )

        if not response.content:
            raise ValueError(f"Model {self.model} returned empty content")

        block = response.content[0]
        result_text = block.text if hasattr(block, "text") else str(block)
        result_text = result_text.strip()

        if result_text.startswith("```"):
            result_text = re.sub(r"^```\w*\n?", "", result_text)
            result_text = re.sub(r"\n?```$", "", result_text)

        return result_text.strip()


@lru_cache(maxsize=1)
def get_completion_client() -> ClaudeCompletionClient:
    """
    Get the singleton Claude completion client.

    Raises:
        ValueError: If ANTHROPIC_API_KEY is not set
    """
    return ClaudeCompletionClient()
