"""
Enrichment provider - embeddings, keywords and summaries for knowledge items.

Remote calls go to OpenAI (embeddings) and Claude (keywords, summaries).
Every operation has a local fallback, so a missing key or a provider
outage degrades enrichment instead of failing it:

    embed       -> empty vector ("no embedding available")
    keywords    -> stop-word heuristic, first 5 unique terms
    summarize   -> content truncated to 100 characters
"""

import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from app.core.config import settings
from app.core.logging_utils import log_ai_call
from app.features.knowledge.models import (
    EMBEDDING_DIMENSIONS,
    MAX_KEYWORDS,
    Enrichment,
    KnowledgeItem,
)
from app.shared.errors import EnrichmentItemError, ProviderUnavailableError, StoreQueryError
from app.shared.fallback import with_fallback

logger = logging.getLogger("Converse.Knowledge.Enrichment")

STOP_WORDS = frozenset({
    "this", "that", "with", "have", "will", "been", "from", "they", "them",
    "were", "said", "each", "which", "their", "time", "would", "there",
    "could", "other",
})

HEURISTIC_KEYWORD_COUNT = 5
SUMMARY_MAX_CHARS = 100
SUMMARY_MAX_WORDS = 50
EMBEDDING_INPUT_MAX_CHARS = 8000

KEYWORDS_PROMPT = (
    "Extract 5-7 relevant keywords from this text. "
    "Return only the keywords separated by commas, no explanations:\n\n{text}"
)
SUMMARY_PROMPT = "Summarize this text in one concise sentence (max 50 words):\n\n{text}"


def heuristic_keywords(text: str) -> List[str]:
    """Lower-case, split on non-word characters, keep long non-stop-words, dedupe."""
    seen = []
    for token in re.split(r"\W+", text.lower()):
        if len(token) <= 3 or token in STOP_WORDS or token in seen:
            continue
        seen.append(token)
        if len(seen) == HEURISTIC_KEYWORD_COUNT:
            break
    return seen


def truncate_summary(text: str) -> str:
    if len(text) > SUMMARY_MAX_CHARS:
        return text[:SUMMARY_MAX_CHARS - 3] + "..."
    return text


def parse_keyword_list(raw: str) -> List[str]:
    keywords = []
    for part in raw.split(","):
        keyword = part.strip().strip(".").lower()
        if keyword and keyword not in keywords:
            keywords.append(keyword)
    return keywords[:MAX_KEYWORDS]


class EnrichmentProvider:
    """
    Client for the embedding/completion providers with local fallbacks.

    Usage:
        provider = EnrichmentProvider()
        vector = await provider.embed("We agreed to ship on Friday")
        enrichment = await provider.enrich(item)

    The client factories are injectable for tests; by default they return
    the shared OpenAI / Claude singletons and raise ValueError when the
    corresponding API key is missing.
    """

    def __init__(
        self,
        openai_client_factory: Optional[Callable] = None,
        completion_client_factory: Optional[Callable] = None,
        embedding_model: Optional[str] = None,
    ):
        if openai_client_factory is None:
            from app.services.openai_client import get_openai_client
            openai_client_factory = get_openai_client
        if completion_client_factory is None:
            from app.services.llm import get_completion_client
            completion_client_factory = get_completion_client

        self._openai_client_factory = openai_client_factory
        self._completion_client_factory = completion_client_factory
        self.embedding_model = embedding_model or settings.EMBEDDING_MODEL

        self.embed = with_fallback(
            self._embed_remote, self._no_embedding,
            name="embed", catch=(ProviderUnavailableError,),
        )
        self.extract_keywords = with_fallback(
            self._keywords_remote, self._keywords_local,
            name="extract_keywords", catch=(ProviderUnavailableError,),
        )
        self.summarize = with_fallback(
            self._summary_remote, self._summary_local,
            name="summarize", catch=(ProviderUnavailableError,),
        )

    # ==================== REMOTE PATHS ====================

    async def _embed_remote(self, text: str) -> List[float]:
        try:
            client = self._openai_client_factory()
        except ValueError as e:
            raise ProviderUnavailableError("openai", str(e)) from e

        started = time.perf_counter()
        try:
            response = await client.embeddings.create(
                model=self.embedding_model,
                input=text[:EMBEDDING_INPUT_MAX_CHARS],
                encoding_format="float",
            )
            embedding = list(response.data[0].embedding)
        except Exception as e:
            raise ProviderUnavailableError("openai", f"embedding request failed: {e}") from e

        usage = getattr(response, "usage", None)
        log_ai_call(
            logger,
            provider="openai",
            model=self.embedding_model,
            operation="embedding",
            input_tokens=getattr(usage, "prompt_tokens", None),
            duration_ms=(time.perf_counter() - started) * 1000,
        )

        if len(embedding) != EMBEDDING_DIMENSIONS:
            raise ProviderUnavailableError(
                "openai", f"expected {EMBEDDING_DIMENSIONS} dimensions, got {len(embedding)}"
            )
        return embedding

    async def _complete(self, prompt: str, max_tokens: int, operation: str) -> str:
        try:
            client = self._completion_client_factory()
        except ValueError as e:
            raise ProviderUnavailableError("anthropic", str(e)) from e

        try:
            text = await client.complete(prompt, max_tokens=max_tokens, operation=operation)
        except Exception as e:
            raise ProviderUnavailableError("anthropic", f"{operation} request failed: {e}") from e

        if not text:
            raise ProviderUnavailableError("anthropic", f"{operation} returned no text")
        return text

    async def _keywords_remote(self, text: str) -> List[str]:
        raw = await self._complete(KEYWORDS_PROMPT.format(text=text), 100, "keywords")
        keywords = parse_keyword_list(raw)
        if not keywords:
            raise ProviderUnavailableError("anthropic", "keywords response had no terms")
        return keywords

    async def _summary_remote(self, text: str) -> str:
        summary = await self._complete(SUMMARY_PROMPT.format(text=text), 60, "summary")
        words = summary.split()
        if len(words) > SUMMARY_MAX_WORDS:
            summary = " ".join(words[:SUMMARY_MAX_WORDS])
        return summary

    # ==================== LOCAL FALLBACKS ====================

    async def _no_embedding(self, text: str) -> List[float]:
        return []

    async def _keywords_local(self, text: str) -> List[str]:
        return heuristic_keywords(text)

    async def _summary_local(self, text: str) -> str:
        return truncate_summary(text)

    # ==================== ENRICHMENT ====================

    async def enrich(self, item: KnowledgeItem) -> Enrichment:
        """Run the three independent derivations concurrently; partial results are kept."""
        embedding, keywords, summary = await asyncio.gather(
            self.embed(item.content),
            self.extract_keywords(item.content),
            self.summarize(item.content),
        )
        return Enrichment(embedding=embedding, keywords=keywords, summary=summary)

    async def process_item(self, store, item: KnowledgeItem) -> Enrichment:
        """
        Enrich one item and persist the result.

        Raises:
            EnrichmentItemError: If the derived fields could not be stored
        """
        logger.info(f"Processing knowledge item: {item.id}")
        if item.keywords and item.summary:
            # Retried item: only the embedding is still missing
            enrichment = Enrichment(
                embedding=await self.embed(item.content),
                keywords=item.keywords,
                summary=item.summary,
            )
        else:
            enrichment = await self.enrich(item)

        if not enrichment.embedding:
            logger.warning(f"No embedding for item {item.id}; it stays eligible for enrichment")

        try:
            await store.update_enrichment(item.id, enrichment, updated_at=datetime.now(timezone.utc))
        except StoreQueryError as e:
            raise EnrichmentItemError(item.id, str(e)) from e

        logger.info(
            f"Processed knowledge item {item.id}: "
            f"embedding={'yes' if enrichment.embedding else 'no'}, keywords={len(enrichment.keywords)}"
        )
        return enrichment
