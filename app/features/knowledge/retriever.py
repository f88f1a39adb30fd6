"""
Retrieval service - hybrid search and context assembly over meeting knowledge.

This is the "read" side of RAG - called by the AI tools mid-conversation.

Search degrades in one step: vector + keyword search via the store's
``hybrid_search`` RPC, or, when no query embedding is available or the
RPC fails, plain full-text search. If that fails too the result is empty.
"""

import logging
import math
from typing import List, Optional

from app.core.logging_utils import preview
from app.features.knowledge.models import SearchResult
from app.shared.errors import ProviderUnavailableError, StoreQueryError
from app.shared.fallback import with_fallback

logger = logging.getLogger("Converse.Knowledge.Retriever")

DEFAULT_SEARCH_LIMIT = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.7
SIMILAR_ITEMS_THRESHOLD = 0.6
CONTEXT_SEARCH_LIMIT = 15
DEFAULT_CONTEXT_TOKENS = 2000

CONTEXT_HEADER = 'Meeting Context for: "{query}"\n\n'
NO_KNOWLEDGE_CONTEXT = 'Meeting Context: No relevant knowledge found for "{query}"'
CONTEXT_ERROR = 'Meeting Context: Error retrieving context for "{query}"'


def estimate_tokens(text: str) -> int:
    """Rough estimation: ~4 characters per token."""
    return math.ceil(len(text) / 4)


def format_context_line(result: SearchResult) -> str:
    return f"[{result.content_type.value.upper()}] {result.content}\n"


class KnowledgeRetriever:
    """
    Semantic search, similar-item lookup and token-budgeted context.

    Usage:
        retriever = KnowledgeRetriever(store, provider)
        results = await retriever.semantic_search("budget cap", scope_id=meeting_id)
        context = await retriever.build_ai_context("what did we decide?", meeting_id)

    None of the public methods raise; failures become empty results.
    """

    def __init__(self, store, provider):
        self.store = store
        self.provider = provider
        self._search = with_fallback(
            self._vector_search, self._text_search_fallback,
            name="semantic_search", catch=(ProviderUnavailableError, StoreQueryError),
        )

    # ==================== SEARCH ====================

    async def semantic_search(
        self,
        query: str,
        scope_id: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
        threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ) -> List[SearchResult]:
        """
        Hybrid search, falling back to text search.

        Args:
            query: Natural language query
            scope_id: Meeting to restrict to (None searches everything visible)
            limit: Max results
            threshold: Minimum similarity (0-1) for non-keyword matches

        Returns:
            Ranked results; text-search results carry no similarity
        """
        logger.debug(
            f"semantic_search query='{preview(query)}' scope={scope_id} "
            f"limit={limit} threshold={threshold}"
        )
        try:
            results = await self._search(query, scope_id, limit, threshold)
        except Exception as e:
            logger.error(f"Semantic search failed unexpectedly: {e}", exc_info=True)
            return []

        logger.debug(f"semantic_search returned {len(results)} results")
        return results

    async def _vector_search(
        self,
        query: str,
        scope_id: Optional[str],
        limit: int,
        threshold: float,
    ) -> List[SearchResult]:
        embedding = await self.provider.embed(query)
        if not embedding:
            raise ProviderUnavailableError("embedding", "no embedding for query")
        return await self.store.hybrid_search(embedding, query, scope_id, threshold, limit)

    async def _text_search_fallback(
        self,
        query: str,
        scope_id: Optional[str],
        limit: int,
        threshold: float,
    ) -> List[SearchResult]:
        return await self.text_search(query, scope_id, limit)

    async def text_search(
        self,
        query: str,
        scope_id: Optional[str] = None,
        limit: int = DEFAULT_SEARCH_LIMIT,
    ) -> List[SearchResult]:
        """Full-text search on content, most recent first."""
        try:
            return await self.store.text_search(query, scope_id, limit)
        except StoreQueryError as e:
            logger.error(f"Text search failed: {e}")
            return []

    async def find_similar(self, item_id: str, limit: int = 5) -> List[SearchResult]:
        """
        Items similar to an existing, already-embedded item, across all meetings.

        Items without an embedding yield [] (there is no query text to fall
        back on).
        """
        try:
            source_item = await self.store.fetch_by_id(item_id)
        except StoreQueryError as e:
            logger.error(f"Could not load source item {item_id}: {e}")
            return []

        if source_item is None or not source_item.has_embedding:
            logger.info(f"Item {item_id} missing or not embedded yet; no similar items")
            return []

        try:
            results = await self.store.hybrid_search(
                source_item.embedding,
                source_item.content,
                None,
                SIMILAR_ITEMS_THRESHOLD,
                limit + 1,  # +1 so dropping the source item still leaves `limit`
            )
        except StoreQueryError as e:
            logger.error(f"Similar knowledge search failed: {e}")
            return []

        return [r for r in results if r.id != item_id][:limit]

    # ==================== CONTEXT ====================

    async def build_ai_context(
        self,
        query: str,
        scope_id: Optional[str] = None,
        max_tokens: int = DEFAULT_CONTEXT_TOKENS,
    ) -> str:
        """
        Format ranked knowledge for LLM consumption within a token budget.

        Lines are ``[TYPE] content`` in ranking order; assembly stops at the
        first item that would exceed ``max_tokens``. Returns the
        NO_KNOWLEDGE_CONTEXT sentinel when nothing matches.
        """
        try:
            results = await self.semantic_search(query, scope_id, limit=CONTEXT_SEARCH_LIMIT)
            if not results:
                return NO_KNOWLEDGE_CONTEXT.format(query=query)

            context = CONTEXT_HEADER.format(query=query)
            token_count = estimate_tokens(context)
            if token_count > max_tokens:
                context, token_count = "", 0

            for result in results:
                line = format_context_line(result)
                line_tokens = estimate_tokens(line)
                if token_count + line_tokens > max_tokens:
                    break
                context += line
                token_count += line_tokens

            return context
        except Exception as e:
            logger.error(f"Error building AI context: {e}", exc_info=True)
            return CONTEXT_ERROR.format(query=query)
