"""
Knowledge store gateway - the only code that talks to ``meeting_knowledge``.

Ranking, thresholds and access scoping live in Postgres (pgvector +
pg_trgm, see migrations/001_meeting_knowledge.sql); this module only
issues the queries and maps rows. Every failure is raised as
StoreQueryError so callers can choose their fallback.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from app.features.knowledge.models import (
    ContentType,
    Enrichment,
    KnowledgeItem,
    KnowledgeSource,
    SearchResult,
)
from app.shared.errors import StoreQueryError

logger = logging.getLogger("Converse.Knowledge.Store")

KNOWLEDGE_TABLE = "meeting_knowledge"
SEARCH_COLUMNS = "id, meeting_id, content, content_type, source, created_at"
# Must match the to_tsvector config of the full-text index in the migration
TEXT_SEARCH_CONFIG = "english"


def _item_from_row(row: Dict[str, Any]) -> KnowledgeItem:
    data = dict(row)
    if "meeting_id" not in data and "scope_id" in data:
        data["meeting_id"] = data.pop("scope_id")
    return KnowledgeItem.model_validate(data)


class KnowledgeStore:
    """
    Gateway over the Supabase knowledge table and its RPC functions.

    Usage:
        store = KnowledgeStore()
        rows = await store.hybrid_search(vector, "budget", "meeting-1", 0.7, 10)
    """

    def __init__(self, client=None, client_factory: Optional[Callable[[], Awaitable[Any]]] = None):
        self._client = client
        self._client_factory = client_factory

    async def _get_client(self):
        if self._client is None:
            if self._client_factory is None:
                from app.core.database import get_supabase
                self._client_factory = get_supabase
            self._client = await self._client_factory()
        return self._client

    # ==================== SEARCH ====================

    async def hybrid_search(
        self,
        embedding: List[float],
        query_text: str,
        scope_id: Optional[str],
        threshold: float,
        limit: int,
    ) -> List[SearchResult]:
        """
        Ranked vector + trigram search (``hybrid_search`` RPC).

        Rows qualify when ``cosine distance < 1 - threshold`` or a keyword
        trigram-matches ``query_text``; ``similarity = 1 - distance``.
        """
        try:
            client = await self._get_client()
            result = await client.rpc("hybrid_search", {
                "query_embedding": embedding,
                "query_text": query_text,
                "target_scope_id": scope_id,
                "match_threshold": threshold,
                "match_count": limit,
            }).execute()
            rows = result.data or []
            return [SearchResult.from_row(row) for row in rows]
        except Exception as e:
            raise StoreQueryError("hybrid_search", str(e)) from e

    async def text_search(
        self,
        query_text: str,
        scope_id: Optional[str],
        limit: int,
    ) -> List[SearchResult]:
        """Full-text match on ``content``, most recent first. No similarity scores."""
        try:
            client = await self._get_client()
            query = client.table(KNOWLEDGE_TABLE).select(SEARCH_COLUMNS).text_search(
                "content", query_text, options={"type": "websearch", "config": TEXT_SEARCH_CONFIG}
            )
            if scope_id:
                query = query.eq("meeting_id", scope_id)
            result = await query.order("created_at", desc=True).limit(limit).execute()
            return [SearchResult.from_row(row) for row in (result.data or [])]
        except Exception as e:
            raise StoreQueryError("text_search", str(e)) from e

    # ==================== ITEMS ====================

    async def fetch_by_id(self, item_id: str) -> Optional[KnowledgeItem]:
        try:
            client = await self._get_client()
            result = await client.table(KNOWLEDGE_TABLE).select("*").eq("id", item_id).limit(1).execute()
            rows = result.data or []
            return _item_from_row(rows[0]) if rows else None
        except Exception as e:
            raise StoreQueryError("fetch_by_id", str(e)) from e

    async def update_enrichment(
        self,
        item_id: str,
        enrichment: Enrichment,
        updated_at: Optional[datetime] = None,
    ) -> None:
        """Persist derived fields only; content, type, source and meeting are never touched."""
        payload = {
            "embedding": enrichment.embedding_or_none(),
            "keywords": enrichment.keywords,
            "summary": enrichment.summary,
            "updated_at": (updated_at or datetime.now(timezone.utc)).isoformat(),
        }
        try:
            client = await self._get_client()
            await client.table(KNOWLEDGE_TABLE).update(payload).eq("id", item_id).execute()
        except Exception as e:
            raise StoreQueryError("update_enrichment", str(e)) from e

    async def items_needing_enrichment(self, batch_size: int) -> List[KnowledgeItem]:
        """Most recent items with no embedding (``get_knowledge_needing_embeddings`` RPC)."""
        try:
            client = await self._get_client()
            result = await client.rpc(
                "get_knowledge_needing_embeddings", {"batch_size": batch_size}
            ).execute()
            return [_item_from_row(row) for row in (result.data or [])]
        except Exception as e:
            raise StoreQueryError("items_needing_enrichment", str(e)) from e

    async def list_for_meeting(self, meeting_id: str) -> List[KnowledgeItem]:
        try:
            client = await self._get_client()
            result = await client.table(KNOWLEDGE_TABLE).select("*").eq(
                "meeting_id", meeting_id
            ).order("created_at", desc=False).execute()
            return [_item_from_row(row) for row in (result.data or [])]
        except Exception as e:
            raise StoreQueryError("list_for_meeting", str(e)) from e

    async def add_item(
        self,
        meeting_id: str,
        content: str,
        content_type: ContentType = ContentType.FACT,
        source: KnowledgeSource = KnowledgeSource.USER,
        creator_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> KnowledgeItem:
        """Insert an unenriched item; the scheduler picks it up on its next run."""
        now = datetime.now(timezone.utc).isoformat()
        payload = {
            "meeting_id": meeting_id,
            "content": content,
            "content_type": ContentType(content_type).value,
            "source": KnowledgeSource(source).value,
            "creator_id": creator_id,
            "project_id": project_id,
            "created_at": now,
            "updated_at": now,
        }
        try:
            client = await self._get_client()
            result = await client.table(KNOWLEDGE_TABLE).insert(payload).execute()
            rows = result.data or []
        except Exception as e:
            raise StoreQueryError("add_item", str(e)) from e

        if not rows:
            raise StoreQueryError("add_item", "insert returned no row")
        logger.info(f"Added knowledge item {rows[0].get('id')} to meeting {meeting_id}")
        return _item_from_row(rows[0])
