"""
Knowledge Service - Main interface for meeting knowledge.

Wires the store, the enrichment provider, the retriever and the background
scheduler together. Routes, tools and scripts should go through this
rather than building the pieces themselves.
"""

import logging
from typing import Any, Dict, List, Optional

from app.core.database import is_supabase_configured
from app.features.knowledge.enrichment import EnrichmentProvider
from app.features.knowledge.models import ContentType, KnowledgeItem, KnowledgeSource
from app.features.knowledge.retriever import KnowledgeRetriever
from app.features.knowledge.scheduler import EnrichmentScheduler
from app.features.knowledge.store import KnowledgeStore
from app.services.llm import is_anthropic_configured
from app.services.openai_client import is_openai_configured

logger = logging.getLogger("Converse.Knowledge.Service")

# Singleton instance
_knowledge_service = None


class KnowledgeService:
    """
    Unified knowledge service.

    Usage:
        knowledge = get_knowledge_service()

        item = await knowledge.add_item(meeting_id, "We agreed to cap the budget at 50k")
        results = await knowledge.retriever.semantic_search("budget", meeting_id)
        context = await knowledge.retriever.build_ai_context("what did we decide?", meeting_id)
    """

    def __init__(
        self,
        store: Optional[KnowledgeStore] = None,
        provider: Optional[EnrichmentProvider] = None,
        scheduler: Optional[EnrichmentScheduler] = None,
    ):
        self.store = store or KnowledgeStore()
        self.provider = provider or EnrichmentProvider()
        self.retriever = KnowledgeRetriever(self.store, self.provider)
        self.scheduler = scheduler or EnrichmentScheduler(self.store, self.provider)

    # ==================== ITEMS ====================

    async def add_item(
        self,
        meeting_id: str,
        content: str,
        content_type: ContentType = ContentType.FACT,
        source: KnowledgeSource = KnowledgeSource.USER,
        creator_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> KnowledgeItem:
        """
        Store new knowledge. It is searchable by text at once and by
        similarity once the scheduler has embedded it.

        Raises:
            StoreQueryError: The insert failed
        """
        return await self.store.add_item(
            meeting_id, content, content_type, source, creator_id, project_id
        )

    async def list_items(self, meeting_id: str) -> List[KnowledgeItem]:
        """Items of a meeting, oldest first. Raises StoreQueryError."""
        return await self.store.list_for_meeting(meeting_id)

    async def get_item(self, item_id: str) -> Optional[KnowledgeItem]:
        """One item by id, or None. Raises StoreQueryError."""
        return await self.store.fetch_by_id(item_id)

    # ==================== STATS & HEALTH ====================

    def health_check(self) -> Dict[str, Any]:
        """Configuration and scheduler status. Never touches the network."""
        return {
            "supabase_configured": is_supabase_configured(),
            "openai_configured": is_openai_configured(),
            "anthropic_configured": is_anthropic_configured(),
            "scheduler": {
                "running": self.scheduler.is_running,
                "state": self.scheduler.state.value,
            },
        }


def get_knowledge_service() -> KnowledgeService:
    """Get the singleton knowledge service instance."""
    global _knowledge_service

    if _knowledge_service is None:
        _knowledge_service = KnowledgeService()

    return _knowledge_service


# For scripts and tests that need their own wiring
def create_knowledge_service(
    store: Optional[KnowledgeStore] = None,
    provider: Optional[EnrichmentProvider] = None,
) -> KnowledgeService:
    """Create a new knowledge service instance (for isolation)."""
    return KnowledgeService(store=store, provider=provider)
