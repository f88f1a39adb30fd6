"""
Knowledge System - meeting knowledge retrieval for AI conversations.

This module provides:
1. Enrichment: embeddings, keywords and summaries, with local fallbacks
2. Storage: the meeting_knowledge table and its search RPCs
3. Retrieval: hybrid search, similar items and token-budgeted context
4. Scheduling: background embedding of new knowledge
"""

from app.features.knowledge.service import (
    KnowledgeService,
    get_knowledge_service,
    create_knowledge_service,
)
from app.features.knowledge.models import (
    ContentType,
    KnowledgeSource,
    KnowledgeItem,
    SearchResult,
    Enrichment,
)
from app.features.knowledge.enrichment import EnrichmentProvider
from app.features.knowledge.store import KnowledgeStore
from app.features.knowledge.retriever import KnowledgeRetriever
from app.features.knowledge.scheduler import (
    EnrichmentScheduler,
    EnrichmentRunReport,
    SchedulerState,
)

__all__ = [
    # Main service
    "KnowledgeService",
    "get_knowledge_service",
    "create_knowledge_service",
    # Data model
    "ContentType",
    "KnowledgeSource",
    "KnowledgeItem",
    "SearchResult",
    "Enrichment",
    # Components
    "EnrichmentProvider",
    "KnowledgeStore",
    "KnowledgeRetriever",
    "EnrichmentScheduler",
    "EnrichmentRunReport",
    "SchedulerState",
]
