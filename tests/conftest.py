"""
Shared fixtures for the knowledge service tests.

The fakes stand in for the Supabase-backed store and the OpenAI/Claude
provider, so no test touches the network.
"""
import itertools
from datetime import datetime, timedelta, timezone

import pytest

from app.features.knowledge.models import (
    EMBEDDING_DIMENSIONS,
    ContentType,
    Enrichment,
    KnowledgeItem,
    KnowledgeSource,
    SearchResult,
)
from app.shared.errors import StoreQueryError

BASE_TIME = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)

_result_ids = itertools.count(1)


def make_vector(value: float = 0.1):
    return [value] * EMBEDDING_DIMENSIONS


def make_result(
    content: str,
    content_type: ContentType = ContentType.FACT,
    similarity=0.9,
    meeting_id: str = "meeting-1",
    item_id: str = None,
    minutes: int = 0,
) -> SearchResult:
    return SearchResult(
        id=item_id or f"result-{next(_result_ids)}",
        meeting_id=meeting_id,
        content=content,
        content_type=content_type,
        source=KnowledgeSource.USER,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        similarity=similarity,
        keyword_match=False if similarity is not None else None,
    )


def make_item(
    item_id: str = "item-1",
    content: str = "We agreed to ship on Friday",
    embedding=None,
    meeting_id: str = "meeting-1",
) -> KnowledgeItem:
    return KnowledgeItem(
        id=item_id,
        meeting_id=meeting_id,
        content=content,
        embedding=embedding,
        created_at=BASE_TIME,
    )


class FakeStore:
    """In-memory knowledge store with call recording and failure switches."""

    def __init__(self, hybrid_results=None, text_results=None, items=None, pending=None):
        self.hybrid_results = list(hybrid_results or [])
        self.text_results = list(text_results or [])
        self.items = {item.id: item for item in (items or [])}
        self.pending = list(pending or [])

        self.hybrid_calls = []
        self.text_calls = []
        self.updates = []
        self.fetch_pending_calls = 0

        self.fail_hybrid = False
        self.fail_text = False
        self.fail_update = False
        self.fail_fetch_pending = False

    async def hybrid_search(self, embedding, query_text, scope_id, threshold, limit):
        self.hybrid_calls.append({
            "embedding": embedding,
            "query_text": query_text,
            "scope_id": scope_id,
            "threshold": threshold,
            "limit": limit,
        })
        if self.fail_hybrid:
            raise StoreQueryError("hybrid_search", "rpc failed")
        return self.hybrid_results[:limit]

    async def text_search(self, query_text, scope_id, limit):
        self.text_calls.append({"query_text": query_text, "scope_id": scope_id, "limit": limit})
        if self.fail_text:
            raise StoreQueryError("text_search", "query failed")
        return self.text_results[:limit]

    async def fetch_by_id(self, item_id):
        return self.items.get(item_id)

    async def update_enrichment(self, item_id, enrichment: Enrichment, updated_at=None):
        if self.fail_update:
            raise StoreQueryError("update_enrichment", "update failed")
        self.updates.append((item_id, enrichment, updated_at))

    async def items_needing_enrichment(self, batch_size):
        self.fetch_pending_calls += 1
        if self.fail_fetch_pending:
            raise StoreQueryError("items_needing_enrichment", "rpc failed")
        return self.pending[:batch_size]

    async def list_for_meeting(self, meeting_id):
        return [item for item in self.items.values() if item.meeting_id == meeting_id]

    async def add_item(self, meeting_id, content, content_type=ContentType.FACT,
                       source=KnowledgeSource.USER, creator_id=None, project_id=None):
        item = KnowledgeItem(
            id=f"item-{len(self.items) + 1}",
            meeting_id=meeting_id,
            content=content,
            content_type=content_type,
            source=source,
            creator_id=creator_id,
            project_id=project_id,
            created_at=BASE_TIME,
        )
        self.items[item.id] = item
        return item


class FakeProvider:
    """Enrichment provider returning a fixed vector (or none)."""

    def __init__(self, vector=None):
        self.vector = make_vector() if vector is None else vector
        self.embed_calls = []
        self.processed = []

    async def embed(self, text):
        self.embed_calls.append(text)
        return self.vector

    async def process_item(self, store, item):
        self.processed.append(item.id)
        enrichment = Enrichment(embedding=self.vector, keywords=["test"], summary=item.content)
        await store.update_enrichment(item.id, enrichment)
        return enrichment


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def fake_provider():
    return FakeProvider()
