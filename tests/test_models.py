import pytest
from pydantic import ValidationError

from app.features.knowledge.models import (
    EMBEDDING_DIMENSIONS,
    ContentType,
    Enrichment,
    KnowledgeItem,
    SearchResult,
    parse_embedding,
)


def test_parse_embedding_accepts_pgvector_text():
    assert parse_embedding("[0.5,1,-2]") == [0.5, 1.0, -2.0]
    assert parse_embedding(None) is None


def test_knowledge_item_rejects_wrong_dimension():
    with pytest.raises(ValidationError):
        KnowledgeItem(id="1", meeting_id="m", content="x", embedding=[0.1, 0.2])


def test_knowledge_item_accepts_full_vector_from_text():
    text = "[" + ",".join(["0.25"] * EMBEDDING_DIMENSIONS) + "]"
    item = KnowledgeItem(id="1", meeting_id="m", content="x", embedding=text)
    assert item.has_embedding
    assert len(item.embedding) == EMBEDDING_DIMENSIONS


def test_knowledge_item_normalizes_keywords():
    item = KnowledgeItem(
        id=1,
        meeting_id="m",
        content="x",
        keywords=["Budget", " Q3 ", "", "a", "b", "c", "d", "e", "f"],
    )
    assert item.id == "1"
    assert item.keywords == ["budget", "q3", "a", "b", "c", "d", "e"]
    assert not item.has_embedding


def test_search_result_maps_scope_id():
    result = SearchResult.from_row({
        "id": "abc",
        "scope_id": "meeting-9",
        "content": "Ship Friday",
        "content_type": "summary",
        "source": "ai",
        "created_at": "2026-10-01T09:00:00+00:00",
        "similarity": 0.82,
        "keyword_match": None,
    })
    assert result.meeting_id == "meeting-9"
    assert result.content_type == ContentType.SUMMARY
    assert result.similarity == pytest.approx(0.82)


def test_empty_enrichment_embedding_is_stored_as_none():
    assert Enrichment().embedding_or_none() is None
    assert Enrichment(embedding=[0.1]).embedding_or_none() == [0.1]
