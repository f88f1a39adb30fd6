"""
Knowledge data model.

KnowledgeItem mirrors a ``meeting_knowledge`` row. SearchResult is the
ranked projection returned by retrieval and is never persisted.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

EMBEDDING_DIMENSIONS = 1536
MAX_KEYWORDS = 7


class ContentType(str, Enum):
    FACT = "fact"
    CONTEXT = "context"
    SUMMARY = "summary"
    QUESTION = "question"
    ANSWER = "answer"


class KnowledgeSource(str, Enum):
    USER = "user"
    AI = "ai"
    DOCUMENT = "document"


def parse_embedding(value: Any) -> Optional[List[float]]:
    """Accept a float list or pgvector's text form ``"[0.1,0.2,...]"``."""
    if value is None:
        return None
    if isinstance(value, str):
        value = json.loads(value)
    return [float(v) for v in value]


class KnowledgeItem(BaseModel):
    """A unit of captured meeting knowledge."""

    id: str
    meeting_id: str
    content: str
    content_type: ContentType = ContentType.FACT
    source: KnowledgeSource = KnowledgeSource.USER
    embedding: Optional[List[float]] = None
    keywords: Optional[List[str]] = None
    summary: Optional[str] = None
    relevance_score: float = 1.0
    creator_id: Optional[str] = None
    project_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id", "meeting_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @field_validator("embedding", mode="before")
    @classmethod
    def _validate_embedding(cls, value: Any) -> Optional[List[float]]:
        vector = parse_embedding(value)
        if vector is not None and len(vector) != EMBEDDING_DIMENSIONS:
            raise ValueError(
                f"embedding must have {EMBEDDING_DIMENSIONS} dimensions, got {len(vector)}"
            )
        return vector

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return [k.strip().lower() for k in value if k and k.strip()][:MAX_KEYWORDS]

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


class SearchResult(BaseModel):
    """
    A knowledge item ranked for a query.

    ``similarity`` is ``1 - cosine distance`` (higher is better).
    Text-search fallback rows carry ``None`` for both derived fields.
    """

    id: str
    meeting_id: str
    content: str
    content_type: ContentType = ContentType.FACT
    source: KnowledgeSource = KnowledgeSource.USER
    created_at: Optional[datetime] = None
    similarity: Optional[float] = None
    keyword_match: Optional[bool] = None

    @field_validator("id", "meeting_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        return str(value) if value is not None else value

    @classmethod
    def from_row(cls, row: dict) -> "SearchResult":
        """Build from a store row; the RPC names the meeting column ``scope_id``."""
        data = dict(row)
        if "meeting_id" not in data and "scope_id" in data:
            data["meeting_id"] = data.pop("scope_id")
        return cls.model_validate(data)


class Enrichment(BaseModel):
    """Derived fields for one knowledge item. Any part may be a fallback value."""

    embedding: List[float] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    summary: str = ""

    def embedding_or_none(self) -> Optional[List[float]]:
        return self.embedding if self.embedding else None
