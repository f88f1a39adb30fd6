from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any

from app.features.knowledge.models import ContentType, KnowledgeSource


# =========================================================================
# KNOWLEDGE MODELS
# =========================================================================

class AddKnowledgeRequest(BaseModel):
    content: Optional[str] = None
    content_type: ContentType = ContentType.FACT
    source: KnowledgeSource = KnowledgeSource.USER
    creator_id: Optional[str] = None  # No auth layer here; callers pass their user id
    project_id: Optional[str] = None


class KnowledgeItemResponse(BaseModel):
    id: str
    meeting_id: str
    content: str
    content_type: ContentType
    source: KnowledgeSource
    keywords: Optional[List[str]] = None
    summary: Optional[str] = None
    has_embedding: bool = False
    created_at: Optional[str] = None


class KnowledgeListResponse(BaseModel):
    success: bool = True
    data: List[KnowledgeItemResponse]


class KnowledgeCreatedResponse(BaseModel):
    success: bool = True
    data: KnowledgeItemResponse


class SearchRequest(BaseModel):
    """Search request for meeting knowledge."""
    query: str = Field(..., min_length=1, description="Search query text")
    meeting_id: Optional[str] = Field(None, description="Restrict to one meeting")
    limit: int = Field(10, ge=1, le=50, description="Max results to return")
    threshold: float = Field(0.7, ge=0.0, le=1.0, description="Minimum similarity score")


class SearchResultResponse(BaseModel):
    id: str
    meeting_id: str
    content: str
    content_type: ContentType
    source: KnowledgeSource
    similarity: Optional[float] = None
    keyword_match: Optional[bool] = None
    created_at: Optional[str] = None


class SearchResponse(BaseModel):
    query: str
    results: List[SearchResultResponse]
    total: int


class ContextRequest(BaseModel):
    """Request for formatted context (for LLM prompts)."""
    query: str = Field(..., min_length=1, description="The user's question")
    meeting_id: Optional[str] = None
    max_tokens: int = Field(2000, ge=1, le=16000)


class ContextResponse(BaseModel):
    query: str
    context: str
    token_estimate: int


class SimilarResponse(BaseModel):
    item_id: str
    results: List[SearchResultResponse]


# =========================================================================
# AI TOOL MODELS
# =========================================================================

class AIToolRequest(BaseModel):
    toolName: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None


class AIToolResponse(BaseModel):
    success: bool
    message: str
    result: Dict[str, Any]


class AIToolsListResponse(BaseModel):
    meeting_id: str
    tools: List[Dict[str, Any]]
