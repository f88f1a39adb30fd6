"""
Meeting knowledge API endpoints.

These endpoints expose the knowledge system for:
1. Meeting clients that capture and list knowledge
2. Voice/chat agents that search, build context and call AI tools
"""

from fastapi import APIRouter, Depends, Query, Request
import logging

from app.api.dependencies import get_knowledge
from app.api.models import (
    AddKnowledgeRequest,
    AIToolRequest,
    AIToolResponse,
    AIToolsListResponse,
    ContextRequest,
    ContextResponse,
    KnowledgeCreatedResponse,
    KnowledgeItemResponse,
    KnowledgeListResponse,
    SearchRequest,
    SearchResponse,
    SearchResultResponse,
    SimilarResponse,
)
from app.features.knowledge.models import KnowledgeItem, SearchResult
from app.features.knowledge.retriever import estimate_tokens
from app.features.knowledge.service import KnowledgeService
from app.features.tools import MEETING_TOOLS, MeetingToolsService, ToolCall
from app.shared.errors import (
    StoreQueryError,
    database_error,
    get_correlation_id,
    not_found_error,
    validation_error,
)

logger = logging.getLogger("Converse.API.Knowledge")
router = APIRouter(tags=["knowledge"])


def _item_response(item: KnowledgeItem) -> KnowledgeItemResponse:
    return KnowledgeItemResponse(
        id=item.id,
        meeting_id=item.meeting_id,
        content=item.content,
        content_type=item.content_type,
        source=item.source,
        keywords=item.keywords,
        summary=item.summary,
        has_embedding=item.has_embedding,
        created_at=item.created_at.isoformat() if item.created_at else None,
    )


def _result_response(result: SearchResult) -> SearchResultResponse:
    return SearchResultResponse(
        id=result.id,
        meeting_id=result.meeting_id,
        content=result.content,
        content_type=result.content_type,
        source=result.source,
        similarity=result.similarity,
        keyword_match=result.keyword_match,
        created_at=result.created_at.isoformat() if result.created_at else None,
    )


# ===================== Meeting knowledge =====================

@router.get("/meetings/{meeting_id}/knowledge", response_model=KnowledgeListResponse)
async def list_meeting_knowledge(
    meeting_id: str,
    request: Request,
    knowledge: KnowledgeService = Depends(get_knowledge),
):
    """All knowledge captured for a meeting, oldest first."""
    try:
        items = await knowledge.list_items(meeting_id)
    except StoreQueryError as e:
        logger.error(f"Error fetching meeting knowledge: {e}")
        return database_error(
            "Failed to fetch meeting knowledge",
            operation=e.operation,
            correlation_id=get_correlation_id(request),
        )

    return KnowledgeListResponse(data=[_item_response(item) for item in items])


@router.post(
    "/meetings/{meeting_id}/knowledge",
    response_model=KnowledgeCreatedResponse,
    status_code=201,
)
async def add_meeting_knowledge(
    meeting_id: str,
    body: AddKnowledgeRequest,
    request: Request,
    knowledge: KnowledgeService = Depends(get_knowledge),
):
    """
    Add knowledge to a meeting.

    The item is stored without an embedding; the enrichment scheduler
    embeds it on its next run.
    """
    if not body.content or not body.content.strip():
        return validation_error(
            "Content is required", correlation_id=get_correlation_id(request)
        )

    try:
        item = await knowledge.add_item(
            meeting_id,
            body.content,
            content_type=body.content_type,
            source=body.source,
            creator_id=body.creator_id,
            project_id=body.project_id,
        )
    except StoreQueryError as e:
        logger.error(f"Error adding meeting knowledge: {e}")
        return database_error(
            "Failed to add meeting knowledge",
            operation=e.operation,
            correlation_id=get_correlation_id(request),
        )

    return KnowledgeCreatedResponse(data=_item_response(item))


# ===================== Search & context =====================

@router.post("/knowledge/search", response_model=SearchResponse)
async def search_knowledge(
    body: SearchRequest,
    knowledge: KnowledgeService = Depends(get_knowledge),
):
    """
    Hybrid search over meeting knowledge.

    **For AI agents**: Use this to find context before responding.
    """
    results = await knowledge.retriever.semantic_search(
        body.query, body.meeting_id, limit=body.limit, threshold=body.threshold
    )
    return SearchResponse(
        query=body.query,
        results=[_result_response(r) for r in results],
        total=len(results),
    )


@router.post("/knowledge/context", response_model=ContextResponse)
async def get_knowledge_context(
    body: ContextRequest,
    knowledge: KnowledgeService = Depends(get_knowledge),
):
    """
    Formatted context for LLM prompt injection, within ``max_tokens``.

    **For AI agents**: Use this when you need context for a response.
    """
    context = await knowledge.retriever.build_ai_context(
        body.query, body.meeting_id, body.max_tokens
    )
    return ContextResponse(
        query=body.query,
        context=context,
        token_estimate=estimate_tokens(context),
    )


@router.get("/knowledge/{item_id}/similar", response_model=SimilarResponse)
async def get_similar_knowledge(
    item_id: str,
    request: Request,
    limit: int = Query(5, ge=1, le=50),
    knowledge: KnowledgeService = Depends(get_knowledge),
):
    """
    Knowledge similar to an already-embedded item, across all meetings.

    An unknown item is a 404; a known item without an embedding yet has no
    similar items.
    """
    try:
        item = await knowledge.get_item(item_id)
    except StoreQueryError as e:
        logger.error(f"Error fetching knowledge item {item_id}: {e}")
        return database_error(
            "Failed to fetch knowledge item",
            operation=e.operation,
            correlation_id=get_correlation_id(request),
        )

    if item is None:
        return not_found_error(
            f"Knowledge item {item_id} not found",
            resource_type="knowledge_item",
            resource_id=item_id,
            correlation_id=get_correlation_id(request),
        )

    results = await knowledge.retriever.find_similar(item_id, limit=limit)
    return SimilarResponse(item_id=item_id, results=[_result_response(r) for r in results])


# ===================== AI tools =====================

@router.get("/meetings/{meeting_id}/ai-tools", response_model=AIToolsListResponse)
async def list_ai_tools(meeting_id: str):
    """Tool schemas for agent registration."""
    return AIToolsListResponse(meeting_id=meeting_id, tools=MEETING_TOOLS)


@router.post("/meetings/{meeting_id}/ai-tools", response_model=AIToolResponse)
async def execute_ai_tool(
    meeting_id: str,
    body: AIToolRequest,
    request: Request,
    knowledge: KnowledgeService = Depends(get_knowledge),
):
    """
    Execute one AI tool for a meeting.

    Tool failures are reported inside ``result`` (``success: false``) so the
    agent can narrate them; only a missing ``toolName`` is an HTTP error.
    """
    if not body.toolName:
        return validation_error(
            "toolName parameter is required", correlation_id=get_correlation_id(request)
        )

    tools = MeetingToolsService(meeting_id, knowledge.retriever)
    result = await tools.execute_tool(
        ToolCall(name=body.toolName, parameters=body.parameters or {})
    )

    logger.info(
        f"AI tool {body.toolName} for meeting {meeting_id}: success={result.success}"
    )
    return AIToolResponse(
        success=True,
        message=f'AI tool "{body.toolName}" executed successfully',
        result=result.model_dump(),
    )
