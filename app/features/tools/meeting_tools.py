"""
Meeting knowledge tools for the conversational agent.

Each tool composes the retriever for one question shape: free search,
decision recall, action items, topic summaries and similar discussions.
Thresholds differ per tool on purpose: recall-style tools search loosely
and post-filter on wording, free search stays precise.
"""

from typing import Any, Dict, List, Optional

from app.features.knowledge.models import ContentType, SearchResult
from app.features.tools.schemas import (
    SEARCH_LIMIT_MAX,
    SEARCH_LIMIT_MIN,
    FindSimilarDiscussionsParams,
    GetActionItemsParams,
    RecallDecisionsParams,
    SearchMeetingKnowledgeParams,
    SummarizeTopicParams,
)


# =============================================================================
# TOOL DEFINITIONS
# =============================================================================

MEETING_TOOLS = [
    {
        "name": "search_meeting_knowledge",
        "description": "Search through meeting knowledge and context using semantic search",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query or question about meeting content"
                },
                "content_type": {
                    "type": "string",
                    "enum": [t.value for t in ContentType],
                    "description": "Filter by specific content type (optional)"
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return (1-50, default: 5)",
                    "minimum": SEARCH_LIMIT_MIN,
                    "maximum": SEARCH_LIMIT_MAX,
                    "default": 5
                }
            },
            "required": ["query"]
        }
    },
    {
        "name": "recall_decisions",
        "description": "Recall specific decisions made in meetings",
        "parameters": {
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "description": "The topic or subject of the decision to recall"
                }
            },
            "required": ["topic"]
        }
    },
    {
        "name": "get_action_items",
        "description": "Retrieve action items and tasks from meeting discussions",
        "parameters": {
            "type": "object",
            "properties": {
                "assignee": {
                    "type": "string",
                    "description": "Filter by person assigned (optional)"
                },
                "status": {
                    "type": "string",
                    "enum": ["pending", "completed", "all"],
                    "description": "Filter by completion status (default: all)",
                    "default": "all"
                }
            },
            "required": []
        }
    },
    {
        "name": "summarize_topic",
        "description": "Generate a summary of discussions on a specific topic",
        "parameters": {
            "type": "object",
            "properties": {
                "topic": {
                    "type": "string",
                    "description": "The topic to summarize"
                },
                "include_context": {
                    "type": "boolean",
                    "description": "Include background context in summary (default: true)",
                    "default": True
                }
            },
            "required": ["topic"]
        }
    },
    {
        "name": "find_similar_discussions",
        "description": "Find similar discussions or topics from meeting history",
        "parameters": {
            "type": "object",
            "properties": {
                "reference_text": {
                    "type": "string",
                    "description": "Text or topic to find similar discussions for"
                },
                "scope": {
                    "type": "string",
                    "enum": ["current_meeting", "all_meetings"],
                    "description": "Search scope (default: current_meeting)",
                    "default": "current_meeting"
                }
            },
            "required": ["reference_text"]
        }
    },
]


# =============================================================================
# TOOL IMPLEMENTATIONS
# =============================================================================

DECISION_MARKERS = ("decision", "decided", "agreed")
ACTION_MARKERS = ("action", "task", "todo", "assignment", "responsible", "deadline")

SEARCH_THRESHOLD = 0.6
DECISION_THRESHOLD = 0.5
DECISION_LIMIT = 10
ACTION_THRESHOLD = 0.4
ACTION_LIMIT = 15
TOPIC_THRESHOLD = 0.3
TOPIC_LIMIT = 20
KEY_POINT_COUNT = 5
SIMILAR_THRESHOLD = 0.6
SIMILAR_LIMIT = 10

NO_DISCUSSIONS_FOUND = 'No discussions found about "{topic}" in this meeting.'


def _timestamp(result: SearchResult) -> Optional[str]:
    return result.created_at.isoformat() if result.created_at else None


def _mentions_any(text: str, markers) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


async def _search_meeting_knowledge(
    retriever, meeting_id: str, params: SearchMeetingKnowledgeParams
) -> Dict[str, Any]:
    results = await retriever.semantic_search(
        params.query, meeting_id, limit=params.limit, threshold=SEARCH_THRESHOLD
    )

    if params.content_type:
        results = [r for r in results if r.content_type == params.content_type]

    return {
        "query": params.query,
        "results": [
            {
                "content": r.content,
                "type": r.content_type.value,
                "source": r.source.value,
                "similarity": r.similarity,
                "created_at": _timestamp(r),
            }
            for r in results[:params.limit]
        ],
        "total_found": len(results),
    }


async def _recall_decisions(
    retriever, meeting_id: str, params: RecallDecisionsParams
) -> Dict[str, Any]:
    results = await retriever.semantic_search(
        f"decision about {params.topic}", meeting_id,
        limit=DECISION_LIMIT, threshold=DECISION_THRESHOLD,
    )

    decisions = [
        r for r in results
        if r.content_type == ContentType.SUMMARY or _mentions_any(r.content, DECISION_MARKERS)
    ]

    return {
        "topic": params.topic,
        "decisions": [
            {"content": d.content, "created_at": _timestamp(d), "similarity": d.similarity}
            for d in decisions
        ],
    }


async def _get_action_items(
    retriever, meeting_id: str, params: GetActionItemsParams
) -> Dict[str, Any]:
    query = (
        f"action item task {params.assignee}"
        if params.assignee
        else "action item task todo assignment"
    )
    results = await retriever.semantic_search(
        query, meeting_id, limit=ACTION_LIMIT, threshold=ACTION_THRESHOLD
    )

    action_items = [r for r in results if _mentions_any(r.content, ACTION_MARKERS)]

    return {
        "assignee": params.assignee or None,
        "status": params.status,
        "action_items": [
            {"content": item.content, "created_at": _timestamp(item), "similarity": item.similarity}
            for item in action_items
        ],
    }


def _content_breakdown(results: List[SearchResult]) -> Dict[str, int]:
    def count(content_type: ContentType) -> int:
        return sum(1 for r in results if r.content_type == content_type)

    return {
        "facts": count(ContentType.FACT),
        "context": count(ContentType.CONTEXT),
        "summaries": count(ContentType.SUMMARY),
        "questions": count(ContentType.QUESTION),
        "answers": count(ContentType.ANSWER),
    }


async def _summarize_topic(
    retriever, meeting_id: str, params: SummarizeTopicParams
) -> Dict[str, Any]:
    results = await retriever.semantic_search(
        params.topic, meeting_id, limit=TOPIC_LIMIT, threshold=TOPIC_THRESHOLD
    )

    # Nothing found is an answer, not an error
    if not results:
        return {
            "topic": params.topic,
            "summary": NO_DISCUSSIONS_FOUND.format(topic=params.topic),
            "include_context": params.include_context,
            "related_items": [],
        }

    return {
        "topic": params.topic,
        "summary": f'Found {len(results)} items related to "{params.topic}"',
        "include_context": params.include_context,
        "content_breakdown": _content_breakdown(results),
        "key_points": [r.content for r in results[:KEY_POINT_COUNT]],
        "related_items": [
            {"content": r.content, "type": r.content_type.value, "similarity": r.similarity}
            for r in results
        ],
    }


async def _find_similar_discussions(
    retriever, meeting_id: str, params: FindSimilarDiscussionsParams
) -> Dict[str, Any]:
    # Free text, not an item id, so this is a search rather than find_similar()
    scope_id = meeting_id if params.scope == "current_meeting" else None
    results = await retriever.semantic_search(
        params.reference_text, scope_id, limit=SIMILAR_LIMIT, threshold=SIMILAR_THRESHOLD
    )

    return {
        "reference_text": params.reference_text,
        "scope": params.scope,
        "similar_discussions": [
            {
                "content": r.content,
                "type": r.content_type.value,
                "meeting_id": r.meeting_id,
                "similarity": r.similarity,
                "created_at": _timestamp(r),
            }
            for r in results
        ],
    }


TOOL_EXECUTORS = {
    "search_meeting_knowledge": _search_meeting_knowledge,
    "recall_decisions": _recall_decisions,
    "get_action_items": _get_action_items,
    "summarize_topic": _summarize_topic,
    "find_similar_discussions": _find_similar_discussions,
}
