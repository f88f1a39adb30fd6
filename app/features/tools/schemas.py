"""
Tool call envelopes and per-tool parameter models.

Parameters arrive as loose JSON from the voice/chat agent. They are
validated at the dispatch boundary into one model per tool, selected by
the ``tool`` tag, before any executor runs.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.features.knowledge.models import ContentType
from app.shared.errors import ToolInvocationError


class ToolCall(BaseModel):
    """One tool invocation requested by the agent."""
    name: str
    parameters: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Outcome of one tool invocation. Failures are values, never exceptions."""
    success: bool
    data: Optional[Any] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "ToolResult":
        return cls(success=False, error=error)


SEARCH_LIMIT_MIN = 1
SEARCH_LIMIT_MAX = 50


class _ToolParams(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class SearchMeetingKnowledgeParams(_ToolParams):
    tool: Literal["search_meeting_knowledge"] = "search_meeting_knowledge"
    query: str = Field(..., min_length=1)
    content_type: Optional[ContentType] = None
    limit: int = Field(5, ge=SEARCH_LIMIT_MIN, le=SEARCH_LIMIT_MAX)


class RecallDecisionsParams(_ToolParams):
    tool: Literal["recall_decisions"] = "recall_decisions"
    topic: str = Field(..., min_length=1)


class GetActionItemsParams(_ToolParams):
    tool: Literal["get_action_items"] = "get_action_items"
    assignee: Optional[str] = None
    status: Literal["pending", "completed", "all"] = "all"


class SummarizeTopicParams(_ToolParams):
    tool: Literal["summarize_topic"] = "summarize_topic"
    topic: str = Field(..., min_length=1)
    include_context: bool = True


class FindSimilarDiscussionsParams(_ToolParams):
    tool: Literal["find_similar_discussions"] = "find_similar_discussions"
    reference_text: str = Field(..., min_length=1)
    scope: Literal["current_meeting", "all_meetings"] = "current_meeting"


ToolParameters = Annotated[
    Union[
        SearchMeetingKnowledgeParams,
        RecallDecisionsParams,
        GetActionItemsParams,
        SummarizeTopicParams,
        FindSimilarDiscussionsParams,
    ],
    Field(discriminator="tool"),
]

_parameters_adapter = TypeAdapter(ToolParameters)

TOOL_NAMES = (
    "search_meeting_knowledge",
    "recall_decisions",
    "get_action_items",
    "summarize_topic",
    "find_similar_discussions",
)


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()) if part not in TOOL_NAMES)
        problems.append(f"{location}: {detail.get('msg')}" if location else str(detail.get("msg")))
    return "; ".join(problems)


def parse_tool_parameters(call: ToolCall):
    """
    Validate a call's parameters into its tool's model.

    Raises:
        ToolInvocationError: Unknown tool name or invalid parameters
    """
    if call.name not in TOOL_NAMES:
        raise ToolInvocationError(f"Unknown tool: {call.name}")

    if not isinstance(call.parameters, dict):
        raise ToolInvocationError(f"Invalid parameters for {call.name}: expected an object")

    payload = {**call.parameters, "tool": call.name}
    try:
        return _parameters_adapter.validate_python(payload)
    except ValidationError as e:
        raise ToolInvocationError(
            f"Invalid parameters for {call.name}: {_describe_validation_error(e)}"
        ) from e
