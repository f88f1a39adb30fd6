"""
Meeting AI Tools Package.

The tools a voice/chat agent calls mid-conversation to query meeting
knowledge. Every call returns a ToolResult; nothing here raises to the
agent, so a failed lookup can be narrated instead of breaking the turn.

Usage:
    from app.features.tools import create_meeting_tools_service, ToolCall

    tools = create_meeting_tools_service(meeting_id)
    result = await tools.execute_tool(ToolCall(name="recall_decisions",
                                               parameters={"topic": "budget"}))

Modules:
    - schemas: ToolCall / ToolResult envelopes and per-tool parameter models
    - meeting_tools: tool definitions and executors
"""

import logging
import time
from typing import Any, Dict, List, Optional

from app.core.logging_utils import sanitize_for_logging
from app.core.tracing import get_tracer
from app.features.knowledge.retriever import CONTEXT_ERROR
from app.features.tools.meeting_tools import MEETING_TOOLS, TOOL_EXECUTORS
from app.features.tools.schemas import (
    TOOL_NAMES,
    ToolCall,
    ToolResult,
    parse_tool_parameters,
)
from app.shared.errors import ToolInvocationError

logger = logging.getLogger("Converse.Tools")
tracer = get_tracer(__name__)

CONVERSATION_CONTEXT_TOKENS = 1500

TOOL_USAGE_INSTRUCTIONS = (
    "You can use these tools to search and retrieve specific information from the "
    "meeting knowledge base. When users ask questions about the meeting, use the "
    "appropriate tools to provide accurate, contextual responses."
)


async def execute_tool(retriever, meeting_id: str, call: ToolCall) -> ToolResult:
    """Execute a tool call against one meeting's knowledge.

    Args:
        retriever: KnowledgeRetriever used by the executors
        meeting_id: Meeting the call is scoped to
        call: Tool name and raw parameters from the agent

    Returns:
        ToolResult. Unknown tools, invalid parameters and retrieval
        failures all come back as success=False.
    """
    start = time.time()
    with tracer.start_as_current_span(f"tool.{call.name}") as span:
        span.set_attribute("meeting_id", meeting_id)
        logger.info(
            f"Executing tool {call.name} for meeting {meeting_id}",
            extra={"tool": call.name, "params": sanitize_for_logging(call.parameters)},
        )

        try:
            params = parse_tool_parameters(call)
            data = await TOOL_EXECUTORS[call.name](retriever, meeting_id, params)
        except ToolInvocationError as e:
            logger.warning(f"Rejected tool call {call.name}: {e}")
            span.set_attribute("success", False)
            return ToolResult.fail(str(e))
        except Exception as e:
            logger.error(f"Tool {call.name} failed: {e}", exc_info=True)
            span.set_attribute("success", False)
            return ToolResult.fail(str(e) or type(e).__name__)

        span.set_attribute("success", True)
        logger.info(f"Tool {call.name} completed in {int((time.time() - start) * 1000)}ms")
        return ToolResult.ok(data)


class MeetingToolsService:
    """AI tools bound to one meeting."""

    def __init__(self, meeting_id: str, retriever):
        self.meeting_id = meeting_id
        self.retriever = retriever

    def get_available_tools(self) -> List[Dict[str, Any]]:
        return MEETING_TOOLS

    async def execute_tool(self, call: ToolCall) -> ToolResult:
        return await execute_tool(self.retriever, self.meeting_id, call)

    async def build_conversation_context(self, message: str) -> str:
        """Knowledge context for a user message plus the tool list for the agent."""
        try:
            context = await self.retriever.build_ai_context(
                message, self.meeting_id, CONVERSATION_CONTEXT_TOKENS
            )
            tools_info = "\n".join(
                f"- {tool['name']}: {tool['description']}" for tool in self.get_available_tools()
            )
            return f"{context}\n\nAvailable Tools:\n{tools_info}\n\n{TOOL_USAGE_INSTRUCTIONS}"
        except Exception as e:
            logger.error(f"Error building conversation context: {e}", exc_info=True)
            return CONTEXT_ERROR.format(query=message)


def create_meeting_tools_service(meeting_id: str, retriever: Optional[Any] = None) -> MeetingToolsService:
    """Tools service for a meeting, on the shared retriever unless one is given."""
    if retriever is None:
        from app.features.knowledge.service import get_knowledge_service
        retriever = get_knowledge_service().retriever
    return MeetingToolsService(meeting_id, retriever)


__all__ = [
    "MEETING_TOOLS",
    "TOOL_NAMES",
    "ToolCall",
    "ToolResult",
    "execute_tool",
    "MeetingToolsService",
    "create_meeting_tools_service",
]
