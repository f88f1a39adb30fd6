import pytest

from app.features.knowledge.models import ContentType
from app.features.knowledge.retriever import KnowledgeRetriever
from app.features.tools import (
    MEETING_TOOLS,
    TOOL_NAMES,
    MeetingToolsService,
    ToolCall,
    ToolResult,
    execute_tool,
)
from app.features.tools.schemas import (
    FindSimilarDiscussionsParams,
    GetActionItemsParams,
    RecallDecisionsParams,
    SearchMeetingKnowledgeParams,
    SummarizeTopicParams,
    parse_tool_parameters,
)
from app.shared.errors import ToolInvocationError

from conftest import FakeProvider, FakeStore, make_result


def _service(store, meeting_id="meeting-1"):
    return MeetingToolsService(meeting_id, KnowledgeRetriever(store, FakeProvider()))


# ==================== PARAMETERS ====================

def test_registry_matches_executors():
    assert [tool["name"] for tool in MEETING_TOOLS] == list(TOOL_NAMES)


PARAMETER_MODELS = {
    "search_meeting_knowledge": SearchMeetingKnowledgeParams,
    "recall_decisions": RecallDecisionsParams,
    "get_action_items": GetActionItemsParams,
    "summarize_topic": SummarizeTopicParams,
    "find_similar_discussions": FindSimilarDiscussionsParams,
}


@pytest.mark.parametrize("tool", MEETING_TOOLS, ids=lambda tool: tool["name"])
def test_advertised_schema_matches_model(tool):
    advertised = tool["parameters"]
    model_schema = PARAMETER_MODELS[tool["name"]].model_json_schema()
    model_properties = {k: v for k, v in model_schema["properties"].items() if k != "tool"}

    assert set(advertised["properties"]) == set(model_properties)
    assert sorted(advertised["required"]) == sorted(model_schema.get("required", []))
    for name, field in advertised["properties"].items():
        expected = model_properties[name]
        if "default" in field:
            assert field["default"] == expected["default"]
        for bound in ("type", "minimum", "maximum"):
            if bound in expected:
                assert field[bound] == expected[bound], f"{name}.{bound}"


def test_parse_applies_defaults():
    params = parse_tool_parameters(ToolCall(name="get_action_items", parameters={}))
    assert isinstance(params, GetActionItemsParams)
    assert params.status == "all"
    assert params.assignee is None


def test_parse_ignores_smuggled_tool_tag():
    params = parse_tool_parameters(ToolCall(
        name="get_action_items",
        parameters={"tool": "recall_decisions", "assignee": "Dana"},
    ))
    assert isinstance(params, GetActionItemsParams)
    assert params.assignee == "Dana"


def test_parse_rejects_bad_enum():
    with pytest.raises(ToolInvocationError) as exc_info:
        parse_tool_parameters(ToolCall(
            name="find_similar_discussions",
            parameters={"reference_text": "budget", "scope": "everywhere"},
        ))
    assert "scope" in str(exc_info.value)


# ==================== DISPATCH ====================

@pytest.mark.asyncio
async def test_unknown_tool_is_a_failed_result():
    result = await _service(FakeStore()).execute_tool(ToolCall(name="delete_everything"))

    assert result == ToolResult(success=False, error="Unknown tool: delete_everything")


@pytest.mark.parametrize("name, parameters", [
    ("search_meeting_knowledge", {"query": ""}),
    ("recall_decisions", {"topic": ""}),
    ("get_action_items", {"assignee": ""}),
    ("summarize_topic", {"topic": ""}),
    ("find_similar_discussions", {"reference_text": ""}),
    ("recall_decisions", {}),
    ("search_meeting_knowledge", {"query": "budget", "limit": "many"}),
])
@pytest.mark.asyncio
async def test_empty_parameters_never_raise(name, parameters):
    store = FakeStore()
    store.fail_hybrid = True
    store.fail_text = True

    result = await _service(store).execute_tool(ToolCall(name=name, parameters=parameters))

    assert isinstance(result, ToolResult)
    if not result.success:
        assert result.error


@pytest.mark.asyncio
async def test_executor_crash_becomes_failed_result():
    class BrokenRetriever:
        async def semantic_search(self, *args, **kwargs):
            raise RuntimeError("retriever exploded")

    result = await execute_tool(
        BrokenRetriever(), "meeting-1", ToolCall(name="recall_decisions", parameters={"topic": "x"})
    )

    assert result.success is False
    assert "retriever exploded" in result.error


# ==================== TOOLS ====================

@pytest.mark.asyncio
async def test_recall_decisions_keeps_only_decisions():
    store = FakeStore(hybrid_results=[
        make_result("We decided to cap the budget at $50k", content_type=ContentType.SUMMARY),
        make_result("Lunch options near the office", similarity=0.55),
    ])

    result = await _service(store).execute_tool(
        ToolCall(name="recall_decisions", parameters={"topic": "budget"})
    )

    assert result.success
    decisions = result.data["decisions"]
    assert len(decisions) == 1
    assert "budget" in decisions[0]["content"]
    assert store.hybrid_calls[0]["query_text"] == "decision about budget"
    assert store.hybrid_calls[0]["threshold"] == 0.5
    assert store.hybrid_calls[0]["limit"] == 10


@pytest.mark.asyncio
async def test_summarize_topic_with_no_matches():
    result = await _service(FakeStore()).execute_tool(
        ToolCall(name="summarize_topic", parameters={"topic": "unicorns"})
    )

    assert result.success
    assert result.data["summary"] == 'No discussions found about "unicorns" in this meeting.'
    assert result.data["include_context"] is True
    assert result.data["related_items"] == []


@pytest.mark.asyncio
async def test_summarize_topic_breakdown():
    rows = [make_result(f"fact {i}") for i in range(4)] + [
        make_result("summary", content_type=ContentType.SUMMARY),
        make_result("question?", content_type=ContentType.QUESTION),
    ]

    result = await _service(FakeStore(hybrid_results=rows)).execute_tool(
        ToolCall(name="summarize_topic", parameters={"topic": "roadmap", "include_context": False})
    )

    data = result.data
    assert data["summary"] == 'Found 6 items related to "roadmap"'
    assert data["include_context"] is False
    assert data["content_breakdown"] == {
        "facts": 4, "context": 0, "summaries": 1, "questions": 1, "answers": 0,
    }
    assert data["key_points"] == ["fact 0", "fact 1", "fact 2", "fact 3", "summary"]
    assert len(data["related_items"]) == 6


@pytest.mark.asyncio
async def test_search_meeting_knowledge_filters_by_type():
    rows = [
        make_result("Budget approved", content_type=ContentType.SUMMARY),
        make_result("Is the budget final?", content_type=ContentType.QUESTION),
    ]
    store = FakeStore(hybrid_results=rows)

    result = await _service(store).execute_tool(ToolCall(
        name="search_meeting_knowledge",
        parameters={"query": "budget", "content_type": "question", "limit": 3},
    ))

    assert result.data["total_found"] == 1
    assert result.data["results"][0]["type"] == "question"
    assert result.data["results"][0]["created_at"].startswith("2026-10-01")
    assert store.hybrid_calls[0]["threshold"] == 0.6
    assert store.hybrid_calls[0]["limit"] == 3


@pytest.mark.asyncio
async def test_get_action_items_query_and_filter():
    store = FakeStore(hybrid_results=[
        make_result("Dana owns the task of drafting the contract"),
        make_result("Nice weather today"),
    ])

    result = await _service(store).execute_tool(ToolCall(
        name="get_action_items", parameters={"assignee": "Dana", "status": "pending"},
    ))

    assert store.hybrid_calls[0]["query_text"] == "action item task Dana"
    assert store.hybrid_calls[0]["threshold"] == 0.4
    assert result.data["status"] == "pending"
    assert [item["content"] for item in result.data["action_items"]] == [
        "Dana owns the task of drafting the contract"
    ]


@pytest.mark.asyncio
async def test_get_action_items_default_query():
    store = FakeStore()
    await _service(store).execute_tool(ToolCall(name="get_action_items"))
    assert store.hybrid_calls[0]["query_text"] == "action item task todo assignment"


@pytest.mark.asyncio
async def test_find_similar_discussions_scope():
    store = FakeStore(hybrid_results=[make_result("Budget talk", meeting_id="meeting-2")])
    service = _service(store)

    await service.execute_tool(ToolCall(
        name="find_similar_discussions", parameters={"reference_text": "budget"},
    ))
    result = await service.execute_tool(ToolCall(
        name="find_similar_discussions",
        parameters={"reference_text": "budget", "scope": "all_meetings"},
    ))

    assert store.hybrid_calls[0]["scope_id"] == "meeting-1"
    assert store.hybrid_calls[1]["scope_id"] is None
    assert result.data["similar_discussions"][0]["meeting_id"] == "meeting-2"


# ==================== CONVERSATION CONTEXT ====================

@pytest.mark.asyncio
async def test_conversation_context_lists_tools():
    store = FakeStore(hybrid_results=[make_result("Ship on Friday")])

    context = await _service(store).build_conversation_context("when do we ship?")

    assert context.startswith('Meeting Context for: "when do we ship?"')
    assert "Available Tools:" in context
    for tool in MEETING_TOOLS:
        assert f"- {tool['name']}: {tool['description']}" in context


@pytest.mark.parametrize("limit, success", [(1, True), (50, True), (0, False), (60, False), (2.5, False)])
@pytest.mark.asyncio
async def test_search_limit_follows_advertised_bounds(limit, success):
    store = FakeStore(hybrid_results=[make_result("Budget approved")])

    result = await _service(store).execute_tool(ToolCall(
        name="search_meeting_knowledge", parameters={"query": "budget", "limit": limit},
    ))

    assert result.success is success
    if not success:
        assert "limit" in result.error
        assert store.hybrid_calls == []
