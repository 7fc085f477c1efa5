"""
Tests for the tool layer and the model-invocation capability.

Covers date resolution, tool tables, the tool invoker, stream assembly and
the OpenAI request converters.
"""

import json
from datetime import date

import pytest

from travelgraph.shared.errors import ParseError, ToolNotFoundError
from travelgraph.shared.llm.base import RAW_ARGUMENTS_KEY, ModelChunk, ToolCallDelta, collect_stream
from travelgraph.shared.llm.client import OpenAIChatModel, to_openai_messages, to_openai_tool_choice
from travelgraph.shared.llm.mock import ScriptedChatModel, tool_call_response
from travelgraph.shared.logging.debug_logger import calculate_cost
from travelgraph.shared.messages.turns import assistant_turn, tool_result, user_turn
from travelgraph.shared.tools import (
    RESOLVE_DATE_TOOL,
    FunctionToolInvoker,
    ToolKind,
    ToolTable,
    default_tool_invoker,
    resolve_date,
    safe_call,
)
from travelgraph.shared.tools.dates import resolve_date_text
from travelgraph.orchestration.tools import CREATE_SUBTASKS_TOOL, default_orchestrator_tools


# Wednesday
TODAY = date(2025, 10, 1)


# ============================================================================
# TestResolveDate
# ============================================================================


class TestResolveDate:
    """Tests for natural language date resolution."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("today", date(2025, 10, 1)),
            ("Tomorrow", date(2025, 10, 2)),
            ("the day after tomorrow", date(2025, 10, 3)),
            ("明天", date(2025, 10, 2)),
            ("大后天", date(2025, 10, 4)),
            ("in 3 days", date(2025, 10, 4)),
            ("in 2 weeks", date(2025, 10, 15)),
            ("friday", date(2025, 10, 3)),
            ("this wednesday", date(2025, 10, 1)),
            ("next monday", date(2025, 10, 6)),
            ("next friday", date(2025, 10, 10)),
            ("2025-12-24", date(2025, 12, 24)),
            ("2025/12/24", date(2025, 12, 24)),
            ("December 24, 2025", date(2025, 12, 24)),
            ("10月5日", date(2025, 10, 5)),
            ("3月1号", date(2026, 3, 1)),
            ("2027年1月2日", date(2027, 1, 2)),
        ],
    )
    def test_resolves_phrases(self, text, expected):
        assert resolve_date_text(text, today=TODAY) == expected

    def test_unrecognized_phrase_raises(self):
        with pytest.raises(ValueError, match="Unrecognized date"):
            resolve_date_text("sometime soon", today=TODAY)

    def test_tool_returns_json(self):
        assert json.loads(resolve_date("2025-10-01")) == {"date": "2025-10-01"}


# ============================================================================
# TestToolTables
# ============================================================================


class TestToolTables:
    """Tests for tool specs and lookup tables."""

    def test_orchestrator_table_kinds(self):
        tools = default_orchestrator_tools()

        assert [spec.kind for spec in tools] == [ToolKind.DECOMPOSITION, ToolKind.INTERACTION, ToolKind.DOMAIN]
        assert "resolve_date" in tools
        assert tools.lookup("book_hotel") is None

    def test_duplicate_registration_rejected(self):
        with pytest.raises(ValueError):
            ToolTable([RESOLVE_DATE_TOOL, RESOLVE_DATE_TOOL])

    def test_openai_schema(self):
        schema = CREATE_SUBTASKS_TOOL.to_openai_schema()

        assert schema["type"] == "function"
        assert schema["function"]["name"] == "create_subtasks"
        assert "subtasks" in schema["function"]["parameters"]["properties"]

    def test_parse_args_validates(self):
        assert RESOLVE_DATE_TOOL.parse_args({"date": "today"}).date == "today"

        with pytest.raises(ParseError):
            RESOLVE_DATE_TOOL.parse_args({})


# ============================================================================
# TestToolInvoker
# ============================================================================


class TestToolInvoker:
    """Tests for the function tool invoker."""

    def test_default_invoker_provides_resolve_date(self):
        invoker = default_tool_invoker()

        assert invoker.provides("resolve_date")
        assert json.loads(invoker.call("resolve_date", {"date": "2025-01-01"})) == {"date": "2025-01-01"}

    def test_unknown_tool_raises(self):
        with pytest.raises(ToolNotFoundError):
            FunctionToolInvoker().call("missing", {})

    def test_non_string_results_serialized(self):
        invoker = FunctionToolInvoker({"trains": lambda city: [{"to": city, "price": 120}]})

        assert json.loads(invoker.call("trains", {"city": "Beijing"})) == [{"to": "Beijing", "price": 120}]

    def test_safe_call_turns_failure_into_text(self):
        def broken():
            raise RuntimeError("timeout")

        content, error = safe_call(FunctionToolInvoker({"broken": broken}), "broken", {})

        assert content == "Error: timeout"
        assert isinstance(error, RuntimeError)

    def test_safe_call_success(self):
        content, error = safe_call(FunctionToolInvoker({"ping": lambda: "pong"}), "ping", {})

        assert (content, error) == ("pong", None)


# ============================================================================
# TestStreamAssembly
# ============================================================================


class TestStreamAssembly:
    """Tests for assembling streamed chunks into one response."""

    def test_fragments_reassembled(self):
        chunks = [
            ModelChunk(text="Let me "),
            ModelChunk(text="check."),
            ModelChunk(tool_calls=[ToolCallDelta(index=0, id="c1", name="resolve_date", arguments='{"da')]),
            ModelChunk(tool_calls=[ToolCallDelta(index=0, arguments='te": "tomorrow"}')]),
            ModelChunk(usage={"prompt_tokens": 10, "completion_tokens": 5}),
        ]

        response = collect_stream(chunks)

        assert response.text == "Let me check."
        assert response.tool_calls[0].id == "c1"
        assert response.tool_calls[0].args == {"date": "tomorrow"}
        assert response.usage["prompt_tokens"] == 10

    def test_interleaved_calls_keep_index_order(self):
        chunks = [
            ModelChunk(tool_calls=[ToolCallDelta(index=1, id="b", name="second", arguments="{}")]),
            ModelChunk(tool_calls=[ToolCallDelta(index=0, id="a", name="first", arguments="{}")]),
        ]

        assert [call.name for call in collect_stream(chunks).tool_calls] == ["first", "second"]

    def test_undecodable_arguments_preserved(self):
        chunks = [ModelChunk(tool_calls=[ToolCallDelta(index=0, id="c1", name="x", arguments="{broken")])]

        assert collect_stream(chunks).tool_calls[0].args == {RAW_ARGUMENTS_KEY: "{broken"}

    def test_stream_matches_invoke(self):
        """Streaming the same scripted reply assembles to the single-shot response."""
        reply = tool_call_response("create_subtasks", {"subtasks": [{"type": "food"}]}, text="Splitting now", call_id="c7")
        single = ScriptedChatModel([reply]).invoke([user_turn("hi")])
        streamed = collect_stream(ScriptedChatModel([reply]).stream([user_turn("hi")]))

        assert streamed.text == single.text
        assert [(call.id, call.name, call.args) for call in streamed.tool_calls] == [
            (call.id, call.name, call.args) for call in single.tool_calls
        ]


# ============================================================================
# TestOpenAIAdapter
# ============================================================================


class TestOpenAIAdapter:
    """Tests for the OpenAI request conversion (no network)."""

    def test_converts_turns(self):
        messages = [
            user_turn("hi"),
            assistant_turn(tool_calls=[{"id": "c1", "name": "resolve_date", "args": {"date": "today"}}]),
            tool_result("c1", '{"date": "2025-10-01"}', "resolve_date"),
        ]

        converted = to_openai_messages(messages, system="be brief")

        assert converted[0] == {"role": "system", "content": "be brief"}
        assert converted[1] == {"role": "user", "content": "hi"}
        assert converted[2]["content"] is None
        assert converted[2]["tool_calls"][0]["function"] == {"name": "resolve_date", "arguments": '{"date": "today"}'}
        assert converted[3] == {"role": "tool", "tool_call_id": "c1", "content": '{"date": "2025-10-01"}'}

    def test_tool_choice_forms(self):
        assert to_openai_tool_choice(None) is None
        assert to_openai_tool_choice("none") == "none"
        assert to_openai_tool_choice("record_trip_details") == {
            "type": "function",
            "function": {"name": "record_trip_details"},
        }

    def test_request_built_without_credentials(self):
        model = OpenAIChatModel(model="gpt-4.1-mini", timeout=30)

        request = model._request([user_turn("hi")], [RESOLVE_DATE_TOOL], "sys", "resolve_date")

        assert request["model"] == "gpt-4.1-mini"
        assert request["tools"][0]["function"]["name"] == "resolve_date"
        assert request["tool_choice"]["function"]["name"] == "resolve_date"

    def test_each_model_owns_its_client(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        first = OpenAIChatModel()
        second = OpenAIChatModel()

        assert first.client is first.client
        assert first.client is not second.client

    def test_injected_client_used(self):
        client = object()

        assert OpenAIChatModel(client=client).client is client

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            OpenAIChatModel().client

    def test_calculate_cost(self):
        assert calculate_cost("gpt-4.1-mini", 1_000_000, 1_000_000) == pytest.approx(2.0)
        assert calculate_cost("unknown-model", 1000, 1000) == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
