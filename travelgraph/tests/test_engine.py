"""
End-to-end tests for the orchestrator graph and the session engine.

Every run uses a scripted model, so the tests are deterministic and need no
network access.
"""

import json

import pytest

from travelgraph.graph.build import create_orchestrator_graph
from travelgraph.graph.config import EngineConfig
from travelgraph.graph.context import EngineContext
from travelgraph.graph.engine import SessionEngine, StageUpdate, Suspended
from travelgraph.graph.state import create_initial_state
from travelgraph.shared.errors import (
    ModelUnavailableError,
    SessionNotFoundError,
    SessionNotSuspendedError,
    SessionUnavailableError,
)
from travelgraph.shared.llm.mock import ScriptedChatModel, tool_call_response
from travelgraph.shared.messages.turns import user_turn


# ============================================================================
# Test Fixtures
# ============================================================================


def _make_engine(*script, **config_overrides):
    """Create an engine around a scripted model."""
    context = EngineContext(model=ScriptedChatModel(script), config=EngineConfig(**config_overrides))
    return SessionEngine(context)


def _ask_for(*fields):
    return tool_call_response("collect_user_info", {"reason": "missing trip details", "missing_fields": list(fields)})


def _record(**details):
    return tool_call_response("record_trip_details", details)


def _decompose(*types):
    return tool_call_response(
        "create_subtasks",
        {"subtasks": [{"type": task_type, "payload": {"destination": "Tokyo"}} for task_type in types]},
    )


def _make_full_trip_script():
    """Script for: ask -> answer all required fields -> decompose -> one specialist -> summary."""
    return [
        _ask_for("destination", "departure", "startDate"),
        _record(destination="Tokyo", departure="SF", startDate="2025-10-01"),
        _decompose("transportation"),
        "Take the direct SFO-HND flight.",
        "You are travelling from SF to Tokyo on 2025-10-01. Take the direct flight.",
    ]


# ============================================================================
# TestScenarios
# ============================================================================


class TestScenarios:
    """End-to-end behavior of the orchestrator graph."""

    def test_missing_destination_asks_user(self):
        """Empty memory + interaction request for destination -> question about the destination."""
        engine = _make_engine(_ask_for("destination"))

        updates = list(engine.stream_run("s-1", "Help me plan a trip"))
        result = engine.load("s-1")

        assert [update.stage_id for update in updates] == ["orchestrator", "ask_user"]
        assert updates[0].patch["stage"] == "ask_user"
        assert "destination" in updates[1].patch["messages"][0]["text"]
        assert result["missing_fields"] == ["destination"]
        assert engine.status("s-1")["suspended"] is True

    def test_queue_walks_subtasks_in_order(self):
        """Known trip + two subtasks -> cursor 0/transportation, 1/food, 2/summary."""
        context = EngineContext(
            model=ScriptedChatModel([
                _decompose("transportation", "food"),
                "Fly SF to Tokyo.",
                "Try the ramen in Shinjuku.",
                "Here is your plan.",
            ])
        )
        graph = create_orchestrator_graph(context)
        state = dict(create_initial_state("s-2"))
        state["memory"] = {"destination": "Tokyo", "departure": "SF", "startDate": "2025-10-01"}
        state["messages"] = [user_turn("Plan transport and food for my Tokyo trip")]
        config = {"configurable": {"thread_id": "s-2"}}

        parser_patches = [
            chunk["subtask_parser"]
            for chunk in graph.stream(state, config=config, stream_mode="updates")
            if "subtask_parser" in chunk
        ]

        assert len(parser_patches[0]["task_queue"]["tasks"]) == 2
        assert [(patch["task_queue"]["cursor"], patch["stage"]) for patch in parser_patches] == [
            (0, "transportation"),
            (1, "food"),
            (2, "summary"),
        ]

        final = graph.get_state(config).values
        assert final["done"] is True
        assert final["final_answer"] == "Here is your plan."
        assert [entry.get("agent") for entry in final["messages"][-3:]] == ["transportation", "food", "summary"]

    def test_replayed_tool_result_is_ignored(self):
        """An orphaned tool result in the log never reaches the model and raises nothing."""
        engine = _make_engine(_ask_for("destination"), _ask_for("destination"))
        engine.run("s-3", "Help me plan a trip")

        orphan = {"role": "tool", "tool_call_id": "replayed-call", "content": "stale", "name": "resolve_date"}
        engine.graph.update_state(
            {"configurable": {"thread_id": "s-3"}},
            {"messages": [orphan], "stage": "orchestrator"},
            as_node="complete_interaction",
        )
        engine.graph.invoke(None, config={"configurable": {"thread_id": "s-3"}, "recursion_limit": 50})

        sent = engine.context.model.calls[-1]["messages"]
        assert all(entry.get("tool_call_id") != "replayed-call" for entry in sent)

    def test_suspend_then_resume_with_answer(self):
        """First suspension leaves messages as is; the answer becomes a user turn for process_response."""
        engine = _make_engine(_ask_for("destination"), _record(destination="Beijing"))

        suspended = engine.run("s-4", "Help me plan a trip")
        before = engine.load("s-4")["messages"]

        assert isinstance(suspended, Suspended)
        assert suspended.node == "wait_for_user"
        assert suspended.state["messages"] == before
        assert len(before) == 4

        resumed = engine.resume("s-4", "I want to go to Beijing")
        after = engine.load("s-4")["messages"]

        assert after[len(before)] == user_turn("I want to go to Beijing")
        assert engine.context.model.calls[-1]["tool_choice"] == "record_trip_details"
        assert isinstance(resumed, Suspended)
        assert resumed.state["memory"] == {"destination": "Beijing"}
        assert "depart" in resumed.question


# ============================================================================
# TestSessionEngine
# ============================================================================


class TestSessionEngine:
    """Tests for run, resume and session bookkeeping."""

    def test_full_trip_completes(self):
        engine = _make_engine(*_make_full_trip_script())

        suspended = engine.run("trip-1", "I need a trip plan")
        result = engine.resume("trip-1", "Tokyo, from SF, on 2025-10-01")

        assert isinstance(suspended, Suspended)
        assert not isinstance(result, Suspended)
        assert result["done"] is True
        assert result["final_answer"].startswith("You are travelling from SF to Tokyo")
        assert result["memory"] == {"destination": "Tokyo", "departure": "SF", "startDate": "2025-10-01"}
        assert engine.context.model.remaining == 0

    def test_run_on_suspended_session_answers_question(self):
        engine = _make_engine(_ask_for("destination"), _record(destination="Paris"), _ask_for("departure"))
        engine.run("s-5", "Plan a trip")

        result = engine.run("s-5", "Paris please")

        assert isinstance(result, Suspended)
        assert result.state["memory"]["destination"] == "Paris"

    def test_blank_resume_adds_no_user_turn(self):
        engine = _make_engine(_ask_for("destination"))
        engine.run("s-6", "Plan a trip")
        calls_before = len(engine.context.model.calls)

        result = engine.resume("s-6", "   ")

        user_turns = [entry for entry in result.state["messages"] if entry["role"] == "user"]
        assert len(user_turns) == 1
        assert len(engine.context.model.calls) == calls_before
        assert isinstance(result, Suspended)

    def test_repeated_blank_resume_keeps_one_question(self):
        engine = _make_engine(_ask_for("destination", "departure", "startDate"))
        first = engine.run("s-6b", "Plan a trip")

        engine.resume("s-6b", "")
        result = engine.resume("s-6b", "   ")

        assert result.question == first.question
        assert result.state["messages"] == first.state["messages"]
        assert len(result.state["messages"]) == 4

    def test_resume_unknown_session(self):
        with pytest.raises(SessionNotFoundError):
            _make_engine().resume("nope", "hello")

    def test_resume_finished_session(self):
        engine = _make_engine(*_make_full_trip_script())
        engine.run("trip-2", "I need a trip plan")
        engine.resume("trip-2", "Tokyo, from SF, on 2025-10-01")

        with pytest.raises(SessionNotSuspendedError):
            engine.resume("trip-2", "again")

    def test_new_turn_after_completion(self):
        engine = _make_engine(*_make_full_trip_script(), "Anything else for your Tokyo trip?")
        engine.run("trip-3", "I need a trip plan")
        engine.resume("trip-3", "Tokyo, from SF, on 2025-10-01")

        result = engine.run("trip-3", "Thanks!")

        assert isinstance(result, Suspended)
        assert result.question == "Anything else for your Tokyo trip?"
        assert result.state["done"] is False

    def test_stream_run_matches_run(self):
        script = [_decompose("food"), "Eat sushi.", "Plan: eat sushi."]
        streamed_engine = _make_engine(*script)
        run_engine = _make_engine(*script)

        updates = list(streamed_engine.stream_run("s-7", "Food ideas for Tokyo"))
        result = run_engine.run("s-7", "Food ideas for Tokyo")

        assert all(isinstance(update, StageUpdate) for update in updates)
        assert [update.stage_id for update in updates] == [
            "orchestrator", "subtask_parser", "food", "subtask_parser", "summary",
        ]
        assert streamed_engine.load("s-7")["final_answer"] == result["final_answer"] == "Plan: eat sushi."

    def test_streamed_model_responses(self):
        engine = _make_engine(_decompose("destination"), "Visit Asakusa.", "Plan: Asakusa.", stream_responses=True)

        result = engine.run("s-8", "What to see in Tokyo?")

        assert result["final_answer"] == "Plan: Asakusa."
        assert json.loads(result["messages"][2]["content"])[0]["type"] == "destination"

    def test_status_and_end_session(self):
        engine = _make_engine(_ask_for("destination"))
        engine.run("s-9", "Plan a trip")

        status = engine.status("s-9")
        assert status["exists"] is True
        assert status["next_stage"] == "wait_for_user"
        assert status["message_count"] == 4

        assert engine.end_session("s-9") is True
        assert engine.load("s-9") is None
        assert engine.status("s-9") == {"session_id": "s-9", "exists": False, "suspended": False}
        assert engine.end_session("s-9") is False

    def test_model_failure_surfaces(self):
        engine = _make_engine(RuntimeError("upstream 500"))

        with pytest.raises(ModelUnavailableError):
            engine.run("s-10", "Plan a trip")

    def test_step_limit_surfaces(self):
        looping = tool_call_response("resolve_date", {"date": "today"})
        context = EngineContext(model=ScriptedChatModel(default=looping), config=EngineConfig(recursion_limit=5))
        engine = SessionEngine(context)

        with pytest.raises(SessionUnavailableError, match="exceeded 5 steps"):
            engine.run("s-11", "When is today?")

    def test_debug_logs_written(self, tmp_path):
        engine = _make_engine(_ask_for("destination"), enable_debug_logs=True, logs_dir=str(tmp_path))
        engine.run("s-12", "Plan a trip")
        engine.end_session("s-12")

        lines = (tmp_path / "s-12" / "session_logs.json").read_text(encoding="utf-8").splitlines()
        entries = [json.loads(line) for line in lines]

        assert entries[0]["type"] == "llm_call"
        assert entries[0]["node"] == "orchestrator"
        assert entries[-1]["type"] == "session_summary"
        assert entries[-1]["total_turns"] == 1
        assert engine.context.debug_loggers == {}

    def test_debug_logs_stay_inside_logs_dir(self, tmp_path):
        logs_dir = tmp_path / "logs"
        engine = _make_engine(_ask_for("destination"), enable_debug_logs=True, logs_dir=str(logs_dir))

        result = engine.run("../escaped", "Plan a trip")

        assert isinstance(result, Suspended)
        assert not (tmp_path / "escaped").exists()
        assert engine.context.debug_loggers == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
