"""
Tests for the conversation state, the reducer table and stage write
authorization.
"""

from typing import get_type_hints

import pytest

from travelgraph.graph.reducers import (
    REDUCERS,
    STAGE_WRITES,
    append_messages,
    authorized_node,
    check_patch,
    combine_patches,
    merge,
    merge_memory,
)
from travelgraph.graph.state import ConversationState, create_initial_state
from travelgraph.shared.errors import UnauthorizedPatchError
from travelgraph.shared.messages.turns import assistant_turn, user_turn


# ============================================================================
# Test Fixtures
# ============================================================================


def _make_state(**overrides):
    state = dict(create_initial_state("test-session-001"))
    state.update(overrides)
    return state


# ============================================================================
# TestInitialState
# ============================================================================


class TestInitialState:
    """Tests for the default state of a new session."""

    def test_defaults(self):
        state = create_initial_state("s-1")

        assert state["session_id"] == "s-1"
        assert state["messages"] == []
        assert state["stage"] == "orchestrator"
        assert state["task_queue"] == {"tasks": [], "cursor": -1, "in_flight": False}
        assert state["memory"] == {}
        assert state["missing_fields"] == []
        assert state["last_error"] is None
        assert state["final_answer"] is None
        assert state["done"] is False

    def test_every_field_has_a_reducer(self):
        """The schema annotations and the reducer table name the same functions."""
        hints = get_type_hints(ConversationState, include_extras=True)

        assert set(hints) == set(REDUCERS)
        for field_name, hint in hints.items():
            assert hint.__metadata__[0] is REDUCERS[field_name], field_name


# ============================================================================
# TestReducers
# ============================================================================


class TestReducers:
    """Tests for merge and the per-field reducers."""

    def test_messages_append_in_order(self):
        first, second, third = user_turn("a"), assistant_turn("b"), user_turn("c")
        state = _make_state(messages=[first])

        merged = merge(state, {"messages": [second, third]})

        assert merged["messages"] == [first, second, third]

    def test_absent_fields_untouched(self):
        state = _make_state(stage="ask_user", missing_fields=["budget"])

        merged = merge(state, {"stage": "wait_for_user"})

        assert merged["stage"] == "wait_for_user"
        assert merged["missing_fields"] == ["budget"]
        assert merged["memory"] == state["memory"]

    def test_merge_does_not_mutate_input(self):
        state = _make_state(messages=[user_turn("hi")])

        merge(state, {"messages": [assistant_turn("hello")], "stage": "ask_user"})

        assert len(state["messages"]) == 1
        assert state["stage"] == "orchestrator"

    def test_memory_merges_shallowly(self):
        state = _make_state(memory={"destination": "Tokyo", "budget": 500.0})

        merged = merge(state, {"memory": {"departure": "SF", "budget": 800.0}})

        assert merged["memory"] == {"destination": "Tokyo", "departure": "SF", "budget": 800.0}

    def test_memory_never_nulls_known_fact(self):
        state = _make_state(memory={"destination": "Tokyo"})

        merged = merge(state, {"memory": {"destination": None, "departure": "SF"}})

        assert merged["memory"]["destination"] == "Tokyo"
        assert merged["memory"]["departure"] == "SF"

    def test_explicit_none_clears_replace_field(self):
        state = _make_state(last_error={"kind": "ParseError", "message": "bad"})

        merged = merge(state, {"last_error": None})

        assert merged["last_error"] is None

    def test_unknown_field_rejected(self):
        with pytest.raises(KeyError):
            merge(_make_state(), {"not_a_field": 1})

    def test_append_messages_handles_none(self):
        assert append_messages(None, None) == []
        assert merge_memory(None, {"a": 1}) == {"a": 1}

    def test_combine_patches_matches_sequential_merge(self):
        """merge(merge(s, a), b) == merge(s, combine(a, b))."""
        state = _make_state(memory={"destination": "Tokyo"}, messages=[user_turn("hi")])
        first = {
            "messages": [assistant_turn("q1")],
            "memory": {"departure": "SF"},
            "stage": "ask_user",
        }
        second = {
            "messages": [user_turn("a1")],
            "memory": {"departure": None, "startDate": "2025-10-01"},
            "stage": "process_response",
            "missing_fields": [],
        }

        sequential = merge(merge(state, first), second)
        combined = merge(state, combine_patches(first, second))

        assert sequential == combined

    def test_combine_patches_is_associative(self):
        state = _make_state()
        a = {"messages": [user_turn("1")], "memory": {"destination": "Paris"}}
        b = {"messages": [assistant_turn("2")], "stage": "ask_user"}
        c = {"memory": {"budget": 100.0}, "stage": "wait_for_user"}

        left = merge(state, combine_patches(combine_patches(a, b), c))
        right = merge(state, combine_patches(a, combine_patches(b, c)))

        assert left == right


# ============================================================================
# TestStageAuthorization
# ============================================================================


class TestStageAuthorization:
    """Tests for per-stage write authorization."""

    def test_allowed_patch_passes_through(self):
        patch = {"stage": "wait_for_user", "missing_fields": ["destination"]}

        assert check_patch("ask_user", patch) is patch

    def test_none_patch_becomes_empty(self):
        assert check_patch("complete_interaction", None) == {}

    def test_unauthorized_field_raises(self):
        with pytest.raises(UnauthorizedPatchError, match="memory"):
            check_patch("ask_user", {"memory": {"destination": "Tokyo"}})

    def test_unknown_stage_raises(self):
        with pytest.raises(UnauthorizedPatchError):
            check_patch("nowhere", {"stage": "orchestrator"})

    def test_only_process_response_writes_memory(self):
        writers = [stage for stage, fields in STAGE_WRITES.items() if "memory" in fields]

        assert writers == ["process_response"]

    def test_authorized_node_wraps_node(self):
        def ask_user_node(state):
            return {"done": True}

        guarded = authorized_node("ask_user", ask_user_node)

        assert guarded.__name__ == "ask_user_node"
        with pytest.raises(UnauthorizedPatchError):
            guarded(_make_state())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
