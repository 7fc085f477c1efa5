"""
Tests for the routers of the orchestrator graph and the interaction
sub-machine.
"""

import pytest

from travelgraph.graph.router import route_stage, route_subtask
from travelgraph.graph.stages import STAGE_IDS
from travelgraph.interaction.nodes.routing import route_after_ask, route_interaction_completion


# ============================================================================
# Test Fixtures
# ============================================================================


def _make_queue(types, cursor=0, in_flight=False):
    return {
        "tasks": [{"type": task_type, "payload": {}} for task_type in types],
        "cursor": cursor,
        "in_flight": in_flight,
    }


def _make_state(**fields):
    state = {"session_id": "test-session-001"}
    state.update(fields)
    return state


# ============================================================================
# TestRouteStage
# ============================================================================


class TestRouteStage:
    """Tests for routing after the orchestrator."""

    @pytest.mark.parametrize("stage", ["orchestrator", "subtask_parser", "ask_user"])
    def test_follows_known_stage(self, stage):
        assert route_stage(_make_state(stage=stage)) == stage

    def test_error_routes_to_orchestrator(self):
        state = _make_state(stage="subtask_parser", last_error={"kind": "ParseError", "message": "bad"})

        assert route_stage(state) == "orchestrator"

    @pytest.mark.parametrize("stage", [None, "", "summary", "food", "nonsense", 42])
    def test_unexpected_stage_falls_back(self, stage):
        assert route_stage(_make_state(stage=stage)) == "ask_user"

    def test_malformed_error_still_routes(self):
        assert route_stage(_make_state(stage="ask_user", last_error="boom")) == "orchestrator"


# ============================================================================
# TestRouteSubtask
# ============================================================================


class TestRouteSubtask:
    """Tests for routing after the subtask queue processor."""

    def test_dispatches_cursor_type(self):
        state = _make_state(stage="food", task_queue=_make_queue(["transportation", "food"], cursor=1))

        assert route_subtask(state) == "food"

    def test_exhausted_queue_routes_to_summary(self):
        state = _make_state(stage="summary", task_queue=_make_queue(["transportation", "food"], cursor=2))

        assert route_subtask(state) == "summary"

    def test_parse_error_routes_to_orchestrator(self):
        state = _make_state(
            stage="subtask_parser",
            task_queue=_make_queue([], cursor=-1),
            last_error={"kind": "ParseError", "message": "no tasks"},
        )

        assert route_subtask(state) == "orchestrator"

    def test_unknown_subtask_type_falls_back(self):
        state = _make_state(task_queue=_make_queue(["hotel"], cursor=0))

        assert route_subtask(state) == "ask_user"

    def test_empty_queue_falls_back(self):
        assert route_subtask(_make_state(task_queue=_make_queue([], cursor=-1))) == "ask_user"

    def test_missing_queue_falls_back(self):
        assert route_subtask(_make_state()) == "ask_user"

    @pytest.mark.parametrize(
        "queue",
        [
            None,
            {},
            {"tasks": None, "cursor": None},
            {"tasks": [{"type": "food"}], "cursor": "0"},
            {"tasks": [{"type": "food"}], "cursor": -3},
            {"tasks": ["food"], "cursor": 0},
            {"tasks": [{}], "cursor": 0},
        ],
    )
    def test_total_over_malformed_queues(self, queue):
        """Every input maps to a known stage id."""
        assert route_subtask(_make_state(task_queue=queue)) in STAGE_IDS


# ============================================================================
# TestInteractionRouting
# ============================================================================


class TestInteractionRouting:
    """Tests for the interaction sub-machine routers."""

    def test_after_ask_waits_when_question_asked(self):
        assert route_after_ask(_make_state(stage="wait_for_user")) == "wait_for_user"

    def test_after_ask_completes_otherwise(self):
        assert route_after_ask(_make_state(stage="complete_interaction")) == "complete_interaction"

    def test_completion_loops_while_required_missing(self):
        state = _make_state(missing_fields=["budget", "departure"])

        assert route_interaction_completion(state) == "ask_user"

    def test_completion_ignores_optional_fields(self):
        state = _make_state(missing_fields=["budget", "preferences"])

        assert route_interaction_completion(state) == "complete_interaction"

    def test_completion_with_nothing_missing(self):
        assert route_interaction_completion(_make_state(missing_fields=[])) == "complete_interaction"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
