"""
Tests for structured logging and the per-session debug logger.
"""

import json
import logging

import pytest

from travelgraph.graph.config import EngineConfig
from travelgraph.graph.context import EngineContext
from travelgraph.graph.state import create_initial_state
from travelgraph.shared.llm.mock import ScriptedChatModel
from travelgraph.shared.logging import DebugLogger, StructuredFormatter, log_state_transition, setup_logging


# ============================================================================
# Test Fixtures
# ============================================================================


def _make_context(**config_overrides):
    return EngineContext(model=ScriptedChatModel([]), config=EngineConfig(**config_overrides))


class TestStructuredLogging:
    """Tests for JSON log lines."""

    def test_formatter_renders_json(self):
        record = logging.LogRecord("travelgraph", logging.INFO, "", 0, "hello %s", ("world",), None)
        record.extra = {"stage": "ask_user"}

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["message"] == "hello world"
        assert entry["level"] == "INFO"
        assert entry["extra"] == {"stage": "ask_user"}

    def test_state_transition_written_to_file(self, tmp_path):
        log_file = tmp_path / "transitions.log"
        logger = setup_logging(log_file=str(log_file), logger_name="travelgraph.test_transitions")
        state = dict(create_initial_state("s-log"))
        state["last_error"] = {"kind": "ParseError", "message": "bad"}

        log_state_transition("suspended", state, extra={"session_id": "s-log"}, logger=logger)
        for handler in logger.handlers:
            handler.flush()

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
        assert entry["message"] == "State transition: suspended"
        assert entry["extra"]["state_summary"]["error_kind"] == "ParseError"
        assert entry["extra"]["state_summary"]["cursor"] == -1
        assert entry["extra"]["extra"] == {"session_id": "s-log"}


class TestDebugLogger:
    """Tests for the per-session debug log."""

    @pytest.mark.parametrize("session_id", ["../escaped", "nested/../../escaped", "", "."])
    def test_rejects_directories_outside_logs_dir(self, tmp_path, session_id):
        logs_dir = tmp_path / "logs"

        with pytest.raises(ValueError):
            DebugLogger(session_id, str(logs_dir))

        assert not (tmp_path / "escaped").exists()

    def test_context_reuses_logger_per_session(self, tmp_path):
        context = _make_context(enable_debug_logs=True, logs_dir=str(tmp_path))
        first = context.debug_logger("dbg-1")

        assert context.debug_logger("dbg-1") is first
        context.release_debug_logger("dbg-1")
        assert context.debug_logger("dbg-1") is not first

    def test_contexts_do_not_share_loggers(self, tmp_path):
        first = _make_context(enable_debug_logs=True, logs_dir=str(tmp_path))
        second = _make_context(enable_debug_logs=True, logs_dir=str(tmp_path))

        assert first.debug_logger("dbg-shared") is not second.debug_logger("dbg-shared")

    def test_context_without_debug_logs(self, tmp_path):
        context = _make_context(logs_dir=str(tmp_path))

        assert context.debug_logger("dbg-off") is None
        assert not (tmp_path / "dbg-off").exists()

    def test_context_skips_unusable_session_id(self, tmp_path):
        context = _make_context(enable_debug_logs=True, logs_dir=str(tmp_path / "logs"))

        assert context.debug_logger("../escaped") is None
        assert context.debug_loggers == {}
        assert not (tmp_path / "escaped").exists()

    def test_accumulates_usage(self, tmp_path):
        debug_logger = DebugLogger("dbg-2", str(tmp_path))

        debug_logger.log_llm_call(
            node="orchestrator",
            system_prompt="sys",
            message_count=2,
            response="ok",
            tool_calls=[],
            duration_ms=120.0,
            input_tokens=1000,
            output_tokens=500,
        )
        debug_logger.log_api_timing("/api/sessions/run", 250.0, success=False, error="boom")
        summary = debug_logger.log_session_summary(total_turns=1)

        assert summary["llm_call_count"] == 1
        assert summary["total_tokens"] == 1500
        assert summary["total_cost_usd"] == pytest.approx(0.0012)
        entries = [json.loads(line) for line in debug_logger.log_file.read_text(encoding="utf-8").splitlines()]
        assert [entry["type"] for entry in entries] == ["llm_call", "api_timing", "session_summary"]
        assert entries[1]["error"] == "boom"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
