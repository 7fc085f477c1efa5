"""
Engine context.

One ``EngineContext`` is built per process and passed into every stage
factory. It carries the model and tool capabilities, the tool tables and the
configuration; stages reach nothing through module globals.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence

from travelgraph.graph.config import EngineConfig
from travelgraph.orchestration.tools import default_orchestrator_tools
from travelgraph.shared.errors import ModelUnavailableError
from travelgraph.shared.llm.base import ChatModel, ModelResponse, collect_stream
from travelgraph.shared.logging.debug_logger import DebugLogger
from travelgraph.shared.tools import ToolInvoker, ToolSpec, ToolTable, default_tool_invoker

logger = logging.getLogger(__name__)


@dataclass
class EngineContext:
    model: ChatModel
    config: EngineConfig = field(default_factory=EngineConfig)
    tool_invoker: ToolInvoker = field(default_factory=default_tool_invoker)
    orchestrator_tools: ToolTable = field(default_factory=default_orchestrator_tools)
    # Specialist id -> tools it may call
    specialist_tools: Dict[str, ToolTable] = field(default_factory=dict)
    # Session id -> debug log, so one instance accumulates the session totals
    debug_loggers: Dict[str, DebugLogger] = field(default_factory=dict)

    def tools_for(self, specialist: str) -> ToolTable:
        return self.specialist_tools.get(specialist) or ToolTable()

    def debug_logger(self, session_id: str) -> Optional[DebugLogger]:
        """
        Debug log of a session, created on first use.

        Returns None when debug logs are disabled or the session id cannot be
        used as a directory under ``config.logs_dir``.
        """
        if not self.config.enable_debug_logs:
            return None
        if session_id not in self.debug_loggers:
            try:
                self.debug_loggers[session_id] = DebugLogger(session_id, self.config.logs_dir)
            except ValueError as e:
                logger.warning(f"[session={session_id}] Debug log disabled for this session: {e}")
                return None
        return self.debug_loggers[session_id]

    def release_debug_logger(self, session_id: str) -> None:
        self.debug_loggers.pop(session_id, None)

    def complete(
        self,
        *,
        session_id: str,
        node: str,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> ModelResponse:
        """
        Invoke the model for a stage.

        Uses streamed assembly when ``config.stream_responses`` is set, and
        records the call in the session debug log when enabled.

        Raises:
            ModelUnavailableError: If the model capability fails
        """
        _log = f"[session={session_id}] [graph=orchestrator] [node={node}] "
        start_time = time.perf_counter()

        try:
            if self.config.stream_responses:
                response = collect_stream(
                    self.model.stream(messages, tools=tools, system=system, tool_choice=tool_choice)
                )
            else:
                response = self.model.invoke(messages, tools=tools, system=system, tool_choice=tool_choice)
        except Exception as e:
            logger.exception(f"{_log}Model invocation failed: {e}")
            raise ModelUnavailableError(f"Model invocation failed in '{node}': {e}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{_log}LLM responded | duration={duration_ms:.0f}ms, "
            f"tool_calls={[call.name for call in response.tool_calls]}, text_len={len(response.text)}"
        )

        debug_logger = self.debug_logger(session_id)
        if debug_logger is not None:
            debug_logger.log_llm_call(
                node=node,
                system_prompt=system,
                message_count=len(messages),
                response=response.text,
                tool_calls=[call.model_dump() for call in response.tool_calls],
                duration_ms=duration_ms,
                input_tokens=response.usage.get("prompt_tokens", 0),
                output_tokens=response.usage.get("completion_tokens", 0),
                model=response.model or self.config.model,
            )

        return response
