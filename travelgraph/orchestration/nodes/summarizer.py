"""
Summarizer node.

Folds the specialists' results into one final answer for the user, stores it
as ``final_answer`` and resets the task queue.
"""

import logging
from typing import Any, Callable, Dict

from travelgraph.graph.context import EngineContext
from travelgraph.graph.stages import ORCHESTRATOR, SUMMARY
from travelgraph.graph.state import ConversationState
from travelgraph.orchestration.prompts import SUMMARY_FALLBACK, build_summary_prompt
from travelgraph.orchestration.schemas import empty_queue
from travelgraph.shared.messages.turns import assistant_turn
from travelgraph.shared.messages.validation import validate_message_sequence


logger = logging.getLogger(__name__)


def create_summarizer_node(context: EngineContext) -> Callable[[ConversationState], Dict[str, Any]]:
    """Build the summarizer node bound to an engine context."""

    def summarizer_node(state: ConversationState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        queue = state.get("task_queue") or {}
        subtask_types = [task.get("type") for task in queue.get("tasks") or []]
        _log = f"[session={session_id}] [graph=orchestrator] [node=summary] "

        logger.info(f"{_log}Entering node | subtasks={subtask_types}")

        response = context.complete(
            session_id=session_id,
            node=SUMMARY,
            messages=validate_message_sequence(state.get("messages") or []),
            system=build_summary_prompt(state.get("memory"), subtask_types),
        )

        summary = response.text
        if not summary:
            logger.warning(f"{_log}Empty summary from model, using fallback")
            summary = SUMMARY_FALLBACK

        logger.info(f"{_log}Node finished | summary_len={len(summary)}")
        return {
            "messages": [assistant_turn(summary, agent=SUMMARY)],
            "final_answer": summary,
            "task_queue": empty_queue(),
            "stage": ORCHESTRATOR,
            "done": True,
        }

    return summarizer_node
