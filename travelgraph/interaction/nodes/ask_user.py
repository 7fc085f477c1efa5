"""
Ask-user node.

Picks the most important missing trip fields and appends one clarifying
question. The question is rendered from templates, so the same state always
yields the same question.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from travelgraph.graph.config import EngineConfig
from travelgraph.graph.stages import COMPLETE_INTERACTION, ORCHESTRATOR, WAIT_FOR_USER
from travelgraph.graph.state import ConversationState
from travelgraph.interaction.fields import (
    HARD_REQUIRED_FIELDS,
    is_field_answered,
    missing_trip_fields,
    order_by_precedence,
    select_question_fields,
)
from travelgraph.interaction.prompts import build_question
from travelgraph.shared.messages.turns import AssistantTurn, assistant_turn, last_turn


logger = logging.getLogger(__name__)


def candidate_fields(declared: List[str], memory: Dict[str, Any]) -> List[str]:
    """
    Fields worth asking about.

    The declared missing fields still unanswered in memory, or when none are
    left, the hard-required fields still unanswered.
    """
    pending = order_by_precedence(field for field in declared if not is_field_answered(memory, field))
    if pending:
        return pending
    return missing_trip_fields(memory, HARD_REQUIRED_FIELDS)


def awaiting_reply(messages: List[Dict[str, Any]]) -> bool:
    """True when the log ends with a plain orchestrator reply the user has not answered."""
    latest = last_turn(messages)
    return (
        isinstance(latest, AssistantTurn)
        and latest.agent == ORCHESTRATOR
        and not latest.tool_calls
        and bool(latest.text.strip())
    )


def create_ask_user_node(config: Optional[EngineConfig] = None) -> Callable[[ConversationState], Dict[str, Any]]:
    """Build the ask_user node with the question batching limit from ``config``."""
    max_fields = (config or EngineConfig()).max_fields_per_question

    def ask_user_node(state: ConversationState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        memory = state.get("memory") or {}
        declared = state.get("missing_fields") or []
        messages = state.get("messages") or []
        _log = f"[session={session_id}] [graph=interaction] [node=ask_user] "

        missing = candidate_fields(declared, memory)
        logger.info(f"{_log}Entering node | declared={declared}, missing={missing}")

        if not missing:
            if awaiting_reply(messages):
                # The orchestrator's own reply is the question for the user
                logger.info(f"{_log}No missing fields, waiting for the user to answer the last reply")
                return {"stage": WAIT_FOR_USER, "missing_fields": []}
            logger.info(f"{_log}No missing fields, completing interaction")
            return {"stage": COMPLETE_INTERACTION, "missing_fields": []}

        fields = select_question_fields(missing, max_fields)
        question = build_question(fields, memory)
        latest = last_turn(messages)
        if isinstance(latest, AssistantTurn) and latest.agent == "ask_user" and latest.text == question:
            # Same question still pending (e.g. a blank resume)
            logger.info(f"{_log}Question already pending, waiting again | fields={fields}")
            return {"stage": WAIT_FOR_USER, "missing_fields": missing}

        logger.info(f"{_log}Asking | fields={fields}")

        return {
            "messages": [assistant_turn(question, agent="ask_user")],
            "stage": WAIT_FOR_USER,
            "missing_fields": missing,
        }

    return ask_user_node
