"""
Routing logic for the user-interaction sub-machine.
"""

import logging
from typing import Literal

from travelgraph.graph.stages import ASK_USER, COMPLETE_INTERACTION, WAIT_FOR_USER
from travelgraph.graph.state import ConversationState
from travelgraph.interaction.fields import required_missing
from travelgraph.shared.errors import ErrorKind


logger = logging.getLogger(__name__)


def route_after_ask(state: ConversationState) -> Literal["wait_for_user", "complete_interaction"]:
    """
    Follow the decision of ask_user: wait for the user or close the interaction.

    Args:
        state: Current conversation state

    Returns:
        "wait_for_user" if ask_user asked something, "complete_interaction" otherwise
    """
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=interaction] [router=route_after_ask] "

    if state.get("stage") == WAIT_FOR_USER:
        logger.info(f"{_log}Routing to 'wait_for_user' -> will pause for human input")
        return WAIT_FOR_USER

    logger.info(f"{_log}Routing to 'complete_interaction' | stage={state.get('stage')}")
    return COMPLETE_INTERACTION


def route_interaction_completion(state: ConversationState) -> Literal["ask_user", "complete_interaction"]:
    """
    Decide whether the interaction can close after a user reply.

    Completes once no hard-required field (destination, departure, startDate)
    is missing; otherwise asks again.

    Args:
        state: Current conversation state

    Returns:
        "complete_interaction" or "ask_user"
    """
    session_id = state.get("session_id", "unknown")
    missing = state.get("missing_fields") or []
    required = required_missing(missing)
    _log = f"[session={session_id}] [graph=interaction] [router=route_interaction_completion] "

    if not required:
        logger.info(f"{_log}Routing to 'complete_interaction' | missing={missing}")
        return COMPLETE_INTERACTION

    logger.info(f"{_log}Routing to 'ask_user' (loop) | {ErrorKind.MISSING_REQUIRED_FIELD.value}={required}")
    return ASK_USER
