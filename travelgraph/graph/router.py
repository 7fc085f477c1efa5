"""
Routing logic for the orchestrator graph.

Routers are pure and total: every input maps to a stage id, and anything
unexpected falls back to ask_user.
"""

import logging
from typing import Literal

from travelgraph.graph.stages import (
    ASK_USER,
    FALLBACK_STAGE,
    ORCHESTRATOR,
    SPECIALIST_STAGES,
    SUBTASK_PARSER,
    SUMMARY,
)
from travelgraph.graph.state import ConversationState
from travelgraph.shared.errors import error_kind


logger = logging.getLogger(__name__)


def route_stage(
    state: ConversationState,
) -> Literal["orchestrator", "subtask_parser", "ask_user"]:
    """
    Choose the stage after the orchestrator.

    Routing logic:
    1. A recorded error goes back to the orchestrator
    2. stage subtask_parser / ask_user / orchestrator is followed as is
    3. Anything else -> ask_user

    Args:
        state: Current conversation state

    Returns:
        Name of the next node to execute
    """
    session_id = state.get("session_id", "unknown")
    stage = state.get("stage")
    _log = f"[session={session_id}] [graph=orchestrator] [router=route_stage] "

    if state.get("last_error"):
        logger.info(f"{_log}Routing to 'orchestrator' | last_error={error_kind(state.get('last_error'))}")
        return ORCHESTRATOR

    if stage in (SUBTASK_PARSER, ASK_USER, ORCHESTRATOR):
        logger.info(f"{_log}Routing to '{stage}'")
        return stage

    logger.warning(f"{_log}Unknown stage {stage!r}, falling back to '{FALLBACK_STAGE}'")
    return FALLBACK_STAGE


def route_subtask(
    state: ConversationState,
) -> Literal["transportation", "destination", "food", "summary", "orchestrator", "ask_user"]:
    """
    Choose the stage after the subtask queue processor.

    Routing logic:
    1. A recorded error (e.g. unparseable task list) goes back to the orchestrator
    2. An exhausted queue (or stage summary) -> summary
    3. The specialist matching the type of the subtask under the cursor
    4. Anything else -> ask_user

    Args:
        state: Current conversation state

    Returns:
        Name of the next node to execute
    """
    session_id = state.get("session_id", "unknown")
    queue = state.get("task_queue") or {}
    tasks = queue.get("tasks") or []
    cursor = queue.get("cursor", -1)
    _log = f"[session={session_id}] [graph=orchestrator] [router=route_subtask] "

    if state.get("last_error"):
        logger.info(f"{_log}Routing to 'orchestrator' | last_error={error_kind(state.get('last_error'))}")
        return ORCHESTRATOR

    if not isinstance(cursor, int):
        logger.warning(f"{_log}Invalid cursor {cursor!r}, falling back to '{FALLBACK_STAGE}'")
        return FALLBACK_STAGE

    if state.get("stage") == SUMMARY or (tasks and cursor >= len(tasks)):
        logger.info(f"{_log}Routing to 'summary' | tasks={len(tasks)}, cursor={cursor}")
        return SUMMARY

    if 0 <= cursor < len(tasks):
        task = tasks[cursor]
        task_type = task.get("type") if isinstance(task, dict) else None
        if task_type in SPECIALIST_STAGES:
            logger.info(f"{_log}Routing to '{task_type}' | cursor={cursor}/{len(tasks)}")
            return task_type
        logger.warning(f"{_log}Unknown subtask type {task_type!r}, falling back to '{FALLBACK_STAGE}'")
        return FALLBACK_STAGE

    logger.warning(f"{_log}No subtask under cursor={cursor}, falling back to '{FALLBACK_STAGE}'")
    return FALLBACK_STAGE
