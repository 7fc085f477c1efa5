"""
Subtask queue processor.

Walks the task queue one subtask at a time. It never calls a model: either it
dispatches the subtask under the cursor, advances the cursor after a
specialist returns, or (re)initializes the queue from the latest structured
output in the conversation.
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError

from travelgraph.graph.stages import SUMMARY
from travelgraph.graph.state import ConversationState
from travelgraph.orchestration.schemas import Subtask, make_queue
from travelgraph.shared.errors import ErrorKind, ParseError, make_error
from travelgraph.shared.messages.turns import last_turn, turn_text
from travelgraph.shared.parsing import parse_json_payload


logger = logging.getLogger(__name__)


def parse_subtasks(content: str) -> List[Subtask]:
    """
    Parse a task list out of structured model output.

    Accepts a JSON array of subtasks, an object with a ``subtasks`` (or
    ``tasks``) array, or a single subtask object, optionally wrapped in a
    markdown code block.

    Args:
        content: Raw message content

    Returns:
        Non-empty list of subtasks

    Raises:
        ParseError: If no valid, non-empty task list can be read
    """
    data = parse_json_payload(content)

    if isinstance(data, dict):
        if "subtasks" in data:
            data = data["subtasks"]
        elif "tasks" in data:
            data = data["tasks"]
        else:
            data = [data]

    if not isinstance(data, list) or not data:
        raise ParseError("Expected a non-empty list of subtasks")

    try:
        return [Subtask.model_validate(item) for item in data]
    except ValidationError as e:
        raise ParseError(f"Invalid subtask: {e}")


def subtask_parser_node(state: ConversationState) -> Dict[str, Any]:
    """
    Dispatch, advance or initialize the subtask queue.

    - In flight (a specialist just returned): advance the cursor; past the
      last subtask, hand over to the summary.
    - Fresh queue with a valid cursor: dispatch the subtask under it.
    - Otherwise: parse the latest message as a task list.

    Args:
        state: Current conversation state

    Returns:
        Patch with the updated queue and next stage, or ``last_error`` when
        parsing fails (the queue is left untouched)
    """
    session_id = state.get("session_id", "unknown")
    queue = state.get("task_queue") or {}
    tasks = queue.get("tasks") or []
    cursor = queue.get("cursor", -1)
    in_flight = bool(queue.get("in_flight"))
    _log = f"[session={session_id}] [graph=orchestrator] [node=subtask_parser] "

    cursor_valid = isinstance(cursor, int) and 0 <= cursor < len(tasks)

    if tasks and cursor_valid and in_flight:
        next_cursor = cursor + 1
        if next_cursor >= len(tasks):
            logger.info(f"{_log}All {len(tasks)} subtasks done, routing to summary")
            return {
                "task_queue": {"tasks": tasks, "cursor": next_cursor, "in_flight": False},
                "stage": SUMMARY,
            }
        next_type = tasks[next_cursor]["type"]
        logger.info(f"{_log}Advancing queue | cursor={next_cursor}/{len(tasks)}, next={next_type}")
        return {
            "task_queue": {"tasks": tasks, "cursor": next_cursor, "in_flight": True},
            "stage": next_type,
        }

    if tasks and cursor_valid:
        task_type = tasks[cursor]["type"]
        logger.info(f"{_log}Dispatching subtask | cursor={cursor}/{len(tasks)}, type={task_type}")
        return {
            "task_queue": {"tasks": tasks, "cursor": cursor, "in_flight": True},
            "stage": task_type,
        }

    latest = last_turn(state.get("messages") or [])
    try:
        if latest is None:
            raise ParseError("No message to read subtasks from")
        subtasks = parse_subtasks(turn_text(latest))
    except ParseError as e:
        logger.warning(f"{_log}Could not initialize queue: {e}")
        return {"last_error": make_error(ErrorKind.PARSE_ERROR, str(e))}

    logger.info(f"{_log}Queue initialized | subtasks={[subtask.type.value for subtask in subtasks]}")
    return {
        "task_queue": make_queue(subtasks, cursor=0, in_flight=True),
        "stage": subtasks[0].type.value,
    }
