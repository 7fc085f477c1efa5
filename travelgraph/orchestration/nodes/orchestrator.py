"""
Orchestrator node for the LangGraph workflow.

Asks the model what to do next given the trip memory and the conversation,
and turns its reply into a state patch:
- decomposition tool: fills the task queue and hands over to the subtask parser
- interaction tool: hands over to the user-interaction sub-machine
- domain tool: runs the tool and loops back to itself
- plain reply: hands over to ask_user

Only the first tool call of a reply is executed and recorded.
"""

import json
import logging
from typing import Any, Callable, Dict

from travelgraph.graph.context import EngineContext
from travelgraph.graph.stages import ASK_USER, ORCHESTRATOR, SUBTASK_PARSER
from travelgraph.graph.state import ConversationState
from travelgraph.interaction.fields import is_trip_plan_complete
from travelgraph.orchestration.prompts import build_orchestrator_prompt
from travelgraph.orchestration.schemas import make_queue
from travelgraph.shared.errors import ErrorKind, ParseError, error_kind, make_error
from travelgraph.shared.messages.turns import assistant_turn, tool_result
from travelgraph.shared.messages.validation import validate_message_sequence
from travelgraph.shared.tools.invoker import safe_call
from travelgraph.shared.tools.registry import ToolKind


logger = logging.getLogger(__name__)


GIVE_UP_MESSAGE = (
    "Sorry, I ran into repeated problems while planning ({kind}: {message}). "
    "Could you rephrase or add a few more details about your trip?"
)


def create_orchestrator_node(context: EngineContext) -> Callable[[ConversationState], Dict[str, Any]]:
    """
    Build the orchestrator node bound to an engine context.

    Args:
        context: Engine context (model, tool table, tool invoker, config)

    Returns:
        Node function taking the state and returning a patch
    """
    tools = context.orchestrator_tools

    def orchestrator_node(state: ConversationState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        memory = state.get("memory") or {}
        incoming_error = state.get("last_error")
        retries = state.get("error_retries", 0) or 0
        _log = f"[session={session_id}] [graph=orchestrator] [node=orchestrator] "

        logger.info(
            f"{_log}Entering node | messages={len(state.get('messages') or [])}, "
            f"known_fields={sorted(memory)}, plan_complete={is_trip_plan_complete(memory)}, "
            f"last_error={error_kind(incoming_error)}"
        )

        patch: Dict[str, Any] = {}
        if incoming_error:
            # The error is consumed by this turn
            retries += 1
            patch["last_error"] = None
            patch["error_retries"] = retries
            if retries > context.config.max_error_retries:
                logger.warning(f"{_log}Error budget exhausted after {retries} attempts, handing over to ask_user")
                patch["messages"] = [
                    assistant_turn(
                        GIVE_UP_MESSAGE.format(kind=error_kind(incoming_error), message=incoming_error.get("message")),
                        agent=ORCHESTRATOR,
                    )
                ]
                patch["error_retries"] = 0
                patch["stage"] = ASK_USER
                return patch
        elif retries:
            patch["error_retries"] = 0

        history = validate_message_sequence(state.get("messages") or [])
        response = context.complete(
            session_id=session_id,
            node=ORCHESTRATOR,
            messages=history,
            tools=tools.specs(),
            system=build_orchestrator_prompt(memory, incoming_error),
        )

        if not response.tool_calls:
            logger.info(f"{_log}Plain reply, routing to ask_user")
            patch["messages"] = [assistant_turn(response.text, agent=ORCHESTRATOR)]
            patch["stage"] = ASK_USER
            return patch

        call = response.tool_calls[0]
        if len(response.tool_calls) > 1:
            dropped = [extra.name for extra in response.tool_calls[1:]]
            logger.warning(f"{_log}Model returned {len(response.tool_calls)} tool calls, executing only '{call.name}' | dropped={dropped}")

        turn = assistant_turn(response.text, tool_calls=[call], agent=ORCHESTRATOR)

        spec = tools.lookup(call.name)
        if spec is None:
            message = f"Tool '{call.name}' not found. Available tools: {tools.names()}"
            logger.warning(f"{_log}{message}")
            patch["messages"] = [turn, tool_result(call.id, f"Error: {message}", call.name)]
            patch["last_error"] = make_error(ErrorKind.TOOL_NOT_FOUND, message)
            patch["stage"] = ORCHESTRATOR
            return patch

        try:
            payload = spec.parse_args(call.args)
        except ParseError as e:
            logger.warning(f"{_log}Invalid payload for '{call.name}': {e}")
            patch["messages"] = [turn, tool_result(call.id, f"Error: {e}", call.name)]
            patch["last_error"] = make_error(ErrorKind.PARSE_ERROR, str(e))
            patch["stage"] = ORCHESTRATOR
            return patch

        if spec.kind == ToolKind.DECOMPOSITION:
            subtasks = payload.subtasks
            content = json.dumps([subtask.model_dump(mode="json") for subtask in subtasks], ensure_ascii=False)
            logger.info(f"{_log}Task decomposed | subtasks={[subtask.type.value for subtask in subtasks]}")
            patch["messages"] = [turn, tool_result(call.id, content, call.name)]
            patch["task_queue"] = make_queue(subtasks)
            patch["stage"] = SUBTASK_PARSER

        elif spec.kind == ToolKind.INTERACTION:
            content = json.dumps(
                {
                    "action": "request_user_interaction",
                    "reason": payload.reason,
                    "missing_fields": payload.missing_fields,
                },
                ensure_ascii=False,
            )
            logger.info(f"{_log}User input needed | missing_fields={payload.missing_fields}")
            patch["messages"] = [turn, tool_result(call.id, content, call.name)]
            patch["missing_fields"] = list(payload.missing_fields)
            patch["stage"] = ASK_USER

        else:
            content, error = safe_call(context.tool_invoker, call.name, payload.model_dump())
            patch["messages"] = [turn, tool_result(call.id, content, call.name)]
            patch["stage"] = ORCHESTRATOR
            if error is not None:
                patch["last_error"] = make_error(ErrorKind.TOOL_EXECUTION_ERROR, f"{call.name}: {error}")
            else:
                logger.info(f"{_log}Domain tool '{call.name}' executed, looping back")

        return patch

    return orchestrator_node
