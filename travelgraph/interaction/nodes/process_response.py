"""
Process-response node.

Extracts the trip facts the user stated in their latest reply, merges them
into memory and recomputes which fields are still missing.
"""

import logging
from typing import Any, Callable, Dict, List

from pydantic import ValidationError

from travelgraph.graph.context import EngineContext
from travelgraph.graph.stages import ASK_USER, COMPLETE_INTERACTION, PROCESS_RESPONSE
from travelgraph.graph.state import ConversationState
from travelgraph.interaction.fields import merge_trip_details, recompute_missing, required_missing
from travelgraph.interaction.prompts import EXTRACTION_FAILED_MESSAGE, build_extraction_prompt
from travelgraph.interaction.schemas import TripDetails
from travelgraph.shared.errors import ParseError
from travelgraph.shared.messages.turns import AssistantTurn, UserTurn, assistant_turn, last_turn, to_turn
from travelgraph.shared.parsing import parse_json_payload
from travelgraph.shared.tools.registry import ToolKind, ToolSpec


logger = logging.getLogger(__name__)


RECORD_TRIP_DETAILS_TOOL = ToolSpec(
    name="record_trip_details",
    kind=ToolKind.INTERACTION,
    description="Records the trip details the user explicitly stated. Omit anything not stated.",
    payload_model=TripDetails,
)

# User/assistant turns handed to the extractor
EXTRACTION_WINDOW = 3


def extraction_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """The last few user and assistant turns, without tool traffic."""
    conversational = []
    for entry in messages:
        turn = to_turn(entry)
        if isinstance(turn, UserTurn):
            conversational.append(entry)
        elif isinstance(turn, AssistantTurn) and not turn.tool_calls and turn.text:
            conversational.append(entry)
    return conversational[-EXTRACTION_WINDOW:]


def extract_trip_details(
    context: EngineContext,
    session_id: str,
    messages: List[Dict[str, Any]],
    memory: Dict[str, Any],
) -> TripDetails:
    """
    Ask the model for the trip facts in the latest exchange.

    The model is forced to call ``record_trip_details``; a JSON text reply is
    accepted as a fallback.

    Raises:
        ParseError: If no valid trip details can be read from the reply
    """
    response = context.complete(
        session_id=session_id,
        node=PROCESS_RESPONSE,
        messages=extraction_messages(messages),
        tools=[RECORD_TRIP_DETAILS_TOOL],
        system=build_extraction_prompt(memory, RECORD_TRIP_DETAILS_TOOL.name),
        tool_choice=RECORD_TRIP_DETAILS_TOOL.name,
    )

    for call in response.tool_calls:
        if call.name == RECORD_TRIP_DETAILS_TOOL.name:
            return RECORD_TRIP_DETAILS_TOOL.parse_args(call.args)

    data = parse_json_payload(response.text)
    if not isinstance(data, dict):
        raise ParseError("Expected a JSON object of trip details")
    try:
        return TripDetails.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Invalid trip details: {e}")


def create_process_response_node(context: EngineContext) -> Callable[[ConversationState], Dict[str, Any]]:
    """Build the process_response node bound to an engine context."""

    def process_response_node(state: ConversationState) -> Dict[str, Any]:
        session_id = state.get("session_id", "unknown")
        memory = state.get("memory") or {}
        declared = state.get("missing_fields") or []
        messages = state.get("messages") or []
        _log = f"[session={session_id}] [graph=interaction] [node=process_response] "

        patch: Dict[str, Any] = {}
        updated = memory

        if isinstance(last_turn(messages), UserTurn):
            try:
                details = extract_trip_details(context, session_id, messages, memory)
                extracted = details.known_values()
                logger.info(f"{_log}Extracted fields | {sorted(extracted)}")
                if extracted:
                    patch["memory"] = extracted
                    updated = merge_trip_details(memory, extracted)
            except ParseError as e:
                logger.warning(f"{_log}Extraction failed, memory unchanged: {e}")
                patch["messages"] = [assistant_turn(EXTRACTION_FAILED_MESSAGE, agent=PROCESS_RESPONSE)]
        else:
            logger.info(f"{_log}No new user reply, skipping extraction")

        remaining = recompute_missing(declared, updated)
        patch["missing_fields"] = remaining
        patch["stage"] = ASK_USER if required_missing(remaining) else COMPLETE_INTERACTION

        logger.info(f"{_log}Node finished | missing={remaining}, next={patch['stage']}")
        return patch

    return process_response_node
