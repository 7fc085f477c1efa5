"""
Conversation state schema.

Defines the state that flows through the orchestrator graph. Every field is
annotated with its reducer from ``reducers.REDUCERS``; LangGraph applies them
when folding node patches into the checkpointed state.
"""

from typing import TypedDict, List, Optional, Annotated, Dict, Any

from travelgraph.graph.reducers import append_messages, merge_memory, replace_value
from travelgraph.graph.stages import ORCHESTRATOR
from travelgraph.orchestration.schemas import empty_queue


class ConversationState(TypedDict):
    """
    State schema for one conversation session.

    Messages are serialized turns (see ``shared.messages.turns``). The task
    queue is ``{"tasks", "cursor", "in_flight"}``. ``last_error`` is a
    ``{"kind", "message"}`` descriptor or None.
    """

    session_id: Annotated[str, replace_value]

    # Conversation log
    messages: Annotated[List[Dict[str, Any]], append_messages]

    # Routing
    stage: Annotated[str, replace_value]
    task_queue: Annotated[Dict[str, Any], replace_value]

    # Trip facts gathered from the user
    memory: Annotated[Dict[str, Any], merge_memory]
    missing_fields: Annotated[List[str], replace_value]

    # Recoverable error handed back to the orchestrator
    last_error: Annotated[Optional[Dict[str, Any]], replace_value]
    error_retries: Annotated[int, replace_value]

    # Outcome
    final_answer: Annotated[Optional[str], replace_value]
    done: Annotated[bool, replace_value]


def create_initial_state(session_id: str) -> ConversationState:
    """
    Build the default state for a new session.

    Args:
        session_id: Session identifier

    Returns:
        ConversationState with every field at its initial value
    """
    return ConversationState(
        session_id=session_id,
        messages=[],
        stage=ORCHESTRATOR,
        task_queue=empty_queue(),
        memory={},
        missing_fields=[],
        last_error=None,
        error_retries=0,
        final_answer=None,
        done=False,
    )
