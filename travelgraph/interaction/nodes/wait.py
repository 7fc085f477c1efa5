"""
Wait-for-user node: the suspend point of the interaction sub-machine.

The graph is compiled with ``interrupt_before=["wait_for_user"]``, so the run
stops before this node with the state already checkpointed. On resume the
engine applies ``resume_patch(value)`` as if this node had produced it and
the run continues into process_response.
"""

from typing import Any, Dict, Optional

from travelgraph.graph.stages import PROCESS_RESPONSE
from travelgraph.graph.state import ConversationState
from travelgraph.shared.messages.turns import user_turn


def resume_patch(value: Optional[str]) -> Dict[str, Any]:
    """
    Patch for resuming with an external value.

    A blank or missing value appends nothing; any other value becomes a user
    turn with exactly that text (surrounding whitespace stripped).
    """
    patch: Dict[str, Any] = {"stage": PROCESS_RESPONSE}
    text = value.strip() if isinstance(value, str) else ""
    if text:
        patch["messages"] = [user_turn(text)]
    return patch


def wait_for_user_node(state: ConversationState) -> Dict[str, Any]:
    """Runs only when the graph is compiled without the breakpoint: no value arrived."""
    return resume_patch(None)
