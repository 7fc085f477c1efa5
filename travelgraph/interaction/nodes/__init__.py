"""Node functions for the user-interaction sub-machine."""

from travelgraph.interaction.nodes.ask_user import create_ask_user_node
from travelgraph.interaction.nodes.complete import complete_interaction_node
from travelgraph.interaction.nodes.process_response import create_process_response_node
from travelgraph.interaction.nodes.routing import route_after_ask, route_interaction_completion
from travelgraph.interaction.nodes.wait import resume_patch, wait_for_user_node

__all__ = [
    "complete_interaction_node",
    "create_ask_user_node",
    "create_process_response_node",
    "resume_patch",
    "route_after_ask",
    "route_interaction_completion",
    "wait_for_user_node",
]
