"""
Top-level orchestrator graph.

Drives a conversation through the stages:
    orchestrator -> subtask_parser -> specialists -> summary
                 -> ask_user -> wait_for_user -> process_response -> orchestrator

Graph wiring lives in ``build``, the run/suspend/resume API in ``engine``.
"""

from travelgraph.graph.state import ConversationState, create_initial_state

__all__ = ["ConversationState", "create_initial_state"]
