"""
Graph construction for the user-interaction sub-machine.

The nodes are added to the orchestrator graph by ``add_interaction_nodes``;
``create_interaction_graph`` compiles them on their own.
"""

from typing import Optional

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph

from travelgraph.graph.context import EngineContext
from travelgraph.graph.reducers import authorized_node
from travelgraph.graph.stages import ASK_USER, COMPLETE_INTERACTION, PROCESS_RESPONSE, WAIT_FOR_USER
from travelgraph.graph.state import ConversationState
from travelgraph.interaction.nodes import (
    complete_interaction_node,
    create_ask_user_node,
    create_process_response_node,
    route_after_ask,
    route_interaction_completion,
    wait_for_user_node,
)


def add_interaction_nodes(graph: StateGraph, context: EngineContext) -> None:
    """
    Add the interaction nodes and their internal edges to ``graph``.

    The structure is:
        ask_user → route_after_ask()
                     ├→ wait_for_user → process_response → route_interaction_completion()
                     │                                       ├→ ask_user (loop)
                     │                                       └→ complete_interaction
                     └→ complete_interaction

    The caller wires the edge leaving complete_interaction.
    """
    graph.add_node(ASK_USER, authorized_node(ASK_USER, create_ask_user_node(context.config)))
    graph.add_node(WAIT_FOR_USER, authorized_node(WAIT_FOR_USER, wait_for_user_node))
    graph.add_node(PROCESS_RESPONSE, authorized_node(PROCESS_RESPONSE, create_process_response_node(context)))
    graph.add_node(COMPLETE_INTERACTION, authorized_node(COMPLETE_INTERACTION, complete_interaction_node))

    graph.add_conditional_edges(
        ASK_USER,
        route_after_ask,
        {
            WAIT_FOR_USER: WAIT_FOR_USER,
            COMPLETE_INTERACTION: COMPLETE_INTERACTION,
        },
    )
    graph.add_edge(WAIT_FOR_USER, PROCESS_RESPONSE)
    graph.add_conditional_edges(
        PROCESS_RESPONSE,
        route_interaction_completion,
        {
            ASK_USER: ASK_USER,  # Loop back for more questions
            COMPLETE_INTERACTION: COMPLETE_INTERACTION,
        },
    )


def create_interaction_graph(
    context: EngineContext,
    checkpointer: Optional[BaseCheckpointSaver] = None,
):
    """
    Compile the interaction sub-machine as a standalone graph.

    It pauses before wait_for_user, like the orchestrator graph, and ends
    after complete_interaction.

    Args:
        context: Engine context
        checkpointer: Checkpoint store (a fresh MemorySaver if not provided)

    Returns:
        Compiled LangGraph application
    """
    graph = StateGraph(ConversationState)
    add_interaction_nodes(graph, context)
    graph.set_entry_point(ASK_USER)
    graph.add_edge(COMPLETE_INTERACTION, END)

    return graph.compile(
        checkpointer=checkpointer if checkpointer is not None else MemorySaver(),
        interrupt_before=[WAIT_FOR_USER],
    )
