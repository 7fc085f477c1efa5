"""
Graph construction for the orchestrator.

Builds and compiles the LangGraph workflow with nodes, edges, and the
human-in-the-loop breakpoint.
"""

from typing import Optional

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph

from travelgraph.graph.context import EngineContext
from travelgraph.graph.reducers import authorized_node
from travelgraph.graph.router import route_stage, route_subtask
from travelgraph.graph.stages import (
    ASK_USER,
    COMPLETE_INTERACTION,
    ORCHESTRATOR,
    SPECIALIST_STAGES,
    SUBTASK_PARSER,
    SUMMARY,
    WAIT_FOR_USER,
)
from travelgraph.graph.state import ConversationState
from travelgraph.interaction.graph.build import add_interaction_nodes
from travelgraph.orchestration.nodes import create_orchestrator_node, create_summarizer_node, subtask_parser_node
from travelgraph.specialists import create_specialists


def create_orchestrator_graph(
    context: EngineContext,
    checkpointer: Optional[BaseCheckpointSaver] = None,
):
    """
    Create and compile the orchestrator graph.

    The graph structure is:
        Entry → orchestrator → route_stage()
                  ├→ orchestrator (error or domain tool loop-back)
                  ├→ subtask_parser → route_subtask()
                  │     ├→ transportation | destination | food → subtask_parser
                  │     ├→ summary → END
                  │     ├→ orchestrator (unparseable task list)
                  │     └→ ask_user (fallback)
                  └→ ask_user → ... → complete_interaction → orchestrator

    The run pauses before wait_for_user; the engine resumes it.

    Args:
        context: Engine context shared by every stage
        checkpointer: Checkpoint store (a fresh MemorySaver if not provided)

    Returns:
        Compiled LangGraph application ready for execution.
    """
    graph = StateGraph(ConversationState)

    # Add nodes
    graph.add_node(ORCHESTRATOR, authorized_node(ORCHESTRATOR, create_orchestrator_node(context)))
    graph.add_node(SUBTASK_PARSER, authorized_node(SUBTASK_PARSER, subtask_parser_node))
    for name, specialist in create_specialists(context).items():
        graph.add_node(name, authorized_node("specialist", specialist))
    graph.add_node(SUMMARY, authorized_node(SUMMARY, create_summarizer_node(context)))
    add_interaction_nodes(graph, context)

    # Set entry point
    graph.set_entry_point(ORCHESTRATOR)

    graph.add_conditional_edges(
        ORCHESTRATOR,
        route_stage,
        {
            ORCHESTRATOR: ORCHESTRATOR,
            SUBTASK_PARSER: SUBTASK_PARSER,
            ASK_USER: ASK_USER,
        },
    )

    subtask_targets = {name: name for name in SPECIALIST_STAGES}
    subtask_targets.update({SUMMARY: SUMMARY, ORCHESTRATOR: ORCHESTRATOR, ASK_USER: ASK_USER})
    graph.add_conditional_edges(SUBTASK_PARSER, route_subtask, subtask_targets)

    # Specialists always report back to the queue processor
    for name in SPECIALIST_STAGES:
        graph.add_edge(name, SUBTASK_PARSER)

    graph.add_edge(COMPLETE_INTERACTION, ORCHESTRATOR)
    graph.add_edge(SUMMARY, END)

    return graph.compile(
        checkpointer=checkpointer if checkpointer is not None else MemorySaver(),
        interrupt_before=[WAIT_FOR_USER],
    )
