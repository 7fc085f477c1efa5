"""Orchestration node functions for the LangGraph workflow."""

from travelgraph.orchestration.nodes.orchestrator import create_orchestrator_node
from travelgraph.orchestration.nodes.subtask_parser import parse_subtasks, subtask_parser_node
from travelgraph.orchestration.nodes.summarizer import create_summarizer_node

__all__ = [
    "create_orchestrator_node",
    "create_summarizer_node",
    "parse_subtasks",
    "subtask_parser_node",
]
