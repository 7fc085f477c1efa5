"""
travelgraph: a conversational trip-orchestration engine.

This package contains:
- shared/: Common infrastructure (errors, message turns, tools, model clients, logging)
- orchestration/: Orchestrator, subtask queue processor and summarizer stages
- specialists/: Transportation, destination and food specialist stages
- interaction/: User-interaction sub-machine (ask, suspend, extract)
- graph/: State, reducers, routers, graph wiring and the session engine
"""

from travelgraph.graph.build import create_orchestrator_graph
from travelgraph.graph.context import EngineContext
from travelgraph.graph.engine import SessionEngine, StageUpdate, Suspended
from travelgraph.interaction.graph.build import create_interaction_graph

__all__ = [
    "EngineContext",
    "SessionEngine",
    "StageUpdate",
    "Suspended",
    "create_interaction_graph",
    "create_orchestrator_graph",
]
