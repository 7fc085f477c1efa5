from travelgraph.interaction.graph.build import add_interaction_nodes, create_interaction_graph

__all__ = ["add_interaction_nodes", "create_interaction_graph"]
