"""
Complete-interaction node.

Closes the interaction sub-machine and hands control back to the
orchestrator.
"""

import logging
from typing import Any, Dict

from travelgraph.graph.stages import ORCHESTRATOR
from travelgraph.graph.state import ConversationState


logger = logging.getLogger(__name__)


def complete_interaction_node(state: ConversationState) -> Dict[str, Any]:
    session_id = state.get("session_id", "unknown")
    _log = f"[session={session_id}] [graph=interaction] [node=complete_interaction] "
    logger.info(f"{_log}Interaction complete | known_fields={sorted(state.get('memory') or {})}")
    return {"stage": ORCHESTRATOR, "missing_fields": []}
