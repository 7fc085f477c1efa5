"""
Stage identifiers.

Every node of the orchestrator graph is a stage. The ``stage`` state field
holds the id of the stage that should run next.
"""

from travelgraph.orchestration.schemas import SubtaskType

ORCHESTRATOR = "orchestrator"
SUBTASK_PARSER = "subtask_parser"
SUMMARY = "summary"

ASK_USER = "ask_user"
WAIT_FOR_USER = "wait_for_user"
PROCESS_RESPONSE = "process_response"
COMPLETE_INTERACTION = "complete_interaction"

# Specialist stage ids equal the subtask type they handle
SPECIALIST_STAGES = tuple(subtask_type.value for subtask_type in SubtaskType)

INTERACTION_STAGES = (ASK_USER, WAIT_FOR_USER, PROCESS_RESPONSE, COMPLETE_INTERACTION)

STAGE_IDS = frozenset((ORCHESTRATOR, SUBTASK_PARSER, SUMMARY) + SPECIALIST_STAGES + INTERACTION_STAGES)

# Target for any routing input that matches no rule
FALLBACK_STAGE = ASK_USER
