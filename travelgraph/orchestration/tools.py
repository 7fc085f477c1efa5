"""
Orchestrator tool table.

The orchestrator offers the model one decomposition tool, one interaction
tool and any domain tools (``resolve_date`` by default).
"""

from travelgraph.orchestration.schemas import DecompositionRequest, InteractionRequest
from travelgraph.shared.tools.dates import RESOLVE_DATE_TOOL
from travelgraph.shared.tools.registry import ToolKind, ToolSpec, ToolTable


CREATE_SUBTASKS_TOOL = ToolSpec(
    name="create_subtasks",
    kind=ToolKind.DECOMPOSITION,
    description=(
        "Creates the list of subtasks for the specialists once destination, departure "
        "and start date are known. Each subtask has a type (transportation, destination "
        "or food) and a payload with the trip details the specialist needs."
    ),
    payload_model=DecompositionRequest,
)

COLLECT_USER_INFO_TOOL = ToolSpec(
    name="collect_user_info",
    kind=ToolKind.INTERACTION,
    description=(
        "Asks the user for trip information that is still missing. Use it whenever "
        "destination, departure or start date is unknown, listing the missing fields."
    ),
    payload_model=InteractionRequest,
)


def default_orchestrator_tools() -> ToolTable:
    return ToolTable([CREATE_SUBTASKS_TOOL, COLLECT_USER_INFO_TOOL, RESOLVE_DATE_TOOL])
