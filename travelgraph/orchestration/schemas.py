"""
Pydantic schemas for task decomposition and the subtask queue.

Subtasks are immutable. The queue is stored in state as a plain dict
``{"tasks": [...], "cursor": int, "in_flight": bool}`` so checkpoints stay
JSON friendly; the helpers here convert between the two views.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class SubtaskType(str, Enum):
    TRANSPORTATION = "transportation"
    DESTINATION = "destination"
    FOOD = "food"


# Names models commonly use for each subtask type
SUBTASK_TYPE_ALIASES: Dict[str, SubtaskType] = {
    "transport": SubtaskType.TRANSPORTATION,
    "transportation_planning": SubtaskType.TRANSPORTATION,
    "route": SubtaskType.TRANSPORTATION,
    "routing": SubtaskType.TRANSPORTATION,
    "attraction": SubtaskType.DESTINATION,
    "attractions": SubtaskType.DESTINATION,
    "attraction_planning": SubtaskType.DESTINATION,
    "sightseeing": SubtaskType.DESTINATION,
    "food_recommendation": SubtaskType.FOOD,
    "restaurant": SubtaskType.FOOD,
    "restaurants": SubtaskType.FOOD,
    "dining": SubtaskType.FOOD,
}


class Subtask(BaseModel):
    """One unit of work handed to a specialist."""

    model_config = ConfigDict(frozen=True)

    type: SubtaskType
    payload: Dict[str, Any] = Field(
        default_factory=dict,
        description="Task details for the specialist (origin, destination, dates, preferences...)",
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_task_prompt_shape(cls, data: Any) -> Any:
        # {"task_type": ..., "task_prompt_for_expert_agent": {...}}
        if isinstance(data, dict) and "type" not in data and "task_type" in data:
            data = {
                "type": data["task_type"],
                "payload": data.get("task_prompt_for_expert_agent") or data.get("payload") or {},
            }
        return data

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            key = value.strip().lower()
            return SUBTASK_TYPE_ALIASES.get(key, key)
        return value


class DecompositionRequest(BaseModel):
    """Arguments of the ``create_subtasks`` decomposition tool."""

    subtasks: List[Subtask] = Field(
        min_length=1,
        description="Ordered subtasks, one per specialist to run",
    )


class InteractionRequest(BaseModel):
    """Arguments of the ``collect_user_info`` interaction tool."""

    reason: str = Field(default="", description="Why more information is needed")
    missing_fields: List[str] = Field(
        default_factory=list,
        description="Trip fields still needed, e.g. destination, departure, startDate",
    )


def empty_queue() -> Dict[str, Any]:
    return {"tasks": [], "cursor": -1, "in_flight": False}


def make_queue(subtasks: Sequence[Subtask], cursor: int = 0, in_flight: bool = False) -> Dict[str, Any]:
    """Serialize subtasks into the state view of the queue."""
    return {
        "tasks": [subtask.model_dump(mode="json") for subtask in subtasks],
        "cursor": cursor,
        "in_flight": in_flight,
    }


def current_task(queue: Optional[Dict[str, Any]]) -> Optional[Subtask]:
    """The subtask under the cursor, or None when the cursor is out of range."""
    queue = queue or {}
    tasks = queue.get("tasks") or []
    cursor = queue.get("cursor", -1)
    if not isinstance(cursor, int) or not 0 <= cursor < len(tasks):
        return None
    return Subtask.model_validate(tasks[cursor])
