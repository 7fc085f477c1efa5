"""
Reducer table for the conversation state.

Stages never mutate state. They return a partial patch, and every patched
field is folded into the current state by its reducer. The same functions
are attached to the LangGraph state schema in ``state.py``, so ``merge``
reproduces exactly what the graph run loop does.
"""

import functools
import logging
from typing import Any, Callable, Dict, FrozenSet, Optional

from travelgraph.shared.errors import UnauthorizedPatchError

logger = logging.getLogger(__name__)


def append_messages(current: Optional[list], update: Optional[list]) -> list:
    """Concatenate message entries in order."""
    return list(current or []) + list(update or [])


def replace_value(current: Any, update: Any) -> Any:
    """Last writer wins. An explicit None clears the field."""
    return update


def merge_memory(current: Optional[dict], update: Optional[dict]) -> dict:
    """Shallow-merge trip facts. A None value never overwrites a known fact."""
    merged = dict(current or {})
    for key, value in (update or {}).items():
        if value is not None:
            merged[key] = value
    return merged


REDUCERS: Dict[str, Callable[[Any, Any], Any]] = {
    "session_id": replace_value,
    "messages": append_messages,
    "stage": replace_value,
    "task_queue": replace_value,
    "memory": merge_memory,
    "missing_fields": replace_value,
    "last_error": replace_value,
    "error_retries": replace_value,
    "final_answer": replace_value,
    "done": replace_value,
}


# Fields each stage may write. Specialists share one entry.
STAGE_WRITES: Dict[str, FrozenSet[str]] = {
    "orchestrator": frozenset({"messages", "stage", "task_queue", "missing_fields", "last_error", "error_retries"}),
    "subtask_parser": frozenset({"stage", "task_queue", "last_error"}),
    "specialist": frozenset({"messages", "stage"}),
    "summary": frozenset({"messages", "stage", "task_queue", "final_answer", "done"}),
    "ask_user": frozenset({"messages", "stage", "missing_fields"}),
    "wait_for_user": frozenset({"messages", "stage"}),
    "process_response": frozenset({"messages", "stage", "memory", "missing_fields"}),
    "complete_interaction": frozenset({"stage", "missing_fields"}),
}


def check_patch(stage: str, patch: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Verify a stage only writes the fields it owns.

    Args:
        stage: Key into STAGE_WRITES
        patch: Partial state returned by the stage

    Returns:
        The patch (an empty dict for None)

    Raises:
        UnauthorizedPatchError: If the patch touches a field the stage does not own
    """
    patch = patch or {}
    allowed = STAGE_WRITES.get(stage)
    if allowed is None:
        raise UnauthorizedPatchError(f"Unknown stage '{stage}' has no write authorization")

    unauthorized = set(patch) - allowed
    if unauthorized:
        raise UnauthorizedPatchError(f"Stage '{stage}' may not write {sorted(unauthorized)}")
    return patch


def authorized_node(stage: str, node: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]) -> Callable:
    """Wrap a node function so its patch is checked against STAGE_WRITES."""

    @functools.wraps(node)
    def guarded(state: Dict[str, Any]) -> Dict[str, Any]:
        return check_patch(stage, node(state))

    return guarded


def merge(current: Dict[str, Any], patch: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Apply a patch to a state through the reducer table.

    Fields absent from the patch are left untouched.

    Raises:
        KeyError: If the patch names a field with no reducer
    """
    merged = dict(current)
    for field_name, value in (patch or {}).items():
        reducer = REDUCERS[field_name]
        merged[field_name] = reducer(merged.get(field_name), value)
    return merged


def combine_patches(first: Dict[str, Any], second: Dict[str, Any]) -> Dict[str, Any]:
    """
    Field-wise combination of two patches.

    ``merge(merge(s, first), second) == merge(s, combine_patches(first, second))``.
    Messages concatenate, memory merges, every other field takes the later
    writer.
    """
    combined = dict(first)
    for field_name, value in second.items():
        if field_name in combined:
            combined[field_name] = REDUCERS[field_name](combined[field_name], value)
        else:
            combined[field_name] = value
    return combined
