"""
Message sequence validation.

Model providers reject histories in which a tool result does not answer a
tool call declared by the assistant turn right before it, or in which an
assistant turn declares calls that never get answered. The validator prunes
such entries before every model invocation.

A "run" is a non-tool entry followed by the consecutive tool results after
it. Rules:
- A tool result is kept only if the entry opening its run was kept, is an
  assistant turn, declares the referenced call id, and that id has not been
  answered earlier in the run.
- An assistant turn with tool calls is kept only if every call it declares is
  answered within its run.

The filter is pure and idempotent, and logs each drop without raising.
"""

import logging
from typing import Any, Dict, List, Sequence, Set

from travelgraph.shared.errors import ErrorKind
from travelgraph.shared.messages.turns import AssistantTurn, ToolResult, to_turns

logger = logging.getLogger(__name__)


def _answered_in_run(turns: Sequence[Any], opener_index: int) -> Set[str]:
    """Collect tool call ids answered by the tool results following an opener."""
    answered: Set[str] = set()
    for turn in turns[opener_index + 1:]:
        if not isinstance(turn, ToolResult):
            break
        answered.add(turn.tool_call_id)
    return answered


def validate_message_sequence(messages: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Drop orphaned tool results and unanswered tool-call declarations.

    Args:
        messages: Stored message entries, oldest first

    Returns:
        New list holding the kept entries (the same objects, in order)
    """
    if not messages:
        return []

    turns = to_turns(messages)
    kept: List[Dict[str, Any]] = []

    opener = None
    opener_kept = False
    declared: Set[str] = set()
    answered: Set[str] = set()

    for index, (entry, turn) in enumerate(zip(messages, turns)):
        if isinstance(turn, ToolResult):
            if not opener_kept or not isinstance(opener, AssistantTurn):
                reason = "no assistant turn opens its run"
            elif turn.tool_call_id not in declared:
                reason = "call id was never declared"
            elif turn.tool_call_id in answered:
                reason = "call id already answered"
            else:
                answered.add(turn.tool_call_id)
                kept.append(entry)
                continue
            logger.warning(
                f"Dropping tool result at index {index} ({ErrorKind.ORPHANED_TOOL_MESSAGE.value}) | "
                f"tool_call_id={turn.tool_call_id}, reason={reason}"
            )
            continue

        # Any non-tool entry opens a new run
        opener = turn
        answered = set()
        declared = set()

        if isinstance(turn, AssistantTurn) and turn.tool_calls:
            declared = {call.id for call in turn.tool_calls}
            unanswered = declared - _answered_in_run(turns, index)
            if unanswered:
                logger.warning(
                    f"Dropping assistant turn at index {index} | "
                    f"unanswered_calls={sorted(unanswered)}"
                )
                opener_kept = False
                continue

        opener_kept = True
        kept.append(entry)

    if len(kept) != len(messages):
        logger.warning(f"Message sequence repaired | kept={len(kept)}, dropped={len(messages) - len(kept)}")

    return kept
