"""
Question and prompt builders for the user-interaction sub-machine.
"""

import json
from typing import Any, Dict, List, Optional

from travelgraph.interaction.fields import is_field_answered
from travelgraph.interaction.prompts.templates import (
    EXTRACTION_PROMPT,
    FIELD_LABELS,
    FIELD_QUESTIONS,
    KNOWN_NONE,
    KNOWN_PREFIX,
    REFINEMENT_QUESTION,
    UNKNOWN_FIELD_QUESTION,
)


def field_label(field_name: str) -> str:
    if field_name in FIELD_LABELS:
        return FIELD_LABELS[field_name]
    # hotel_preference -> hotel preference
    return field_name.replace("_", " ").strip()


def _format_value(value: Any) -> str:
    if isinstance(value, list):
        return "/".join(str(item) for item in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_known_summary(memory: Optional[Dict[str, Any]]) -> str:
    """
    Render the known-facts line, e.g. ``Known: destination: Tokyo; dates: 2025-10-01~2025-10-05``.

    Only answered fields are listed. Start and end dates are shown as a range
    when both exist, otherwise as "departing"/"returning".
    """
    memory = memory or {}
    parts: List[str] = []

    if is_field_answered(memory, "departure"):
        parts.append(f"departure: {_format_value(memory['departure'])}")
    if is_field_answered(memory, "destination"):
        parts.append(f"destination: {_format_value(memory['destination'])}")

    has_start = is_field_answered(memory, "startDate")
    has_end = is_field_answered(memory, "endDate")
    if has_start and has_end:
        parts.append(f"dates: {memory['startDate']}~{memory['endDate']}")
    elif has_start:
        parts.append(f"departing: {memory['startDate']}")
    elif has_end:
        parts.append(f"returning: {memory['endDate']}")

    for field_name in ("travelers", "budget", "preferences", "transportation"):
        if is_field_answered(memory, field_name):
            parts.append(f"{field_label(field_name)}: {_format_value(memory[field_name])}")

    if not parts:
        return KNOWN_NONE
    return KNOWN_PREFIX + "; ".join(parts)


def build_question_sentence(fields: List[str]) -> str:
    """Join the question clauses of ``fields`` into one sentence."""
    if not fields:
        return REFINEMENT_QUESTION

    clauses = [
        FIELD_QUESTIONS.get(field_name) or UNKNOWN_FIELD_QUESTION.format(label=field_label(field_name))
        for field_name in fields
    ]
    if len(clauses) == 1:
        sentence = clauses[0]
    else:
        sentence = ", ".join(clauses[:-1]) + " and " + clauses[-1]
    return sentence[0].upper() + sentence[1:] + "?"


def build_question(fields: List[str], memory: Optional[Dict[str, Any]]) -> str:
    """
    Render the two-line clarifying question.

    Args:
        fields: Fields to ask about (empty for the refinement question)
        memory: Known trip facts

    Returns:
        Known-facts line and question sentence separated by a newline
    """
    return f"{build_known_summary(memory)}\n{build_question_sentence(fields)}"


def build_extraction_prompt(memory: Optional[Dict[str, Any]], tool_name: str) -> str:
    return EXTRACTION_PROMPT.format(
        trip_plan=json.dumps(memory or {}, ensure_ascii=False, indent=2),
        tool_name=tool_name,
    )
