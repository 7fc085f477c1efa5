"""
Trip fields gathered by the user-interaction sub-machine.

Defines the known fields, their question precedence and which of them are
required before the orchestrator can decompose the trip. All logic here is
deterministic code; no model is involved.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class FieldConfig:
    """
    Field catalogue and question rules.

    Lower precedence numbers are asked first. Fields sharing a number form
    one tier.
    """

    TRIP_FIELDS: Tuple[str, ...] = (
        "destination",
        "departure",
        "startDate",
        "endDate",
        "budget",
        "transportation",
        "travelers",
        "preferences",
    )

    PRECEDENCE: Tuple[Tuple[str, int], ...] = (
        ("destination", 1),
        ("departure", 2),
        ("startDate", 3),
        ("endDate", 3),
        ("budget", 4),
        ("transportation", 4),
        ("travelers", 5),
        ("preferences", 5),
    )

    # Fields outside the catalogue are asked last
    UNKNOWN_PRECEDENCE: int = 6

    HARD_REQUIRED: Tuple[str, ...] = ("destination", "departure", "startDate")

    TRANSPORTATION_MODES: Tuple[str, ...] = ("flight", "train", "car")


DEFAULT_FIELD_CONFIG = FieldConfig()

TRIP_FIELDS = DEFAULT_FIELD_CONFIG.TRIP_FIELDS
HARD_REQUIRED_FIELDS = DEFAULT_FIELD_CONFIG.HARD_REQUIRED
FIELD_PRECEDENCE: Dict[str, int] = dict(DEFAULT_FIELD_CONFIG.PRECEDENCE)


def field_precedence(field_name: str) -> int:
    return FIELD_PRECEDENCE.get(field_name, DEFAULT_FIELD_CONFIG.UNKNOWN_PRECEDENCE)


def is_field_answered(memory: Dict[str, Any], field_name: str) -> bool:
    """
    Check if a field has been answered (non-null, non-empty).

    Args:
        memory: Known trip facts
        field_name: Field name to check

    Returns:
        True if field has a meaningful value
    """
    value = memory.get(field_name)

    if value is None:
        return False

    if isinstance(value, str) and not value.strip():
        return False

    if isinstance(value, (list, dict)) and len(value) == 0:
        return False

    return True


def order_by_precedence(fields: Iterable[str]) -> List[str]:
    """Deduplicate fields and sort them by precedence, keeping input order within a tier."""
    unique = list(dict.fromkeys(fields))
    return sorted(unique, key=field_precedence)


def missing_trip_fields(memory: Optional[Dict[str, Any]], fields: Iterable[str] = TRIP_FIELDS) -> List[str]:
    """
    Fields of ``fields`` not yet answered in memory, by precedence.

    Args:
        memory: Known trip facts
        fields: Fields to check (defaults to every trip field)

    Returns:
        Unanswered fields ordered by precedence
    """
    memory = memory or {}
    return order_by_precedence(field for field in fields if not is_field_answered(memory, field))


def required_missing(missing_fields: Iterable[str]) -> List[str]:
    """The hard-required fields among ``missing_fields``."""
    return [field for field in order_by_precedence(missing_fields) if field in HARD_REQUIRED_FIELDS]


def recompute_missing(declared: Iterable[str], memory: Optional[Dict[str, Any]]) -> List[str]:
    """Unanswered fields among the declared ones plus the hard-required ones."""
    return missing_trip_fields(memory, list(declared) + list(HARD_REQUIRED_FIELDS))


def is_trip_plan_complete(memory: Optional[Dict[str, Any]]) -> bool:
    """True when every hard-required field is known."""
    return not missing_trip_fields(memory, HARD_REQUIRED_FIELDS)


def select_question_fields(missing: Iterable[str], max_fields: int = 3) -> List[str]:
    """
    Choose the fields for the next question.

    Starts with the highest-priority missing field and batches the fields of
    the same or the next tier, up to ``max_fields``.

    Args:
        missing: Unanswered fields
        max_fields: Maximum fields per question (at least 1)

    Returns:
        Fields to ask about, highest priority first (empty if none missing)
    """
    ordered = order_by_precedence(missing)
    if not ordered:
        return []

    top = field_precedence(ordered[0])
    batch = [field for field in ordered if field_precedence(field) <= top + 1]
    return batch[: max(1, max_fields)]


def merge_trip_details(memory: Optional[Dict[str, Any]], details: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge extracted details into memory; None never overwrites a known value."""
    merged = dict(memory or {})
    for key, value in (details or {}).items():
        if value is not None:
            merged[key] = value
    return merged
