"""
Date resolution domain tool.

Resolves natural language dates ("tomorrow", "next friday", "in 3 days",
"明天", "2025-10-01") into ISO ``YYYY-MM-DD`` strings for the orchestrator.
"""

import json
import re
from datetime import date, datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field

from travelgraph.shared.tools.registry import ToolKind, ToolSpec


WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

RELATIVE_DAYS = {
    "today": 0,
    "tonight": 0,
    "tomorrow": 1,
    "day after tomorrow": 2,
    "the day after tomorrow": 2,
    "今天": 0,
    "明天": 1,
    "后天": 2,
    "大后天": 3,
}

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d", "%d %B %Y", "%B %d %Y", "%B %d, %Y")
_IN_N_PATTERN = re.compile(r"^in (\d+) (day|days|week|weeks)$")
_WEEKDAY_PATTERN = re.compile(r"^(this |next )?(" + "|".join(WEEKDAYS) + r")$")
_CN_DATE_PATTERN = re.compile(r"^(?:(\d{4})年)?(\d{1,2})月(\d{1,2})[日号]$")


class DateQuery(BaseModel):
    date: str = Field(description="The natural language date, e.g. 'tomorrow' or 'next Friday'")


def resolve_date_text(text: str, today: Optional[date] = None) -> date:
    """
    Resolve a natural language date relative to ``today``.

    Args:
        text: Date phrase
        today: Reference date (defaults to the current date)

    Returns:
        Resolved date

    Raises:
        ValueError: If the phrase is not recognized
    """
    today = today or date.today()
    phrase = " ".join(text.strip().lower().split())

    if phrase in RELATIVE_DAYS:
        return today + timedelta(days=RELATIVE_DAYS[phrase])

    match = _IN_N_PATTERN.match(phrase)
    if match:
        amount = int(match.group(1))
        unit_days = 7 if match.group(2).startswith("week") else 1
        return today + timedelta(days=amount * unit_days)

    match = _WEEKDAY_PATTERN.match(phrase)
    if match:
        target = WEEKDAYS.index(match.group(2))
        if match.group(1) == "next ":
            # The given weekday of the following calendar week
            next_monday = today + timedelta(days=7 - today.weekday())
            return next_monday + timedelta(days=target)
        return today + timedelta(days=(target - today.weekday()) % 7)

    match = _CN_DATE_PATTERN.match(phrase)
    if match:
        year = int(match.group(1)) if match.group(1) else today.year
        resolved = date(year, int(match.group(2)), int(match.group(3)))
        if not match.group(1) and resolved < today:
            resolved = date(year + 1, resolved.month, resolved.day)
        return resolved

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(phrase, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Unrecognized date: '{text}'")


def resolve_date(date: str) -> str:
    """Tool entry point: returns ``{"date": "YYYY-MM-DD"}`` as JSON."""
    resolved = resolve_date_text(date)
    return json.dumps({"date": resolved.isoformat()})


RESOLVE_DATE_TOOL = ToolSpec(
    name="resolve_date",
    kind=ToolKind.DOMAIN,
    description="Resolves a natural language date into a machine-readable YYYY-MM-DD date.",
    payload_model=DateQuery,
)
