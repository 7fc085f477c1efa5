"""
Pydantic schema for trip details extracted from a user reply.

Validators are lenient: a value that cannot be normalized becomes None and
is dropped at merge time, instead of failing the whole extraction.
"""

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


TRANSPORTATION_SYNONYMS: Dict[str, str] = {
    "flight": "flight",
    "flights": "flight",
    "fly": "flight",
    "plane": "flight",
    "airplane": "flight",
    "air": "flight",
    "飞机": "flight",
    "train": "train",
    "trains": "train",
    "rail": "train",
    "high-speed rail": "train",
    "火车": "train",
    "高铁": "train",
    "动车": "train",
    "car": "car",
    "drive": "car",
    "driving": "car",
    "self-drive": "car",
    "road trip": "car",
    "自驾": "car",
    "开车": "car",
}

_NUMBER_PATTERN = re.compile(r"\d+(?:\.\d+)?")


def normalize_transportation(value: Any) -> Optional[str]:
    """Map a transportation phrase to flight, train or car (None if unknown)."""
    if not isinstance(value, str):
        return None
    return TRANSPORTATION_SYNONYMS.get(value.strip().lower())


class TripDetails(BaseModel):
    """Trip facts the user stated explicitly. Omitted facts stay None."""

    destination: Optional[str] = Field(default=None, description="Destination city the user explicitly wants to visit")
    departure: Optional[str] = Field(default=None, description="City the user departs from")
    startDate: Optional[str] = Field(default=None, description="Departure date, YYYY-MM-DD")
    endDate: Optional[str] = Field(default=None, description="Return date, YYYY-MM-DD")
    budget: Optional[float] = Field(default=None, description="Budget amount, only if the user gave a number")
    transportation: Optional[str] = Field(
        default=None,
        description="flight, train or car; only if the user named a mode of transport",
    )
    travelers: Optional[int] = Field(default=None, description="Number of travelers")
    preferences: Optional[List[str]] = Field(default=None, description="Interests such as food, nature, museums")

    @field_validator("destination", "departure", "startDate", "endDate", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("transportation", mode="before")
    @classmethod
    def _normalize_transportation(cls, value: Any) -> Optional[str]:
        return normalize_transportation(value)

    @field_validator("budget", mode="before")
    @classmethod
    def _parse_budget(cls, value: Any) -> Optional[float]:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            # "10000-15000" keeps the lower bound
            match = _NUMBER_PATTERN.search(value.replace(",", ""))
            return float(match.group()) if match else None
        return None

    @field_validator("travelers", mode="before")
    @classmethod
    def _parse_travelers(cls, value: Any) -> Optional[int]:
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return int(value) if value > 0 else None
        if isinstance(value, str):
            match = re.search(r"\d+", value)
            return int(match.group()) if match and int(match.group()) > 0 else None
        return None

    @field_validator("preferences", mode="before")
    @classmethod
    def _listify_preferences(cls, value: Any) -> Optional[List[str]]:
        if value is None:
            return None
        if isinstance(value, str):
            value = re.split(r"[,/;、，]", value)
        if not isinstance(value, list):
            return None
        cleaned = [str(item).strip() for item in value if str(item).strip()]
        return cleaned or None

    def known_values(self) -> Dict[str, Any]:
        """The extracted fields that carry a value."""
        return {key: value for key, value in self.model_dump().items() if value is not None}
