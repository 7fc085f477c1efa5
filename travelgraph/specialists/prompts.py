"""
System prompts for the specialist stages.
"""

import json
from typing import Any, Dict, Optional

from travelgraph.orchestration.schemas import Subtask, SubtaskType


TRANSPORTATION_PROMPT = """You are a top transportation planning expert.
Find and compare the best ways to travel between the departure and the
destination on the given date (flights, trains, driving).

Output requirements:
- A markdown table with columns: mode, service/flight number, departure time,
  arrival time, duration, estimated price.
- At least 3 options when available.
- Be direct and factual; use the tools when you need live data."""

DESTINATION_PROMPT = """You are a top destination expert.
Design a detailed and enjoyable itinerary at the destination for the given dates.

Output requirements:
- A timeline per day with morning, afternoon and evening activities: place,
  short description, suggested time to stay.
- Balanced pace and sensible routes between places.
- Prefer representative, well-reviewed places; use the tools when you need live data."""

FOOD_PROMPT = """You are a gourmet who knows the local food scene of the destination.
Recommend must-try local dishes and well-rated restaurants.

Output requirements:
- A list where each item has: dish or restaurant name, kind (local cuisine,
  snack...), why it is recommended, estimated price per person.
- At least 5 options across different kinds and price levels.
- Prefer local specialities and long-established places."""

SPECIALIST_PROMPTS: Dict[str, str] = {
    SubtaskType.TRANSPORTATION.value: TRANSPORTATION_PROMPT,
    SubtaskType.DESTINATION.value: DESTINATION_PROMPT,
    SubtaskType.FOOD.value: FOOD_PROMPT,
}

BEST_EFFORT_INSTRUCTION = (
    "You have used all available tool rounds. Give your best final answer now "
    "from the information gathered so far, without calling tools."
)


def build_task_prompt(task: Optional[Subtask], memory: Optional[Dict[str, Any]]) -> str:
    """
    Render the user message handed to a specialist.

    Args:
        task: Subtask under the cursor (None when the queue is inconsistent)
        memory: Known trip facts

    Returns:
        Task description with payload and trip facts as JSON
    """
    lines = []
    if task is not None:
        lines.append(f"Task: {task.type.value}")
        lines.append(f"Task details:\n{json.dumps(task.payload, ensure_ascii=False, indent=2)}")
    else:
        lines.append("Task: help with the current trip")
    lines.append(f"Known trip facts:\n{json.dumps(memory or {}, ensure_ascii=False, indent=2)}")
    return "\n\n".join(lines)
