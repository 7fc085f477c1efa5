"""
Specialist stages: transportation, destination and food.

Each specialist handles the subtasks of the matching type.
"""

from typing import Dict

from travelgraph.graph.context import EngineContext
from travelgraph.specialists.base import SpecialistStage
from travelgraph.specialists.prompts import SPECIALIST_PROMPTS


def create_specialists(context: EngineContext) -> Dict[str, SpecialistStage]:
    """
    Build one specialist stage per subtask type.

    Args:
        context: Engine context; ``specialist_tools`` supplies each tool table

    Returns:
        Dict of stage id -> SpecialistStage
    """
    return {
        name: SpecialistStage(
            name=name,
            system_prompt=prompt,
            tools=context.tools_for(name),
            context=context,
            max_iterations=context.config.max_specialist_iterations,
        )
        for name, prompt in SPECIALIST_PROMPTS.items()
    }


__all__ = ["SpecialistStage", "create_specialists"]
