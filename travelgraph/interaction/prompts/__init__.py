"""Question templates and prompt builders for the user-interaction sub-machine."""

from travelgraph.interaction.prompts.builders import (
    build_extraction_prompt,
    build_known_summary,
    build_question,
    field_label,
)
from travelgraph.interaction.prompts.templates import EXTRACTION_FAILED_MESSAGE, REFINEMENT_QUESTION

__all__ = [
    "EXTRACTION_FAILED_MESSAGE",
    "REFINEMENT_QUESTION",
    "build_extraction_prompt",
    "build_known_summary",
    "build_question",
    "field_label",
]
