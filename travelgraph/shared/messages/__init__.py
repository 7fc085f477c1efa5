"""Conversation turn types and the message sequence validator."""

from travelgraph.shared.messages.turns import (
    AssistantTurn,
    ToolCall,
    ToolResult,
    Turn,
    UserTurn,
    assistant_turn,
    last_turn,
    to_turn,
    tool_result,
    turn_text,
    user_turn,
)
from travelgraph.shared.messages.validation import validate_message_sequence

__all__ = [
    "AssistantTurn",
    "ToolCall",
    "ToolResult",
    "Turn",
    "UserTurn",
    "assistant_turn",
    "last_turn",
    "to_turn",
    "tool_result",
    "turn_text",
    "user_turn",
    "validate_message_sequence",
]
