"""
Conversation turn types.

The message log is a closed union of three turn kinds discriminated by
``role``. Conversation state stores turns as plain dicts so checkpoints stay
JSON friendly; these models are the typed view over those dicts.
"""

import uuid
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Sequence, Union

from pydantic import BaseModel, Field, TypeAdapter


def _new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:12]}"


class ToolCall(BaseModel):
    """A tool invocation declared by an assistant turn."""

    id: str = Field(default_factory=_new_call_id)
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class UserTurn(BaseModel):
    role: Literal["user"] = "user"
    text: str


class AssistantTurn(BaseModel):
    role: Literal["assistant"] = "assistant"
    text: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    agent: Optional[str] = Field(
        default=None,
        description="Stage that produced the turn (orchestrator, a specialist, ask_user...)",
    )


class ToolResult(BaseModel):
    role: Literal["tool"] = "tool"
    tool_call_id: str
    content: str
    name: Optional[str] = None


Turn = Annotated[Union[UserTurn, AssistantTurn, ToolResult], Field(discriminator="role")]

_TURN_ADAPTER = TypeAdapter(Turn)


def to_turn(entry: Union[Dict[str, Any], BaseModel]) -> Union[UserTurn, AssistantTurn, ToolResult]:
    """Validate a stored message entry into its typed turn."""
    if isinstance(entry, (UserTurn, AssistantTurn, ToolResult)):
        return entry
    return _TURN_ADAPTER.validate_python(entry)


def to_turns(entries: Iterable[Union[Dict[str, Any], BaseModel]]) -> List[Union[UserTurn, AssistantTurn, ToolResult]]:
    return [to_turn(entry) for entry in entries]


def user_turn(text: str) -> Dict[str, Any]:
    return UserTurn(text=text).model_dump()


def assistant_turn(
    text: str = "",
    tool_calls: Optional[Sequence[Union[ToolCall, Dict[str, Any]]]] = None,
    agent: Optional[str] = None,
) -> Dict[str, Any]:
    calls = [ToolCall.model_validate(call) if isinstance(call, dict) else call for call in tool_calls or []]
    return AssistantTurn(text=text, tool_calls=calls, agent=agent).model_dump()


def tool_result(tool_call_id: str, content: str, name: Optional[str] = None) -> Dict[str, Any]:
    return ToolResult(tool_call_id=tool_call_id, content=content, name=name).model_dump()


def last_turn(entries: Sequence[Dict[str, Any]]) -> Optional[Union[UserTurn, AssistantTurn, ToolResult]]:
    """Return the typed last entry of the log, or None when empty."""
    if not entries:
        return None
    return to_turn(entries[-1])


def turn_text(turn: Union[UserTurn, AssistantTurn, ToolResult]) -> str:
    """Return the textual content of any turn kind."""
    if isinstance(turn, ToolResult):
        return turn.content
    return turn.text
