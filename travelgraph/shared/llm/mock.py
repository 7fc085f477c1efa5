"""
Scripted chat model for offline runs and tests.

Replays queued responses in order and records every request it receives.
"""

import json
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from travelgraph.shared.llm.base import ModelChunk, ModelResponse, ToolCallDelta
from travelgraph.shared.messages.turns import ToolCall
from travelgraph.shared.tools.registry import ToolSpec


ScriptItem = Union[ModelResponse, str, Callable[..., Union[ModelResponse, str]], Exception]


def text_response(text: str) -> ModelResponse:
    return ModelResponse(text=text)


def tool_call_response(
    name: str,
    args: Optional[Dict[str, Any]] = None,
    text: str = "",
    call_id: Optional[str] = None,
) -> ModelResponse:
    """Build a response carrying a single tool call."""
    call = ToolCall(name=name, args=args or {})
    if call_id:
        call.id = call_id
    return ModelResponse(text=text, tool_calls=[call])


class ScriptedChatModel:
    """
    ChatModel that replays a script.

    Each script item is a ModelResponse, a plain string (a text reply), an
    exception instance (raised), or a callable taking
    ``(messages, tools, system)`` and returning one of the former.
    """

    def __init__(self, script: Iterable[ScriptItem] = (), default: Optional[ScriptItem] = None):
        self._script: Deque[ScriptItem] = deque(script)
        self.default = default
        self.calls: List[Dict[str, Any]] = []

    def push(self, *items: ScriptItem) -> None:
        self._script.extend(items)

    @property
    def remaining(self) -> int:
        return len(self._script)

    def invoke(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> ModelResponse:
        self.calls.append({
            "messages": list(messages),
            "tools": [spec.name for spec in tools or []],
            "system": system,
            "tool_choice": tool_choice,
        })

        if self._script:
            item = self._script.popleft()
        elif self.default is not None:
            item = self.default
        else:
            raise RuntimeError("ScriptedChatModel script is exhausted")

        if callable(item) and not isinstance(item, ModelResponse):
            item = item(messages, tools, system)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return ModelResponse(text=item)
        return item

    def stream(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> Iterator[ModelChunk]:
        """Replay the next scripted response split into word and argument fragments."""
        response = self.invoke(messages, tools=tools, system=system, tool_choice=tool_choice)

        for word in response.text.split(" ") if response.text else []:
            yield ModelChunk(text=word + " ")

        for index, call in enumerate(response.tool_calls):
            arguments = json.dumps(call.args, ensure_ascii=False)
            middle = len(arguments) // 2
            yield ModelChunk(tool_calls=[ToolCallDelta(index=index, id=call.id, name=call.name, arguments=arguments[:middle])])
            yield ModelChunk(tool_calls=[ToolCallDelta(index=index, arguments=arguments[middle:])])

        if response.usage:
            yield ModelChunk(usage=response.usage)
