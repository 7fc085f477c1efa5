"""
Model-invocation capability.

Stages talk to language models through the ``ChatModel`` protocol. A
response is either plain text or text plus tool calls. Streaming models emit
``ModelChunk`` pieces which ``collect_stream`` assembles into the same
``ModelResponse`` a single-shot call would return.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol, Sequence

from travelgraph.shared.messages.turns import ToolCall
from travelgraph.shared.tools.registry import ToolSpec


# Key under which undecodable tool arguments are preserved, so payload
# validation reports them instead of the stream assembler.
RAW_ARGUMENTS_KEY = "__raw_arguments__"


@dataclass
class ModelResponse:
    text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    usage: Dict[str, int] = field(default_factory=dict)
    model: Optional[str] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


@dataclass
class ToolCallDelta:
    """A fragment of a tool call as emitted by a streaming model."""

    index: int
    id: Optional[str] = None
    name: Optional[str] = None
    arguments: str = ""


@dataclass
class ModelChunk:
    text: str = ""
    tool_calls: List[ToolCallDelta] = field(default_factory=list)
    usage: Dict[str, int] = field(default_factory=dict)


class ChatModel(Protocol):
    def invoke(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> ModelResponse:
        ...

    def stream(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> Iterator[ModelChunk]:
        ...


def parse_tool_arguments(raw: Optional[str]) -> Dict[str, Any]:
    """
    Decode a tool call's JSON argument string.

    Empty input means no arguments. Input that does not decode to an object is
    kept under ``RAW_ARGUMENTS_KEY``.
    """
    if not raw or not raw.strip():
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError:
        return {RAW_ARGUMENTS_KEY: raw}
    if not isinstance(decoded, dict):
        return {RAW_ARGUMENTS_KEY: raw}
    return decoded


def collect_stream(chunks: Iterable[ModelChunk]) -> ModelResponse:
    """
    Assemble streamed chunks into a single response.

    Text pieces are concatenated in order. Tool-call fragments are grouped by
    their index; the id and name arrive once, the argument JSON arrives in
    pieces.

    Args:
        chunks: Chunks in emission order

    Returns:
        The equivalent single-shot ModelResponse
    """
    text_parts: List[str] = []
    slots: Dict[int, Dict[str, Any]] = {}
    usage: Dict[str, int] = {}

    for chunk in chunks:
        if chunk.text:
            text_parts.append(chunk.text)
        if chunk.usage:
            usage = dict(chunk.usage)
        for delta in chunk.tool_calls:
            slot = slots.setdefault(delta.index, {"id": None, "name": "", "arguments": []})
            if delta.id:
                slot["id"] = delta.id
            if delta.name:
                slot["name"] += delta.name
            if delta.arguments:
                slot["arguments"].append(delta.arguments)

    tool_calls = []
    for index in sorted(slots):
        slot = slots[index]
        call = ToolCall(name=slot["name"], args=parse_tool_arguments("".join(slot["arguments"])))
        if slot["id"]:
            call.id = slot["id"]
        tool_calls.append(call)

    return ModelResponse(text="".join(text_parts).strip(), tool_calls=tool_calls, usage=usage)
