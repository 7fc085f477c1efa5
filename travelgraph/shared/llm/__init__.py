"""Model-invocation capability and its adapters."""

from travelgraph.shared.llm.base import ChatModel, ModelChunk, ModelResponse, ToolCallDelta, collect_stream
from travelgraph.shared.llm.client import OpenAIChatModel
from travelgraph.shared.llm.mock import ScriptedChatModel, text_response, tool_call_response

__all__ = [
    "ChatModel",
    "ModelChunk",
    "ModelResponse",
    "OpenAIChatModel",
    "ScriptedChatModel",
    "ToolCallDelta",
    "collect_stream",
    "text_response",
    "tool_call_response",
]
