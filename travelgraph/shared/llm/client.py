"""
OpenAI chat model with retry logic.

Provides a ``ChatModel`` implementation over the chat-completions API (tool
calling and streaming), with automatic retries using tenacity.
"""

import json
import logging
import os
from typing import Any, Dict, Iterator, List, Optional, Sequence

from dotenv import load_dotenv
from openai import OpenAI
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from travelgraph.shared.llm.base import ModelChunk, ModelResponse, ToolCallDelta, parse_tool_arguments
from travelgraph.shared.messages.turns import AssistantTurn, ToolCall, UserTurn, to_turn
from travelgraph.shared.tools.registry import ToolSpec

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MODEL = os.environ.get("TRAVELGRAPH_MODEL", "gpt-4.1-mini")


def to_openai_messages(messages: Sequence[Dict[str, Any]], system: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Convert stored turns into chat-completions message dicts.

    Args:
        messages: Stored message entries
        system: Optional system prompt, sent first

    Returns:
        List of OpenAI message dicts
    """
    converted: List[Dict[str, Any]] = []
    if system:
        converted.append({"role": "system", "content": system})

    for entry in messages:
        turn = to_turn(entry)
        if isinstance(turn, UserTurn):
            converted.append({"role": "user", "content": turn.text})
        elif isinstance(turn, AssistantTurn):
            message: Dict[str, Any] = {"role": "assistant", "content": turn.text}
            if turn.tool_calls:
                message["content"] = turn.text or None
                message["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.args, ensure_ascii=False),
                        },
                    }
                    for call in turn.tool_calls
                ]
            converted.append(message)
        else:
            converted.append({"role": "tool", "tool_call_id": turn.tool_call_id, "content": turn.content})

    return converted


def to_openai_tool_choice(tool_choice: Optional[str]) -> Any:
    """Map a tool choice ("auto", "none", "required" or a tool name) to the API form."""
    if tool_choice in (None, "auto", "none", "required"):
        return tool_choice
    return {"type": "function", "function": {"name": tool_choice}}


def _usage_dict(usage: Any) -> Dict[str, int]:
    if usage is None:
        return {}
    return {
        "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
        "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
        "total_tokens": getattr(usage, "total_tokens", 0) or 0,
    }


class OpenAIChatModel:
    """
    ChatModel backed by the OpenAI chat-completions API.

    The underlying client is created lazily on the first call, so building
    the model does not require credentials. Each model owns its client.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        client: Optional[OpenAI] = None,
        timeout: int = 60,
        max_retries: int = 3,
        retry_min_wait: int = 2,
        retry_max_wait: int = 10,
        temperature: Optional[float] = None,
    ):
        self.model = model
        self._client = client
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait
        self.temperature = temperature

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OPENAI_API_KEY environment variable is not set. "
                    "Please set it to your OpenAI API key."
                )
            self._client = OpenAI(api_key=api_key)
        return self._client

    def _request(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]],
        system: Optional[str],
        tool_choice: Optional[str],
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": to_openai_messages(messages, system),
            "timeout": self.timeout,
        }
        if tools:
            request["tools"] = [spec.to_openai_schema() for spec in tools]
            if tool_choice is not None:
                request["tool_choice"] = to_openai_tool_choice(tool_choice)
        if self.temperature is not None:
            request["temperature"] = self.temperature
        return request

    def _create(self, **request: Any) -> Any:
        """Create a completion, retrying transient failures with exponential backoff."""
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=self.retry_min_wait, max=self.retry_max_wait),
            retry=retry_if_exception_type((Exception,)),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(f"Retrying OpenAI request | attempt={attempt.retry_state.attempt_number}")
                return self.client.chat.completions.create(**request)

    def invoke(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> ModelResponse:
        """
        Call the chat-completions API once.

        Args:
            messages: Stored message entries
            tools: Tool specs offered to the model
            system: System prompt
            tool_choice: "auto", "none", "required" or a tool name to force

        Returns:
            ModelResponse with text and any tool calls

        Raises:
            Exception: If all retry attempts fail.
        """
        response = self._create(**self._request(messages, tools, system, tool_choice))
        message = response.choices[0].message

        tool_calls = [
            ToolCall(
                id=call.id,
                name=call.function.name,
                args=parse_tool_arguments(call.function.arguments),
            )
            for call in message.tool_calls or []
        ]

        return ModelResponse(
            text=(message.content or "").strip(),
            tool_calls=tool_calls,
            usage=_usage_dict(getattr(response, "usage", None)),
            model=getattr(response, "model", self.model),
        )

    def stream(
        self,
        messages: Sequence[Dict[str, Any]],
        tools: Optional[Sequence[ToolSpec]] = None,
        system: Optional[str] = None,
        tool_choice: Optional[str] = None,
    ) -> Iterator[ModelChunk]:
        """Stream the completion as chunks of text and tool-call deltas."""
        request = self._request(messages, tools, system, tool_choice)
        request["stream"] = True
        request["stream_options"] = {"include_usage": True}

        for event in self._create(**request):
            usage = _usage_dict(getattr(event, "usage", None))
            if not event.choices:
                if usage:
                    yield ModelChunk(usage=usage)
                continue

            delta = event.choices[0].delta
            deltas = [
                ToolCallDelta(
                    index=call.index,
                    id=call.id,
                    name=call.function.name if call.function else None,
                    arguments=(call.function.arguments or "") if call.function else "",
                )
                for call in getattr(delta, "tool_calls", None) or []
            ]
            yield ModelChunk(text=delta.content or "", tool_calls=deltas, usage=usage)
