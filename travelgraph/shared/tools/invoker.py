"""
Tool invocation capability.

The engine never calls tool implementations directly; it goes through a
``ToolInvoker`` so hosts can plug in their own flight, map or restaurant
backends.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from travelgraph.shared.errors import ToolNotFoundError

logger = logging.getLogger(__name__)


class ToolInvoker(Protocol):
    def call(self, name: str, args: Dict[str, Any]) -> str:
        """Execute a tool and return its textual result. May raise."""
        ...


class FunctionToolInvoker:
    """Dispatches tool calls to plain Python callables registered by name."""

    def __init__(self, functions: Optional[Dict[str, Callable[..., Any]]] = None):
        self._functions: Dict[str, Callable[..., Any]] = dict(functions or {})

    def register(self, name: str, func: Callable[..., Any]) -> None:
        self._functions[name] = func

    def provides(self, name: str) -> bool:
        return name in self._functions

    def call(self, name: str, args: Dict[str, Any]) -> str:
        func = self._functions.get(name)
        if func is None:
            raise ToolNotFoundError(f"No implementation registered for tool '{name}'")

        result = func(**(args or {}))
        if isinstance(result, str):
            return result
        return json.dumps(result, ensure_ascii=False, default=str)


def safe_call(invoker: ToolInvoker, name: str, args: Dict[str, Any]) -> Tuple[str, Optional[Exception]]:
    """
    Call a tool, turning any failure into an error string.

    Args:
        invoker: Tool capability
        name: Tool name
        args: Validated tool arguments

    Returns:
        Tuple of (result text, exception or None). The text is
        ``"Error: ..."`` when the tool raised.
    """
    try:
        return invoker.call(name, args), None
    except Exception as e:
        logger.warning(f"Tool '{name}' failed: {e}")
        return f"Error: {e}", e
