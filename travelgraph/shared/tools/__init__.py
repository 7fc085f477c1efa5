"""Tool specs, tool tables and the tool invocation capability."""

from travelgraph.shared.tools.dates import RESOLVE_DATE_TOOL, resolve_date
from travelgraph.shared.tools.invoker import FunctionToolInvoker, ToolInvoker, safe_call
from travelgraph.shared.tools.registry import ToolKind, ToolSpec, ToolTable


def default_tool_invoker() -> FunctionToolInvoker:
    """Invoker pre-loaded with the built-in domain tools."""
    return FunctionToolInvoker({RESOLVE_DATE_TOOL.name: resolve_date})


__all__ = [
    "FunctionToolInvoker",
    "RESOLVE_DATE_TOOL",
    "ToolInvoker",
    "ToolKind",
    "ToolSpec",
    "ToolTable",
    "default_tool_invoker",
    "resolve_date",
    "safe_call",
]
