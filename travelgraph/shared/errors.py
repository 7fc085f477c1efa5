"""
Error taxonomy for the orchestration engine.

Recoverable failures (a missing tool, a tool raising, malformed structured
output) are recorded in the conversation state as ``last_error`` and handed
back to the orchestrator as conversational context. Only environment
failures leave the run loop, as ``SessionError`` subclasses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Kinds of recoverable errors recorded in ``last_error``."""

    TOOL_NOT_FOUND = "ToolNotFound"
    TOOL_EXECUTION_ERROR = "ToolExecutionError"
    PARSE_ERROR = "ParseError"
    # Dropped silently by the message validator, never written to state
    ORPHANED_TOOL_MESSAGE = "OrphanedToolMessage"
    # A routing condition for the interaction sub-machine, not a failure
    MISSING_REQUIRED_FIELD = "MissingRequiredField"


def make_error(kind: ErrorKind, message: str) -> Dict[str, str]:
    """
    Build the serializable error descriptor stored in ``last_error``.

    Args:
        kind: Error kind
        message: Human readable description

    Returns:
        Dict with ``kind`` and ``message`` keys
    """
    return {"kind": kind.value, "message": message}


def error_kind(error: Any) -> Optional[str]:
    """Return the kind of a ``last_error`` descriptor, or None."""
    if not error:
        return None
    if isinstance(error, dict):
        return error.get("kind")
    return str(error)


class ParseError(Exception):
    """Raised when structured model output cannot be parsed."""

    pass


class ToolNotFoundError(LookupError):
    """Raised by a tool invoker asked for a tool it does not provide."""

    pass


class UnauthorizedPatchError(Exception):
    """Raised when a stage returns a patch touching fields it does not own."""

    pass


class SessionError(Exception):
    """Base class for failures that stop a session from proceeding."""

    pass


class SessionNotFoundError(SessionError):
    """Raised when a session id has no checkpoint."""

    pass


class SessionNotSuspendedError(SessionError):
    """Raised when resuming a session that is not waiting for input."""

    pass


class SessionUnavailableError(SessionError):
    """Raised when the checkpoint store or an external capability fails."""

    pass


class ModelUnavailableError(SessionUnavailableError):
    """Raised when the model-invocation capability fails after retries."""

    pass
