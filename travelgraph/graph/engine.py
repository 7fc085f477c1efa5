"""
Session engine: runs, suspends and resumes conversation sessions.

Each session is a LangGraph thread (``thread_id = session_id``). A run goes
until the graph ends or pauses before wait_for_user; a paused run is
reported as a ``Suspended`` continuation and picked up by ``resume``.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterator, Optional, Union

from langgraph.checkpoint.base import BaseCheckpointSaver
from langgraph.checkpoint.memory import MemorySaver
from langgraph.errors import GraphRecursionError

from travelgraph.graph.build import create_orchestrator_graph
from travelgraph.graph.context import EngineContext
from travelgraph.graph.reducers import check_patch
from travelgraph.graph.stages import ORCHESTRATOR, WAIT_FOR_USER
from travelgraph.graph.state import create_initial_state
from travelgraph.interaction.nodes.wait import resume_patch
from travelgraph.shared.errors import (
    SessionError,
    SessionNotFoundError,
    SessionNotSuspendedError,
    SessionUnavailableError,
)
from travelgraph.shared.logging.config import log_state_transition
from travelgraph.shared.messages.turns import AssistantTurn, to_turn, user_turn
from travelgraph.shared.messages.validation import validate_message_sequence


logger = logging.getLogger(__name__)


@dataclass
class Suspended:
    """Continuation returned when a run pauses for human input."""

    session_id: str
    node: str
    question: Optional[str]
    state: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StageUpdate:
    """One stage's patch, as yielded by ``stream_run``."""

    stage_id: str
    patch: Dict[str, Any]


RunResult = Union[Dict[str, Any], Suspended]


def latest_question(messages: Any) -> Optional[str]:
    """Text of the latest assistant turn, the question a suspended run waits on."""
    for entry in reversed(messages or []):
        turn = to_turn(entry)
        if isinstance(turn, AssistantTurn) and turn.text:
            return turn.text
    return None


class SessionEngine:
    """
    Runs conversation sessions on the orchestrator graph.

    Args:
        context: Engine context shared by every stage
        checkpointer: Checkpoint store (a MemorySaver if not provided)
    """

    def __init__(self, context: EngineContext, checkpointer: Optional[BaseCheckpointSaver] = None):
        self.context = context
        self.checkpointer = checkpointer if checkpointer is not None else MemorySaver()
        self.graph = create_orchestrator_graph(context, checkpointer=self.checkpointer)

    def _config(self, session_id: str) -> Dict[str, Any]:
        return {
            "configurable": {"thread_id": session_id},
            "recursion_limit": self.context.config.recursion_limit,
        }

    def _snapshot(self, session_id: str):
        """Latest checkpoint of the session, or None when it has none."""
        try:
            snapshot = self.graph.get_state(self._config(session_id))
        except Exception as e:
            raise SessionUnavailableError(f"Checkpoint store unavailable for session '{session_id}': {e}") from e
        if not snapshot.values:
            return None
        return snapshot

    @staticmethod
    def _is_suspended(snapshot) -> bool:
        return snapshot is not None and WAIT_FOR_USER in (snapshot.next or ())

    def _turn_input(self, session_id: str, text: Optional[str], fresh: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(create_initial_state(session_id)) if fresh else {}
        payload["stage"] = ORCHESTRATOR
        payload["done"] = False
        payload["messages"] = [user_turn(text.strip())] if text and text.strip() else []
        return payload

    def _invoke(self, session_id: str, payload: Optional[Dict[str, Any]]) -> None:
        _log = f"[session={session_id}] [graph=orchestrator] [engine] "
        try:
            self.graph.invoke(payload, config=self._config(session_id))
        except SessionError:
            raise
        except GraphRecursionError as e:
            logger.error(f"{_log}Step limit reached: {e}")
            raise SessionUnavailableError(
                f"Session '{session_id}' exceeded {self.context.config.recursion_limit} steps"
            ) from e

    def _outcome(self, session_id: str) -> RunResult:
        snapshot = self._snapshot(session_id)
        if snapshot is None:
            raise SessionNotFoundError(f"Session '{session_id}' has no state")

        state = dict(snapshot.values)
        if self._is_suspended(snapshot):
            log_state_transition("suspended", state, extra={"session_id": session_id})
            return Suspended(
                session_id=session_id,
                node=WAIT_FOR_USER,
                question=latest_question(state.get("messages")),
                state=state,
            )

        log_state_transition("completed" if state.get("done") else "idle", state, extra={"session_id": session_id})
        return state

    def run(self, session_id: str, initial_user_text: str) -> RunResult:
        """
        Start a turn with the user's text.

        A session waiting for input treats the text as the awaited answer.

        Args:
            session_id: Session identifier (created on first use)
            initial_user_text: User message

        Returns:
            Final state dict, or Suspended when the run paused for input

        Raises:
            SessionUnavailableError: If the checkpoint store or model fails
        """
        _log = f"[session={session_id}] [graph=orchestrator] [engine] "
        snapshot = self._snapshot(session_id)

        if self._is_suspended(snapshot):
            logger.info(f"{_log}Session is waiting for input, resuming with the new text")
            return self.resume(session_id, initial_user_text)

        logger.info(f"{_log}Run started | new_session={snapshot is None}")
        self._invoke(session_id, self._turn_input(session_id, initial_user_text, fresh=snapshot is None))
        return self._outcome(session_id)

    def resume(self, session_id: str, external_value: Optional[str]) -> RunResult:
        """
        Continue a suspended session with the user's answer.

        The answer is applied as the output of wait_for_user and the run
        continues at process_response. A blank answer appends no user turn.

        Args:
            session_id: Session identifier
            external_value: User's answer

        Returns:
            Final state dict, or Suspended when the run paused again

        Raises:
            SessionNotFoundError: If the session has no checkpoint
            SessionNotSuspendedError: If the session is not waiting for input
        """
        _log = f"[session={session_id}] [graph=orchestrator] [engine] "
        snapshot = self._snapshot(session_id)
        if snapshot is None:
            raise SessionNotFoundError(f"Session '{session_id}' not found")
        if not self._is_suspended(snapshot):
            raise SessionNotSuspendedError(f"Session '{session_id}' is not waiting for input")

        patch = check_patch(WAIT_FOR_USER, resume_patch(external_value))
        logger.info(f"{_log}Resuming | appended_user_turn={'messages' in patch}")
        try:
            self.graph.update_state(self._config(session_id), patch, as_node=WAIT_FOR_USER)
        except Exception as e:
            raise SessionUnavailableError(f"Could not resume session '{session_id}': {e}") from e

        self._invoke(session_id, None)
        return self._outcome(session_id)

    def stream_run(self, session_id: str, initial_user_text: str) -> Iterator[StageUpdate]:
        """
        Run a turn, yielding each stage's patch as it completes.

        Lazy and one-shot; consuming it fully has the same effect as ``run``.
        On a suspended session the text is applied as the awaited answer.

        Yields:
            StageUpdate for every executed stage
        """
        snapshot = self._snapshot(session_id)
        if self._is_suspended(snapshot):
            patch = check_patch(WAIT_FOR_USER, resume_patch(initial_user_text))
            try:
                self.graph.update_state(self._config(session_id), patch, as_node=WAIT_FOR_USER)
            except Exception as e:
                raise SessionUnavailableError(f"Could not resume session '{session_id}': {e}") from e
            payload = None
        else:
            payload = self._turn_input(session_id, initial_user_text, fresh=snapshot is None)

        try:
            for chunk in self.graph.stream(payload, config=self._config(session_id), stream_mode="updates"):
                for stage_id, patch in chunk.items():
                    # Skip LangGraph bookkeeping such as __interrupt__
                    if stage_id.startswith("__"):
                        continue
                    yield StageUpdate(stage_id=stage_id, patch=patch or {})
        except SessionError:
            raise
        except GraphRecursionError as e:
            raise SessionUnavailableError(
                f"Session '{session_id}' exceeded {self.context.config.recursion_limit} steps"
            ) from e

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Checkpointed state of the session, or None if unknown."""
        snapshot = self._snapshot(session_id)
        return dict(snapshot.values) if snapshot is not None else None

    def status(self, session_id: str) -> Dict[str, Any]:
        """
        Summarize where a session stands.

        Returns:
            Dict with exists, suspended, next_stage, stage, done, missing_fields
            and message_count
        """
        snapshot = self._snapshot(session_id)
        if snapshot is None:
            return {"session_id": session_id, "exists": False, "suspended": False}

        values = snapshot.values
        return {
            "session_id": session_id,
            "exists": True,
            "suspended": self._is_suspended(snapshot),
            "next_stage": snapshot.next[0] if snapshot.next else None,
            "stage": values.get("stage"),
            "done": values.get("done", False),
            "missing_fields": values.get("missing_fields", []),
            "message_count": len(validate_message_sequence(values.get("messages") or [])),
        }

    def end_session(self, session_id: str) -> bool:
        """
        Delete the session's checkpoints.

        Returns:
            True if the session existed
        """
        _log = f"[session={session_id}] [graph=orchestrator] [engine] "
        snapshot = self._snapshot(session_id)
        existed = snapshot is not None
        debug_logger = self.context.debug_logger(session_id) if existed else None
        if debug_logger is not None:
            user_turns = sum(1 for entry in snapshot.values.get("messages") or [] if entry.get("role") == "user")
            debug_logger.log_session_summary(total_turns=user_turns)

        try:
            self.checkpointer.delete_thread(session_id)
        except Exception as e:
            raise SessionUnavailableError(f"Could not delete session '{session_id}': {e}") from e
        self.context.release_debug_logger(session_id)
        logger.info(f"{_log}Session ended | existed={existed}")
        return existed
