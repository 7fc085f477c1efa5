"""
FastAPI endpoints for conversation sessions.

Provides the API to run a turn, resume a suspended session, stream stage
updates, inspect and end sessions. The ``SessionEngine`` is built once per
process and stored on ``app.state.engine``.
"""

import json
import logging
import time
import uuid
from typing import Annotated, Any, Dict, Iterator, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from travelgraph.graph.engine import SessionEngine, Suspended
from travelgraph.shared.errors import (
    SessionError,
    SessionNotFoundError,
    SessionNotSuspendedError,
    SessionUnavailableError,
)
from travelgraph.shared.messages.validation import validate_message_sequence


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])

# Session ids double as checkpoint thread ids and debug-log directory names
SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"
SessionIdPath = Annotated[str, Path(pattern=SESSION_ID_PATTERN)]


# ============================================================================
# Request/Response Models
# ============================================================================


class RunRequest(BaseModel):
    """Request to run a conversation turn."""

    session_id: Optional[str] = Field(
        default=None,
        pattern=SESSION_ID_PATTERN,
        description="Existing session id; a new one is created if omitted",
    )
    message: str = Field(description="User message")


class ResumeRequest(BaseModel):
    """Answer to the question a suspended session is waiting on."""

    value: Optional[str] = Field(default=None, description="User's answer; blank adds no message")


class RunResponse(BaseModel):
    """Outcome of a run or resume."""

    session_id: str
    status: str = Field(description="'suspended', 'complete' or 'idle'")
    question: Optional[str] = Field(default=None, description="Question awaiting an answer when suspended")
    final_answer: Optional[str] = None
    stage: Optional[str] = None
    memory: Dict[str, Any] = Field(default_factory=dict)
    missing_fields: List[str] = Field(default_factory=list)
    messages: List[Dict[str, Any]] = Field(default_factory=list)


class SessionStatusResponse(BaseModel):
    session_id: str
    exists: bool
    suspended: bool
    next_stage: Optional[str] = None
    stage: Optional[str] = None
    done: bool = False
    missing_fields: List[str] = Field(default_factory=list)
    message_count: int = 0


# ============================================================================
# Helpers
# ============================================================================


def get_engine(request: Request) -> SessionEngine:
    """Dependency returning the process-wide session engine."""
    return request.app.state.engine


def _to_response(session_id: str, result: Any) -> RunResponse:
    if isinstance(result, Suspended):
        state, status, question = result.state, "suspended", result.question
    else:
        state, question = result, None
        status = "complete" if state.get("done") else "idle"

    return RunResponse(
        session_id=session_id,
        status=status,
        question=question,
        final_answer=state.get("final_answer"),
        stage=state.get("stage"),
        memory=state.get("memory") or {},
        missing_fields=state.get("missing_fields") or [],
        messages=validate_message_sequence(state.get("messages") or []),
    )


def _to_http_error(_log: str, e: Exception) -> HTTPException:
    if isinstance(e, SessionNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, SessionNotSuspendedError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, SessionUnavailableError):
        logger.error(f"{_log}Session unavailable: {e}")
        return HTTPException(status_code=503, detail=str(e))
    logger.exception(f"{_log}Request failed: {e}")
    return HTTPException(status_code=500, detail=f"Session execution failed: {str(e)}")


def _log_timing(
    engine: SessionEngine, session_id: str, endpoint: str, start_time: float, error: Optional[Exception] = None
) -> None:
    # Unknown sessions get no debug log
    if isinstance(error, SessionNotFoundError):
        return
    debug_logger = engine.context.debug_logger(session_id)
    if debug_logger is not None:
        debug_logger.log_api_timing(
            endpoint=endpoint,
            duration_ms=(time.perf_counter() - start_time) * 1000,
            success=error is None,
            error=str(error) if error is not None else None,
        )


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/health")
async def health_check():
    """Health check endpoint for the session API."""
    return {"status": "healthy", "service": "sessions"}


@router.post("/run", response_model=RunResponse)
def run_session(request: RunRequest, engine: SessionEngine = Depends(get_engine)):
    """
    Run a conversation turn.

    Returns the final state, or a suspended status with the question to
    answer through the resume endpoint.
    """
    session_id = request.session_id or str(uuid.uuid4())
    _log = f"[session={session_id}] [graph=orchestrator] [api=run] "
    start_time = time.perf_counter()

    logger.info(f"{_log}Run requested | new_session={request.session_id is None}, message_len={len(request.message)}")

    try:
        result = engine.run(session_id, request.message)
    except Exception as e:
        _log_timing(engine, session_id, "/api/sessions/run", start_time, error=e)
        raise _to_http_error(_log, e)

    response = _to_response(session_id, result)
    _log_timing(engine, session_id, "/api/sessions/run", start_time)
    logger.info(f"{_log}Run finished | status={response.status}, messages={len(response.messages)}")
    return response


@router.post("/{session_id}/resume", response_model=RunResponse)
def resume_session(session_id: SessionIdPath, request: ResumeRequest, engine: SessionEngine = Depends(get_engine)):
    """Resume a suspended session with the user's answer."""
    _log = f"[session={session_id}] [graph=orchestrator] [api=resume] "
    start_time = time.perf_counter()

    logger.info(f"{_log}Resume requested | has_value={bool(request.value and request.value.strip())}")

    try:
        result = engine.resume(session_id, request.value)
    except Exception as e:
        _log_timing(engine, session_id, f"/api/sessions/{session_id}/resume", start_time, error=e)
        raise _to_http_error(_log, e)

    response = _to_response(session_id, result)
    _log_timing(engine, session_id, f"/api/sessions/{session_id}/resume", start_time)
    logger.info(f"{_log}Resume finished | status={response.status}")
    return response


@router.post("/stream")
async def stream_session(request: RunRequest, engine: SessionEngine = Depends(get_engine)):
    """
    Run a conversation turn, streaming one NDJSON line per completed stage.

    Each line is ``{"stage_id": ..., "patch": {...}}``. A failure ends the
    stream with an ``{"error": ...}`` line.
    """
    session_id = request.session_id or str(uuid.uuid4())
    _log = f"[session={session_id}] [graph=orchestrator] [api=stream] "

    def lines() -> Iterator[str]:
        try:
            for update in engine.stream_run(session_id, request.message):
                yield json.dumps(
                    {"session_id": session_id, "stage_id": update.stage_id, "patch": update.patch},
                    ensure_ascii=False,
                    default=str,
                ) + "\n"
        except SessionError as e:
            logger.error(f"{_log}Stream failed: {e}")
            yield json.dumps({"session_id": session_id, "error": str(e)}, ensure_ascii=False) + "\n"

    return StreamingResponse(lines(), media_type="application/x-ndjson")


@router.get("/{session_id}", response_model=SessionStatusResponse)
def get_session_status(session_id: SessionIdPath, engine: SessionEngine = Depends(get_engine)):
    """Get where a session stands."""
    _log = f"[session={session_id}] [graph=orchestrator] [api=status] "
    try:
        status = engine.status(session_id)
    except Exception as e:
        raise _to_http_error(_log, e)

    if not status["exists"]:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return SessionStatusResponse(**status)


@router.delete("/{session_id}")
def end_session(session_id: SessionIdPath, engine: SessionEngine = Depends(get_engine)):
    """End a session and delete its checkpoints."""
    _log = f"[session={session_id}] [graph=orchestrator] [api=end] "
    try:
        existed = engine.end_session(session_id)
    except Exception as e:
        raise _to_http_error(_log, e)

    if not existed:
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
    return {"status": "ended", "session_id": session_id}
