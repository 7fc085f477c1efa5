"""
Debug logger for tracking model calls, API timing, and costs.

Writes per-session JSON Lines files under the logs/ directory.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


# Token pricing per 1M tokens
MODEL_COSTS = {
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
    "gpt-4.1": {"input": 2.00, "output": 8.00},
    "gpt-5-mini": {"input": 0.25, "output": 2.00},
}


def calculate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """
    Calculate the cost of a model call based on token usage.

    Args:
        model: Model identifier (e.g., "gpt-4.1-mini")
        input_tokens: Number of input/prompt tokens
        output_tokens: Number of output/completion tokens

    Returns:
        Cost in USD (0.0 for unknown models)
    """
    costs = MODEL_COSTS.get(model, {"input": 0.0, "output": 0.0})
    input_cost = (input_tokens / 1_000_000) * costs["input"]
    output_cost = (output_tokens / 1_000_000) * costs["output"]
    return input_cost + output_cost


class DebugLogger:
    """
    Per-session JSON Lines log of model calls and API timings.

    Each session gets its own folder holding ``session_logs.json``. The
    folder must stay inside ``logs_dir``.
    """

    def __init__(self, session_id: str, logs_dir: str = "logs"):
        root = Path(logs_dir).resolve()
        session_dir = (root / session_id).resolve()
        if session_dir == root or root not in session_dir.parents:
            raise ValueError(f"Session id {session_id!r} does not name a directory inside {logs_dir!r}")

        self.session_id = session_id
        self.session_dir = session_dir
        self.log_file = self.session_dir / "session_logs.json"
        self.session_dir.mkdir(parents=True, exist_ok=True)

        self._total_input_tokens = 0
        self._total_output_tokens = 0
        self._total_cost = 0.0
        self._total_llm_duration_ms = 0.0
        self._total_api_duration_ms = 0.0
        self._llm_call_count = 0

    def _get_timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _append_to_log(self, entry: Dict[str, Any]) -> None:
        with open(self.log_file, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

    def log_llm_call(
        self,
        node: str,
        system_prompt: Optional[str],
        message_count: int,
        response: str,
        tool_calls: Any,
        duration_ms: float,
        input_tokens: int,
        output_tokens: int,
        model: str = "gpt-4.1-mini",
    ) -> None:
        """
        Log a model call with prompt, response, timing, and token usage.

        Args:
            node: Graph node that issued the call
            system_prompt: System prompt sent to the model
            message_count: Number of history entries sent
            response: Model's text response
            tool_calls: Tool calls the model returned
            duration_ms: Time taken for the call in milliseconds
            input_tokens: Number of input tokens
            output_tokens: Number of output tokens
            model: Model identifier
        """
        cost = calculate_cost(model, input_tokens, output_tokens)

        self._total_input_tokens += input_tokens
        self._total_output_tokens += output_tokens
        self._total_cost += cost
        self._total_llm_duration_ms += duration_ms
        self._llm_call_count += 1

        self._append_to_log({
            "type": "llm_call",
            "timestamp": self._get_timestamp(),
            "session_id": self.session_id,
            "node": node,
            "model": model,
            "system_prompt": system_prompt,
            "message_count": message_count,
            "response": response,
            "tool_calls": tool_calls,
            "duration_ms": round(duration_ms, 2),
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "total_tokens": input_tokens + output_tokens,
            "cost_usd": round(cost, 6),
        })

    def log_api_timing(
        self,
        endpoint: str,
        duration_ms: float,
        success: bool = True,
        error: Optional[str] = None,
    ) -> None:
        """
        Log API endpoint timing.

        Args:
            endpoint: API endpoint path (e.g., "/api/sessions/run")
            duration_ms: Total time for the API call in milliseconds
            success: Whether the API call succeeded
            error: Error message if the call failed
        """
        self._total_api_duration_ms += duration_ms

        entry = {
            "type": "api_timing",
            "timestamp": self._get_timestamp(),
            "session_id": self.session_id,
            "endpoint": endpoint,
            "duration_ms": round(duration_ms, 2),
            "success": success,
        }
        if error:
            entry["error"] = error

        self._append_to_log(entry)

    def get_accumulated_stats(self) -> Dict[str, Any]:
        """Current totals, without logging them."""
        return {
            "total_input_tokens": self._total_input_tokens,
            "total_output_tokens": self._total_output_tokens,
            "total_tokens": self._total_input_tokens + self._total_output_tokens,
            "total_cost_usd": round(self._total_cost, 6),
            "total_llm_duration_ms": round(self._total_llm_duration_ms, 2),
            "total_api_duration_ms": round(self._total_api_duration_ms, 2),
            "llm_call_count": self._llm_call_count,
        }

    def log_session_summary(self, total_turns: int) -> Dict[str, Any]:
        """
        Log and return a session summary with totals.

        Args:
            total_turns: Number of user turns in the session

        Returns:
            Summary dictionary with all totals
        """
        summary = {
            "type": "session_summary",
            "timestamp": self._get_timestamp(),
            "session_id": self.session_id,
            "total_turns": total_turns,
            **self.get_accumulated_stats(),
        }
        self._append_to_log(summary)
        return summary
