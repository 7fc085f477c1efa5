"""
Engine configuration.

Centralizes the tuning knobs of the orchestrator graph and its stages, so
behavior can change without touching the graph wiring.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class EngineConfig:
    """
    Configuration for the orchestrator graph.

    Attributes:
        recursion_limit: Maximum number of graph steps per run (prevents infinite loops)
        model: Model identifier for the OpenAI adapter
        llm_timeout: Per-request timeout in seconds
        max_retries: Attempts per model request (tenacity)
        stream_responses: Assemble model responses from streamed chunks
        max_specialist_iterations: Tool rounds a specialist may take before its best-effort answer
        max_fields_per_question: Fields batched into one clarifying question
        max_error_retries: Consecutive recoverable errors before the orchestrator gives up
        enable_debug_logs: Write per-session JSON Lines debug logs
        logs_dir: Directory for debug logs
    """

    # Graph execution limits
    recursion_limit: int = 50

    # LLM configuration
    model: str = "gpt-4.1-mini"
    llm_timeout: int = 60  # seconds
    stream_responses: bool = False

    # Retry configuration (used by tenacity in shared/llm/client.py)
    max_retries: int = 3
    retry_min_wait: int = 2  # seconds
    retry_max_wait: int = 10  # seconds

    # Stage behavior
    max_specialist_iterations: int = 4
    max_fields_per_question: int = 3
    max_error_retries: int = 2

    # Debug logging
    enable_debug_logs: bool = False
    logs_dir: str = "logs"


# Default configuration instance
DEFAULT_CONFIG = EngineConfig()


def get_config(
    recursion_limit: Optional[int] = None,
    model: Optional[str] = None,
    stream_responses: Optional[bool] = None,
    max_specialist_iterations: Optional[int] = None,
    max_fields_per_question: Optional[int] = None,
    max_error_retries: Optional[int] = None,
    enable_debug_logs: Optional[bool] = None,
) -> EngineConfig:
    """
    Create a configuration with optional overrides.

    The model falls back to the TRAVELGRAPH_MODEL environment variable before
    the default.

    Args:
        recursion_limit: Override for recursion limit
        model: Override for the model identifier
        stream_responses: Override for streamed response assembly
        max_specialist_iterations: Override for the specialist tool-round bound
        max_fields_per_question: Override for question batching
        max_error_retries: Override for the orchestrator error budget
        enable_debug_logs: Override for debug logging

    Returns:
        EngineConfig with specified overrides applied
    """
    def pick(value, default):
        return value if value is not None else default

    return EngineConfig(
        recursion_limit=pick(recursion_limit, DEFAULT_CONFIG.recursion_limit),
        model=model or os.environ.get("TRAVELGRAPH_MODEL") or DEFAULT_CONFIG.model,
        stream_responses=pick(stream_responses, DEFAULT_CONFIG.stream_responses),
        max_specialist_iterations=pick(max_specialist_iterations, DEFAULT_CONFIG.max_specialist_iterations),
        max_fields_per_question=pick(max_fields_per_question, DEFAULT_CONFIG.max_fields_per_question),
        max_error_retries=pick(max_error_retries, DEFAULT_CONFIG.max_error_retries),
        enable_debug_logs=pick(enable_debug_logs, DEFAULT_CONFIG.enable_debug_logs),
    )
