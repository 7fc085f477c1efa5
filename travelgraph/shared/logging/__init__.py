"""Logging configuration and utilities."""

from travelgraph.shared.logging.config import setup_logging, log_state_transition, StructuredFormatter
from travelgraph.shared.logging.debug_logger import DebugLogger, calculate_cost

__all__ = [
    "setup_logging",
    "log_state_transition",
    "StructuredFormatter",
    "DebugLogger",
    "calculate_cost",
]
