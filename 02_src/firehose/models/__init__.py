"""Core data models for the firehose bridge."""

from .session import SessionPhase, SessionState
from .trace import UNKNOWN_TARGET, TraceAction, TraceEvent

__all__ = [
    # Trace
    "TraceAction",
    "TraceEvent",
    "UNKNOWN_TARGET",
    # Session
    "SessionPhase",
    "SessionState",
]
