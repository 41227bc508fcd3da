"""TraceSource module."""

from .filters import TraceFilter
from .normalizer import decode_body, normalize_message, normalize_trace, split_routing_key
from .source import TRACE_EXCHANGE, ErrorHandler, EventHandler, ITraceSource, TraceSource

__all__ = [
    "ITraceSource",
    "TraceSource",
    "TraceFilter",
    "TRACE_EXCHANGE",
    "EventHandler",
    "ErrorHandler",
    "normalize_trace",
    "normalize_message",
    "split_routing_key",
    "decode_body",
]
