"""Trace record data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

UNKNOWN_TARGET = "unknown"


class TraceAction(str, Enum):
    """Kind of broker activity a trace record describes."""

    PUBLISH = "publish"
    DELIVER = "deliver"


@dataclass(frozen=True)
class TraceEvent:
    """One normalized firehose trace record."""

    occurred_at: datetime
    action: TraceAction
    target: str  # exchange (publish) or queue (deliver) name
    routing_key: str
    exchange_name: str
    body_size: int
    body: Any  # decoded JSON value, or the raw text
    headers: dict[str, Any] = field(default_factory=dict)
    content_type: str | None = None
    message_id: str | None = None
    correlation_id: str | None = None
