"""Conversion of raw firehose records into TraceEvents."""

import json
from datetime import datetime, timezone
from typing import Any, Mapping

from ..errors import NormalizeError
from ..models import UNKNOWN_TARGET, TraceAction, TraceEvent


def _plain_value(value: Any) -> Any:
    """Decode AMQP byte strings so header values stay JSON-friendly."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, Mapping):
        return {str(k): _plain_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain_value(v) for v in value]
    return value


def decode_body(body: bytes) -> Any:
    """Decode a payload as JSON, falling back to the raw text."""
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def split_routing_key(routing_key: str | None) -> tuple[TraceAction, str]:
    """
    Split a trace routing key into action and target.

    "publish.orders" -> (PUBLISH, "orders"); "deliver" -> (DELIVER, "unknown").
    The target is the second segment only: "publish.amq.direct" -> "amq".

    Raises:
        NormalizeError: If the key is empty or the action is not recognized.
    """
    if not routing_key:
        raise NormalizeError("Trace record has no routing key")

    parts = routing_key.split(".")
    action_part = parts[0]
    try:
        action = TraceAction(action_part)
    except ValueError:
        raise NormalizeError(
            f"Unrecognized trace action {action_part!r} in routing key {routing_key!r}"
        ) from None

    target = parts[1] if len(parts) > 1 else ""
    return action, target or UNKNOWN_TARGET


def normalize_trace(
    routing_key: str | None,
    exchange_name: str | None,
    body: bytes,
    headers: Mapping[str, Any] | None = None,
    content_type: str | None = None,
    message_id: str | None = None,
    correlation_id: str | None = None,
    occurred_at: datetime | None = None,
) -> TraceEvent:
    """Build a TraceEvent from the parts of a broker trace record."""
    action, target = split_routing_key(routing_key)

    return TraceEvent(
        occurred_at=occurred_at or datetime.now(timezone.utc),
        action=action,
        target=target,
        routing_key=routing_key,
        exchange_name=exchange_name or "",
        body_size=len(body),
        body=decode_body(body),
        headers=_plain_value(dict(headers or {})),
        content_type=content_type,
        message_id=message_id,
        correlation_id=correlation_id,
    )


def normalize_message(message: Any) -> TraceEvent:
    """Normalize an aio-pika incoming message."""
    return normalize_trace(
        routing_key=message.routing_key,
        exchange_name=message.exchange,
        body=message.body or b"",
        headers=message.headers,
        content_type=message.content_type,
        message_id=message.message_id,
        correlation_id=message.correlation_id,
    )
