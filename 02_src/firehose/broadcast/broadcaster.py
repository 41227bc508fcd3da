"""Broadcaster implementation for fanning events out to viewers."""

import random
import string
from datetime import datetime, timezone
from typing import Any, Protocol

from ..logging_config import get_logger
from ..models import TraceEvent

logger = get_logger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LENGTH = 9


class IViewerChannel(Protocol):
    """Push channel to a single viewer."""

    @property
    def viewer_id(self) -> str:
        """Viewer identifier."""
        ...

    def send(self, event: str, data: dict[str, Any]) -> None:
        """Queue a message for the viewer. A closed channel ignores it."""
        ...


class IViewerDirectory(Protocol):
    """Read view over the transport's currently connected viewers."""

    def channels(self) -> list[IViewerChannel]:
        """Snapshot of open channels."""
        ...

    def get(self, viewer_id: str) -> IViewerChannel | None:
        """Channel for a viewer, if still connected."""
        ...


class IBroadcaster(Protocol):
    """Fan-out of trace events and monitoring notifications."""

    def publish_event(self, event: TraceEvent) -> None:
        ...

    def publish_status(self, active: bool, message: str) -> None:
        ...

    def publish_error(self, error: str, timestamp: datetime | None = None) -> None:
        ...

    def publish_status_to(self, viewer_id: str, active: bool, message: str) -> None:
        ...

    def publish_connection_status_to(
        self, viewer_id: str, client_count: int, monitoring_active: bool
    ) -> None:
        ...


def delivery_id(event: TraceEvent) -> str:
    """Presentation id: capture timestamp plus a random base36 suffix."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=_ID_SUFFIX_LENGTH))
    return f"{event.occurred_at.isoformat()}-{suffix}"


def display_time(moment: datetime) -> str:
    """Local wall-clock time for UI display."""
    return moment.astimezone().strftime("%H:%M:%S")


def event_payload(event: TraceEvent) -> dict[str, Any]:
    """Wire fields of a firehose-message, without the per-delivery metadata."""
    return {
        "timestamp": event.occurred_at.isoformat(),
        "action": event.action.value,
        "target": event.target,
        "routingKey": event.routing_key,
        "exchange": event.exchange_name,
        "contentType": event.content_type,
        "messageId": event.message_id,
        "correlationId": event.correlation_id,
        "headers": event.headers,
        "bodyLength": event.body_size,
        "body": event.body,
    }


class Broadcaster:
    """Sends to every channel the directory reports at call time."""

    def __init__(self, directory: IViewerDirectory):
        self._directory = directory

    def _send(self, channel: IViewerChannel, event: str, data: dict[str, Any]) -> None:
        try:
            channel.send(event, data)
        except Exception as e:
            # One broken channel must not stop the fan-out
            logger.error("Error sending %s to viewer %s: %s", event, channel.viewer_id, e)

    def _broadcast(self, event: str, data: dict[str, Any]) -> None:
        for channel in self._directory.channels():
            self._send(channel, event, data)

    def _unicast(self, viewer_id: str, event: str, data: dict[str, Any]) -> None:
        channel = self._directory.get(viewer_id)
        if channel is None:
            logger.debug("Viewer %s gone before %s could be sent", viewer_id, event)
            return
        self._send(channel, event, data)

    def publish_event(self, event: TraceEvent) -> None:
        """Send one firehose-message per viewer, each with its own delivery id."""
        base = event_payload(event)
        shown = display_time(event.occurred_at)

        for channel in self._directory.channels():
            self._send(
                channel,
                "firehose-message",
                {**base, "id": delivery_id(event), "displayTime": shown},
            )

    def publish_status(self, active: bool, message: str) -> None:
        self._broadcast("monitoring-status", {"active": active, "message": message})

    def publish_error(self, error: str, timestamp: datetime | None = None) -> None:
        moment = timestamp or datetime.now(timezone.utc)
        self._broadcast(
            "monitoring-error", {"error": error, "timestamp": moment.isoformat()}
        )

    def publish_status_to(self, viewer_id: str, active: bool, message: str) -> None:
        self._unicast(viewer_id, "monitoring-status", {"active": active, "message": message})

    def publish_connection_status_to(
        self, viewer_id: str, client_count: int, monitoring_active: bool
    ) -> None:
        self._unicast(
            viewer_id,
            "connection-status",
            {
                "connected": True,
                "clientCount": client_count,
                "monitoringActive": monitoring_active,
            },
        )
