"""Broadcaster module."""

from .broadcaster import (
    Broadcaster,
    IBroadcaster,
    IViewerChannel,
    IViewerDirectory,
    delivery_id,
    display_time,
    event_payload,
)

__all__ = [
    "Broadcaster",
    "IBroadcaster",
    "IViewerChannel",
    "IViewerDirectory",
    "delivery_id",
    "display_time",
    "event_payload",
]
