"""Viewer transport module."""

from .hub import DEFAULT_OUTBOX_SIZE, ViewerHub, WebSocketViewer

__all__ = ["DEFAULT_OUTBOX_SIZE", "ViewerHub", "WebSocketViewer"]
