"""WebSocket viewer channels and the hub that tracks them."""

import asyncio
from typing import Any

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

from ..logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_OUTBOX_SIZE = 1000


class WebSocketViewer:
    """
    One connected viewer.

    ``send`` only enqueues; ``pump`` drains the outbox onto the socket.
    A full outbox drops the message, a closed viewer ignores it.
    """

    def __init__(
        self,
        viewer_id: str,
        websocket: WebSocket,
        outbox_size: int = DEFAULT_OUTBOX_SIZE,
    ):
        self._viewer_id = viewer_id
        self._websocket = websocket
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=outbox_size)
        self._closed = False
        self._dropped = 0

    @property
    def viewer_id(self) -> str:
        return self._viewer_id

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        return self._dropped

    def send(self, event: str, data: dict[str, Any]) -> None:
        """Queue a message for the viewer."""
        if self._closed:
            return
        try:
            self._outbox.put_nowait({"event": event, "data": data})
        except asyncio.QueueFull:
            self._dropped += 1
            logger.debug("Dropped %s for slow viewer %s", event, self._viewer_id)

    async def pump(self) -> None:
        """Write queued messages to the socket until it closes."""
        while not self._closed:
            message = await self._outbox.get()
            try:
                await self._websocket.send_json(jsonable_encoder(message))
            except Exception as e:
                logger.debug("Viewer %s socket closed while sending: %s", self._viewer_id, e)
                self.close()

    def close(self) -> None:
        self._closed = True


class ViewerHub:
    """Currently connected viewers, keyed by viewer id."""

    def __init__(self) -> None:
        self._viewers: dict[str, WebSocketViewer] = {}

    def __len__(self) -> int:
        return len(self._viewers)

    def add(self, viewer: WebSocketViewer) -> None:
        self._viewers[viewer.viewer_id] = viewer

    def remove(self, viewer_id: str) -> None:
        viewer = self._viewers.pop(viewer_id, None)
        if viewer is not None:
            viewer.close()

    def channels(self) -> list[WebSocketViewer]:
        """Snapshot of open channels."""
        return [viewer for viewer in self._viewers.values() if not viewer.closed]

    def get(self, viewer_id: str) -> WebSocketViewer | None:
        viewer = self._viewers.get(viewer_id)
        if viewer is None or viewer.closed:
            return None
        return viewer
