"""Viewer WebSocket route."""

import asyncio
import json
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ...app import IApplication
from ...logging_config import get_logger
from ...viewers import WebSocketViewer

logger = get_logger(__name__)

START_REQUEST = "start-monitoring"
STOP_REQUEST = "stop-monitoring"


def parse_request(raw: str) -> str | None:
    """
    Extract the request name from an inbound viewer frame.

    Accepts ``{"event": "start-monitoring"}`` or the bare event name.
    """
    text = raw.strip()
    try:
        payload = json.loads(text)
    except ValueError:
        return text or None

    if isinstance(payload, dict):
        event = payload.get("event")
        return event if isinstance(event, str) else None
    if isinstance(payload, str):
        return payload
    return None


def create_viewers_router(app: IApplication) -> APIRouter:
    """Create viewer WebSocket router."""
    router = APIRouter(tags=["viewers"])

    async def dispatch(viewer_id: str, raw: str) -> None:
        request = parse_request(raw)
        if request == START_REQUEST:
            await app.coordinator.request_start(viewer_id)
        elif request == STOP_REQUEST:
            await app.coordinator.request_stop(viewer_id)
        else:
            logger.warning("Ignoring unknown viewer request %r from %s", request, viewer_id)

    @router.websocket("/ws")
    async def viewer_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        viewer = WebSocketViewer(str(uuid.uuid4()), websocket)
        app.viewers.add(viewer)
        writer = asyncio.create_task(viewer.pump())
        await app.coordinator.viewer_connected(viewer.viewer_id)

        try:
            while True:
                raw = await websocket.receive_text()
                await dispatch(viewer.viewer_id, raw)
        except WebSocketDisconnect:
            # Normal disconnect from viewer.
            pass
        finally:
            app.viewers.remove(viewer.viewer_id)
            writer.cancel()
            try:
                await writer
            except asyncio.CancelledError:
                pass
            await app.coordinator.viewer_disconnected(viewer.viewer_id)

    return router
