"""Tests for ViewerHub and WebSocketViewer."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from firehose.viewers import ViewerHub, WebSocketViewer


def make_socket():
    websocket = Mock()
    websocket.send_json = AsyncMock()
    return websocket


class TestWebSocketViewer:
    """Tests for the per-viewer outbox."""

    @pytest.mark.asyncio
    async def test_pump_writes_in_order(self):
        """Test that queued messages are written as JSON-ready envelopes."""
        websocket = make_socket()
        viewer = WebSocketViewer("a", websocket)
        ts = datetime(2024, 5, 1, tzinfo=timezone.utc)

        viewer.send("monitoring-status", {"active": True, "message": "m"})
        viewer.send("monitoring-error", {"error": "e", "when": ts})

        writer = asyncio.create_task(viewer.pump())
        await asyncio.sleep(0.01)
        viewer.close()
        writer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await writer

        sent = [call.args[0] for call in websocket.send_json.await_args_list]
        assert sent == [
            {"event": "monitoring-status", "data": {"active": True, "message": "m"}},
            {"event": "monitoring-error", "data": {"error": "e", "when": "2024-05-01T00:00:00+00:00"}},
        ]

    def test_closed_viewer_ignores_sends(self):
        """Test that sending to a closed viewer is a no-op."""
        viewer = WebSocketViewer("a", make_socket())
        viewer.close()

        viewer.send("monitoring-status", {"active": False, "message": "x"})

        assert viewer._outbox.empty()

    def test_full_outbox_drops(self):
        """Test that a slow viewer loses messages instead of blocking."""
        viewer = WebSocketViewer("a", make_socket(), outbox_size=2)

        for _ in range(5):
            viewer.send("firehose-message", {})

        assert viewer.dropped == 3

    @pytest.mark.asyncio
    async def test_send_failure_closes_viewer(self):
        """Test that a socket error ends the pump and closes the viewer."""
        websocket = make_socket()
        websocket.send_json.side_effect = RuntimeError("socket closed")
        viewer = WebSocketViewer("a", websocket)
        viewer.send("monitoring-status", {"active": True, "message": "m"})

        await asyncio.wait_for(viewer.pump(), timeout=1)

        assert viewer.closed


class TestViewerHub:
    """Tests for the viewer directory."""

    def test_add_get_remove(self):
        """Test registering and removing viewers."""
        hub = ViewerHub()
        viewer = WebSocketViewer("a", make_socket())

        hub.add(viewer)
        assert len(hub) == 1
        assert hub.get("a") is viewer
        assert hub.channels() == [viewer]

        hub.remove("a")
        assert len(hub) == 0
        assert hub.get("a") is None
        assert viewer.closed

    def test_closed_viewers_hidden(self):
        """Test that closed channels are not handed out."""
        hub = ViewerHub()
        viewer = WebSocketViewer("a", make_socket())
        hub.add(viewer)
        viewer.close()

        assert hub.channels() == []
        assert hub.get("a") is None

    def test_remove_unknown_is_noop(self):
        """Test that removing an unknown viewer does nothing."""
        ViewerHub().remove("ghost")
