"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from firehose.errors import ConnectError, StopError, SubscribeError  # noqa: E402


class FakeTraceSource:
    """In-memory stand-in for the broker capability."""

    def __init__(self) -> None:
        self.connect_calls = 0
        self.subscribe_calls = 0
        self.stop_calls = 0
        self.filters: list[Any] = []
        self.connect_error: Exception | None = None
        self.subscribe_error: Exception | None = None
        self.stop_error: Exception | None = None
        # When set, start_subscription waits for it (start stays in flight)
        self.subscribe_gate: asyncio.Event | None = None
        # When set, stop waits for it (stop stays in flight)
        self.stop_gate: asyncio.Event | None = None
        self.on_event = None
        self.on_error = None
        self.subscribed = False

    async def connect(self):
        self.connect_calls += 1
        if self.connect_error is not None:
            raise self.connect_error
        return object()

    async def start_subscription(self, trace_filter, on_event, on_error) -> None:
        self.subscribe_calls += 1
        self.filters.append(trace_filter)
        if self.subscribe_gate is not None:
            await self.subscribe_gate.wait()
        if self.subscribe_error is not None:
            raise self.subscribe_error
        self.on_event = on_event
        self.on_error = on_error
        self.subscribed = True

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.stop_gate is not None:
            await self.stop_gate.wait()
        self.subscribed = False
        self.on_event = None
        self.on_error = None
        if self.stop_error is not None:
            raise self.stop_error


class FakeViewer:
    """Viewer channel that records what it was sent."""

    def __init__(self, viewer_id: str) -> None:
        self._viewer_id = viewer_id
        self.messages: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    @property
    def viewer_id(self) -> str:
        return self._viewer_id

    def send(self, event: str, data: dict[str, Any]) -> None:
        if self.closed:
            return
        self.messages.append((event, data))

    def of(self, event: str) -> list[dict[str, Any]]:
        return [data for name, data in self.messages if name == event]


class FakeDirectory:
    """Viewer directory backed by a dict."""

    def __init__(self) -> None:
        self.viewers: dict[str, FakeViewer] = {}

    def connect(self, viewer_id: str) -> FakeViewer:
        viewer = FakeViewer(viewer_id)
        self.viewers[viewer_id] = viewer
        return viewer

    def disconnect(self, viewer_id: str) -> None:
        viewer = self.viewers.pop(viewer_id, None)
        if viewer is not None:
            viewer.closed = True

    def channels(self) -> list[FakeViewer]:
        return list(self.viewers.values())

    def get(self, viewer_id: str) -> FakeViewer | None:
        return self.viewers.get(viewer_id)


@pytest.fixture
def trace_source():
    """Create fake trace source."""
    return FakeTraceSource()


@pytest.fixture
def directory():
    """Create fake viewer directory."""
    return FakeDirectory()


@pytest.fixture
def broadcaster(directory):
    """Create Broadcaster over the fake directory."""
    from firehose.broadcast import Broadcaster

    return Broadcaster(directory)


@pytest.fixture
def grace_period():
    """Short grace period so expiry tests stay fast."""
    return 0.05


@pytest_asyncio.fixture
async def coordinator(trace_source, broadcaster, grace_period):
    """Create and start a SessionCoordinator."""
    from firehose.session import SessionCoordinator

    sc = SessionCoordinator(
        source=trace_source,
        broadcaster=broadcaster,
        grace_period=grace_period,
    )
    await sc.start()
    yield sc
    await sc.shutdown()


@pytest.fixture
def connect_error():
    return ConnectError("Failed to connect to RabbitMQ: connection refused")


@pytest.fixture
def subscribe_error():
    return SubscribeError("Failed to start monitoring: access refused")


@pytest.fixture
def stop_error():
    return StopError("connection: already closed")
