"""RabbitMQ firehose bridge core."""

from .app import Application, IApplication
from .broadcast import Broadcaster, IBroadcaster, IViewerChannel, IViewerDirectory
from .config import Settings
from .errors import (
    ConfigError,
    ConnectError,
    FirehoseError,
    NormalizeError,
    StopError,
    SubscribeError,
)
from .models import SessionPhase, SessionState, TraceAction, TraceEvent
from .presence import PresenceChange, PresenceRegistry
from .session import ISessionCoordinator, SessionCoordinator, transition
from .trace_source import ITraceSource, TraceFilter, TraceSource
from .viewers import ViewerHub, WebSocketViewer

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Models
    "TraceAction",
    "TraceEvent",
    "SessionPhase",
    "SessionState",
    # Errors
    "FirehoseError",
    "ConfigError",
    "ConnectError",
    "SubscribeError",
    "NormalizeError",
    "StopError",
    # Components
    "ITraceSource",
    "TraceSource",
    "TraceFilter",
    "PresenceChange",
    "PresenceRegistry",
    "IBroadcaster",
    "IViewerChannel",
    "IViewerDirectory",
    "Broadcaster",
    "ISessionCoordinator",
    "SessionCoordinator",
    "transition",
    "ViewerHub",
    "WebSocketViewer",
]
