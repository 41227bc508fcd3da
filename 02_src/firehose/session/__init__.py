"""Monitoring session module."""

from .coordinator import DEFAULT_GRACE_PERIOD, ISessionCoordinator, SessionCoordinator
from .transitions import SessionEvent, transition

__all__ = [
    "DEFAULT_GRACE_PERIOD",
    "ISessionCoordinator",
    "SessionCoordinator",
    "SessionEvent",
    "transition",
]
