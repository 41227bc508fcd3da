"""PresenceRegistry module."""

from .registry import PresenceChange, PresenceRegistry

__all__ = ["PresenceChange", "PresenceRegistry"]
