"""Monitoring session state models."""

from dataclasses import dataclass
from enum import Enum


class SessionPhase(str, Enum):
    """Upstream subscription lifecycle phase."""

    IDLE = "idle"
    STARTING = "starting"  # connect/subscribe in flight
    ACTIVE = "active"
    STOPPING = "stopping"  # unsubscribe/close in flight


@dataclass(frozen=True)
class SessionState:
    """Process-wide monitoring session state. Written only by the coordinator."""

    phase: SessionPhase = SessionPhase.IDLE
    manual_stop: bool = False
    viewer_count: int = 0
    grace_armed: bool = False
    grace_generation: int = 0
    start_pending: bool = False  # explicit start received while STOPPING

    @property
    def monitoring_active(self) -> bool:
        return self.phase is SessionPhase.ACTIVE

    def status_message(self) -> str:
        """Human-readable status shown to a viewer on connect."""
        if self.phase is SessionPhase.ACTIVE:
            return "RabbitMQ monitoring active"
        if self.phase is SessionPhase.STARTING:
            return "RabbitMQ monitoring starting"
        if self.manual_stop:
            return "RabbitMQ monitoring manually stopped"
        return "RabbitMQ monitoring stopped"
