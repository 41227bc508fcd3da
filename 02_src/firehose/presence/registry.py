"""PresenceRegistry implementation."""

from dataclasses import dataclass

from ..logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PresenceChange:
    """Viewer count after a connect/disconnect, plus whether it crossed zero."""

    count: int
    transitioned: bool


class PresenceRegistry:
    """Counts connected viewers and reports 0<->1 edges."""

    def __init__(self) -> None:
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    def on_connect(self) -> PresenceChange:
        """Register a viewer. transitioned is True on 0 -> 1."""
        self._count += 1
        return PresenceChange(count=self._count, transitioned=self._count == 1)

    def on_disconnect(self) -> PresenceChange:
        """Unregister a viewer. transitioned is True on 1 -> 0."""
        if self._count == 0:
            logger.warning("Viewer disconnect without matching connect")
            return PresenceChange(count=0, transitioned=False)

        self._count -= 1
        return PresenceChange(count=self._count, transitioned=self._count == 0)
