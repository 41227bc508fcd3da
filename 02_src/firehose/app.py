"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .broadcast import Broadcaster
from .config import Settings
from .logging_config import get_logger, log_context
from .session import SessionCoordinator
from .trace_source import ITraceSource, TraceFilter, TraceSource
from .viewers import ViewerHub

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    @property
    def coordinator(self) -> SessionCoordinator:
        ...

    @property
    def viewers(self) -> ViewerHub:
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        settings: Settings | None = None,
        trace_source: ITraceSource | None = None,
    ):
        self._settings = settings or Settings.from_env()

        # Components (will be initialized in start())
        self._trace_source: ITraceSource | None = trace_source
        self._viewers: ViewerHub | None = None
        self._broadcaster: Broadcaster | None = None
        self._coordinator: SessionCoordinator | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")
        trace_filter = TraceFilter.parse(self._settings.trace_filter)

        # 1. TraceSource (no dependencies; connects lazily on first viewer)
        if self._trace_source is None:
            self._trace_source = TraceSource(
                self._settings.rabbitmq_url,
                prefetch_count=self._settings.prefetch_count,
            )

        # 2. ViewerHub (owned by the transport, read by the Broadcaster)
        self._viewers = ViewerHub()

        # 3. Broadcaster (depends on ViewerHub)
        self._broadcaster = Broadcaster(self._viewers)

        # 4. SessionCoordinator (depends on TraceSource + Broadcaster)
        self._coordinator = SessionCoordinator(
            source=self._trace_source,
            broadcaster=self._broadcaster,
            trace_filter=trace_filter,
            grace_period=self._settings.grace_period,
        )
        await self._coordinator.start()
        logger.info(
            "All components initialized successfully",
            extra=log_context(
                trace_filter=trace_filter.routing_key,
                grace_period=self._settings.grace_period,
            ),
        )

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._coordinator:
            await self._coordinator.shutdown()
            logger.info("SessionCoordinator stopped")

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def coordinator(self) -> SessionCoordinator:
        """Get session coordinator instance."""
        if self._coordinator is None:
            raise RuntimeError("Application not started")
        return self._coordinator

    @property
    def viewers(self) -> ViewerHub:
        """Get viewer hub instance."""
        if self._viewers is None:
            raise RuntimeError("Application not started")
        return self._viewers
