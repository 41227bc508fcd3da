"""SessionCoordinator: owns the one upstream trace subscription."""

import asyncio
from typing import Protocol

from ..broadcast import IBroadcaster
from ..errors import ConnectError, StopError, SubscribeError
from ..logging_config import get_logger, log_context
from ..models import SessionState, TraceEvent
from ..presence import PresenceRegistry
from ..trace_source import ITraceSource, TraceFilter
from .transitions import (
    ArmGraceTimer,
    BroadcastError,
    BroadcastStatus,
    CancelGraceTimer,
    Effect,
    GraceExpired,
    SendConnectionStatus,
    SendStatus,
    SessionEvent,
    StartFailed,
    StartRequested,
    StartSource,
    StartSucceeded,
    StopCompleted,
    StopRequested,
    StopSource,
    ViewerConnected,
    ViewerDisconnected,
    transition,
)

logger = get_logger(__name__)

DEFAULT_GRACE_PERIOD = 5.0


class ISessionCoordinator(Protocol):
    """Viewer presence and start/stop requests in, upstream lifecycle out."""

    async def viewer_connected(self, viewer_id: str) -> None:
        ...

    async def viewer_disconnected(self, viewer_id: str) -> None:
        ...

    async def request_start(self, viewer_id: str | None = None) -> None:
        ...

    async def request_stop(self, viewer_id: str | None = None) -> None:
        ...

    def snapshot(self) -> SessionState:
        ...


class SessionCoordinator:
    """
    Serializes every session input through one asyncio queue.

    A single worker task applies ``transition`` to each event in arrival
    order and carries out the returned effects. TraceSource start/stop run
    as detached tasks and report back by enqueueing a completion event, so
    no transition ever waits on network I/O.
    """

    def __init__(
        self,
        source: ITraceSource,
        broadcaster: IBroadcaster,
        trace_filter: TraceFilter | None = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        presence: PresenceRegistry | None = None,
    ):
        self._source = source
        self._broadcaster = broadcaster
        self._trace_filter = trace_filter or TraceFilter.all()
        self._grace_period = grace_period
        self._presence = presence or PresenceRegistry()

        self._state = SessionState()
        self._queue: asyncio.Queue[SessionEvent] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._grace_handle: asyncio.TimerHandle | None = None
        self._operations: set[asyncio.Task] = set()

    @property
    def grace_period(self) -> float:
        return self._grace_period

    def snapshot(self) -> SessionState:
        """Current session state (immutable)."""
        return self._state

    async def start(self) -> None:
        """Start the event worker."""
        if self._worker is not None:
            return
        self._worker = asyncio.create_task(self._run())
        logger.info("SessionCoordinator started")

    async def shutdown(self) -> None:
        """Stop the worker, the grace timer and the upstream subscription."""
        logger.info("Shutting down SessionCoordinator")
        self._cancel_grace_timer()

        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        if self._operations:
            await asyncio.gather(*list(self._operations), return_exceptions=True)

        try:
            await self._source.stop()
        except StopError as e:
            logger.warning("Error stopping trace source during shutdown: %s", e)

        self._state = SessionState(viewer_count=self._state.viewer_count)

    async def settle(self) -> None:
        """Wait until queued events and in-flight upstream operations are done."""
        while True:
            await self._queue.join()
            if self._operations:
                await asyncio.gather(*list(self._operations), return_exceptions=True)
                continue
            if self._queue.empty():
                return

    # Inputs

    async def viewer_connected(self, viewer_id: str) -> None:
        change = self._presence.on_connect()
        logger.info(
            "Viewer %s connected (%d total)",
            viewer_id,
            change.count,
            extra=log_context(viewer_id=viewer_id, first_viewer=change.transitioned),
        )
        self._enqueue(ViewerConnected(viewer_id, change.count, change.transitioned))

    async def viewer_disconnected(self, viewer_id: str) -> None:
        change = self._presence.on_disconnect()
        logger.info(
            "Viewer %s disconnected (%d total)",
            viewer_id,
            change.count,
            extra=log_context(viewer_id=viewer_id, last_viewer=change.transitioned),
        )
        self._enqueue(ViewerDisconnected(viewer_id, change.count, change.transitioned))

    async def request_start(self, viewer_id: str | None = None) -> None:
        logger.info("Manual start monitoring requested", extra=log_context(viewer_id=viewer_id))
        self._enqueue(StartRequested(viewer_id))

    async def request_stop(self, viewer_id: str | None = None) -> None:
        logger.info("Manual stop monitoring requested", extra=log_context(viewer_id=viewer_id))
        self._enqueue(StopRequested(viewer_id))

    def _enqueue(self, event: SessionEvent) -> None:
        self._queue.put_nowait(event)

    # Worker

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                self._process(event)
            except Exception:
                logger.exception("Error processing session event %s", event)
            finally:
                self._queue.task_done()

    def _process(self, event: SessionEvent) -> None:
        previous = self._state
        self._state, effects = transition(previous, event)

        if self._state.phase is not previous.phase:
            logger.info(
                "Session %s -> %s",
                previous.phase.value,
                self._state.phase.value,
                extra=log_context(event=type(event).__name__),
            )

        for effect in effects:
            self._execute(effect)

    def _execute(self, effect: Effect) -> None:
        if isinstance(effect, StartSource):
            self._spawn(self._start_upstream())
        elif isinstance(effect, StopSource):
            self._spawn(self._stop_upstream())
        elif isinstance(effect, ArmGraceTimer):
            self._arm_grace_timer(effect.generation)
        elif isinstance(effect, CancelGraceTimer):
            self._cancel_grace_timer()
            logger.info("Cancelled monitoring shutdown due to new connection")
        elif isinstance(effect, SendConnectionStatus):
            self._broadcaster.publish_connection_status_to(
                effect.viewer_id, effect.client_count, effect.monitoring_active
            )
        elif isinstance(effect, SendStatus):
            self._broadcaster.publish_status_to(effect.viewer_id, effect.active, effect.message)
        elif isinstance(effect, BroadcastStatus):
            self._broadcaster.publish_status(effect.active, effect.message)
        elif isinstance(effect, BroadcastError):
            self._broadcaster.publish_error(effect.error)
        else:
            raise TypeError(f"Unknown effect: {effect!r}")

    # Grace timer

    def _arm_grace_timer(self, generation: int) -> None:
        self._cancel_grace_timer()
        loop = asyncio.get_running_loop()
        self._grace_handle = loop.call_later(
            self._grace_period, self._enqueue, GraceExpired(generation)
        )
        logger.info("Scheduling monitoring shutdown in %s seconds", self._grace_period)

    def _cancel_grace_timer(self) -> None:
        if self._grace_handle is not None:
            self._grace_handle.cancel()
            self._grace_handle = None

    # Upstream operations

    def _spawn(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._operations.add(task)
        task.add_done_callback(self._operations.discard)

    async def _start_upstream(self) -> None:
        logger.info("Starting RabbitMQ firehose monitoring")
        try:
            await self._source.connect()
            await self._source.start_subscription(
                self._trace_filter, self._on_trace_event, self._on_trace_error
            )
        except (ConnectError, SubscribeError) as e:
            logger.error("Failed to start RabbitMQ monitoring: %s", e)
            await self._release_after_failed_start()
            self._enqueue(StartFailed(str(e)))
            return
        except Exception as e:
            logger.exception("Unexpected error starting RabbitMQ monitoring")
            await self._release_after_failed_start()
            self._enqueue(StartFailed(str(e) or type(e).__name__))
            return

        logger.info("RabbitMQ monitoring started successfully")
        self._enqueue(StartSucceeded())

    async def _release_after_failed_start(self) -> None:
        try:
            await self._source.stop()
        except StopError as e:
            logger.warning("Error releasing connection after failed start: %s", e)

    async def _stop_upstream(self) -> None:
        logger.info("Stopping RabbitMQ firehose monitoring")
        error: str | None = None
        try:
            await self._source.stop()
        except StopError as e:
            logger.error("Error stopping RabbitMQ monitoring: %s", e)
            error = str(e)
        except Exception as e:
            logger.exception("Unexpected error stopping RabbitMQ monitoring")
            error = str(e) or type(e).__name__
        else:
            logger.info("RabbitMQ monitoring stopped")

        self._enqueue(StopCompleted(error))

    # Trace callbacks

    async def _on_trace_event(self, event: TraceEvent) -> None:
        self._broadcaster.publish_event(event)

    async def _on_trace_error(self, error: Exception) -> None:
        # Malformed records stay out of viewer channels
        logger.debug("Trace record dropped: %s", error)
