"""TraceSource implementation on top of aio-pika."""

from typing import Awaitable, Callable, Protocol

import aio_pika
from aio_pika.abc import (
    AbstractChannel,
    AbstractConnection,
    AbstractIncomingMessage,
    AbstractQueue,
)

from ..errors import ConnectError, NormalizeError, StopError, SubscribeError
from ..logging_config import get_logger, log_context
from ..models import TraceEvent
from .filters import TraceFilter
from .normalizer import normalize_message

logger = get_logger(__name__)

TRACE_EXCHANGE = "amq.rabbitmq.trace"

EventHandler = Callable[[TraceEvent], Awaitable[None]]
ErrorHandler = Callable[[Exception], Awaitable[None]]


class ITraceSource(Protocol):
    """Broker capability: one connection, at most one trace subscription."""

    async def connect(self) -> AbstractConnection:
        """Establish broker connectivity. Returns the existing connection if open."""
        ...

    async def start_subscription(
        self,
        trace_filter: TraceFilter,
        on_event: EventHandler,
        on_error: ErrorHandler,
    ) -> None:
        """Declare a transient queue bound to the trace exchange and consume it."""
        ...

    async def stop(self) -> None:
        """Close the subscription channel and the connection."""
        ...


class TraceSource:
    """Consumes amq.rabbitmq.trace through a server-named exclusive queue."""

    def __init__(self, url: str, prefetch_count: int = 1):
        self._url = url
        self._prefetch_count = prefetch_count
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None
        self._queue: AbstractQueue | None = None
        self._on_event: EventHandler | None = None
        self._on_error: ErrorHandler | None = None

    @property
    def subscribed(self) -> bool:
        return self._channel is not None

    async def connect(self) -> AbstractConnection:
        """Establish broker connectivity. Returns the existing connection if open."""
        if self._connection is not None and not self._connection.is_closed:
            return self._connection

        logger.info("Connecting to RabbitMQ")
        try:
            self._connection = await aio_pika.connect(self._url)
        except Exception as e:
            self._connection = None
            raise ConnectError(f"Failed to connect to RabbitMQ: {e}") from e

        logger.info("Connected to RabbitMQ")
        return self._connection

    async def start_subscription(
        self,
        trace_filter: TraceFilter,
        on_event: EventHandler,
        on_error: ErrorHandler,
    ) -> None:
        """Declare a transient queue bound to the trace exchange and consume it."""
        if self._connection is None or self._connection.is_closed:
            raise SubscribeError("Must connect before starting monitoring")
        if self._channel is not None:
            raise SubscribeError("Already monitoring")

        self._on_event = on_event
        self._on_error = on_error

        channel: AbstractChannel | None = None
        try:
            channel = await self._connection.channel()
            await channel.set_qos(prefetch_count=self._prefetch_count)

            queue = await channel.declare_queue("", exclusive=True, auto_delete=True)
            await queue.bind(TRACE_EXCHANGE, routing_key=trace_filter.routing_key)
            await queue.consume(self._handle_message)
        except Exception as e:
            if channel is not None and not channel.is_closed:
                try:
                    await channel.close()
                except Exception:
                    logger.exception("Error closing channel after failed subscribe")
            raise SubscribeError(f"Failed to start monitoring: {e}") from e

        self._channel = channel
        self._queue = queue
        logger.info(
            "Monitoring queue %s bound to %s",
            queue.name,
            TRACE_EXCHANGE,
            extra=log_context(routing_key=trace_filter.routing_key),
        )

    async def _handle_message(self, message: AbstractIncomingMessage) -> None:
        """Normalize one trace record and dispatch it. Exactly one callback fires."""
        try:
            event = normalize_message(message)
        except NormalizeError as e:
            logger.warning("Rejecting malformed trace record: %s", e)
            await message.nack(requeue=False)
            if self._on_error is not None:
                await self._on_error(e)
            return

        try:
            if self._on_event is not None:
                await self._on_event(event)
        except Exception:
            logger.exception("Error dispatching trace event")
            await message.nack(requeue=False)
            return

        await message.ack()

    async def stop(self) -> None:
        """Close the subscription channel and the connection."""
        failures: list[str] = []

        if self._channel is not None:
            try:
                await self._channel.close()
            except Exception as e:
                logger.error("Error closing channel: %s", e)
                failures.append(f"channel: {e}")
            self._channel = None
            self._queue = None

        if self._connection is not None:
            try:
                await self._connection.close()
            except Exception as e:
                logger.error("Error closing connection: %s", e)
                failures.append(f"connection: {e}")
            self._connection = None

        self._on_event = None
        self._on_error = None

        if failures:
            raise StopError("; ".join(failures))

        logger.info("Monitor stopped")
