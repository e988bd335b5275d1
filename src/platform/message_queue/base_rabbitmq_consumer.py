from abc import ABC, abstractmethod
import time
from typing import Any, Awaitable, Callable, Dict, Optional

import anyio
from anyio.abc import TaskGroup
from aio_pika.abc import AbstractIncomingMessage, AbstractQueue
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import MalformedEventError, UnknownEventTypeError
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_envelope import EventEnvelope
from src.platform.message_queue.json_event_serializer import deserialize_domain_event
from src.platform.message_queue.rabbitmq_connection import RabbitMqConnection
from src.platform.message_queue.rabbitmq_constant_builder import RabbitMqTopologyBuilder
from src.platform.message_queue.rabbitmq_topology_initializer import declare_topology
from src.platform.metrics.notification_metrics import metrics
from src.platform.observability.tracing import extract_trace_context


EventHandler = Callable[[Any], Awaitable[None]]


class ConsumeOutcome:
    ACKED = 'acked'
    REQUEUED = 'requeued'
    DEAD_LETTERED = 'dead_lettered'


class BaseRabbitMqConsumer(ABC):
    # === Tuning Parameters (subclasses can override) ===
    #
    # MAX_TRACKED_FAILURES: Upper bound of the redelivery side counter
    #   - Oldest entries are evicted first
    #   - Only messages that failed and were never redelivered to this process linger
    #
    MAX_TRACKED_FAILURES: int = 10_000

    def __init__(
        self,
        *,
        service_name: str,
        connection: RabbitMqConnection,
        queue_name: str | None = None,
        prefetch_count: int | None = None,
        max_redeliveries: int | None = None,
        shutdown_timeout: float | None = None,
    ) -> None:
        self.service_name = service_name
        self.connection = connection
        self.queue_name = queue_name or RabbitMqTopologyBuilder.notification_queue()
        self.prefetch_count = (
            settings.CONSUMER_PREFETCH_COUNT if prefetch_count is None else prefetch_count
        )
        self.max_redeliveries = (
            settings.CONSUMER_MAX_REDELIVERIES if max_redeliveries is None else max_redeliveries
        )
        self.shutdown_timeout = (
            settings.CONSUMER_SHUTDOWN_TIMEOUT_SECONDS
            if shutdown_timeout is None
            else shutdown_timeout
        )
        self.tracer = trace.get_tracer(__name__)

        # Running state control
        self.running = False
        self._stop_requested = False
        self._receive_scope: Optional[anyio.CancelScope] = None
        # Failed deliveries per message: { message_id: failures }
        self._failure_counts: Dict[str, int] = {}

    @abstractmethod
    def _get_event_handlers(self) -> Dict[str, tuple[type, EventHandler]]:
        """
        Return event type name to handler mapping.

        Returns:
            {
                'EventTypeName': (EventClass, async_handler),
                ...
            }

        Example:
            return {
                'TodoCreatedEvent': (TodoCreatedEvent, self._handle_created),
                'TodoCompletedEvent': (TodoCompletedEvent, self._handle_completed),
            }
        """
        pass

    def _resolve_handler(
        self, event_type: str, handlers: Dict[str, tuple[type, EventHandler]]
    ) -> tuple[type, EventHandler]:
        """Map the EventType header to its handler entry; unknown names are dead-lettered."""
        entry = handlers.get(event_type)
        if entry is None:
            raise UnknownEventTypeError(f'Unknown EventType "{event_type}"')
        return entry

    def routing_keys(self) -> list[str]:
        return [
            RabbitMqTopologyBuilder.routing_key(event_type_name=name)
            for name in self._get_event_handlers()
        ]

    # ========== Lifecycle ==========

    async def run(self) -> None:
        """
        Main consumer loop.

        1. Set prefetch (bounds in-flight messages) and declare topology
        2. Pull messages one at a time from the queue iterator
        3. Process each in the task group (handlers for different messages run concurrently)
        4. On stop(): stop pulling, drain in-flight handlers (bounded by shutdown_timeout)
        """
        channel = self.connection.channel
        await channel.set_qos(prefetch_count=self.prefetch_count)
        queue = await declare_topology(
            channel, routing_keys=self.routing_keys(), queue_name=self.queue_name
        )
        handlers = self._get_event_handlers()

        Logger.base.info(
            f'🐇 [{self.service_name}] Started | queue={self.queue_name} '
            f'events={list(handlers.keys())} prefetch={self.prefetch_count} '
            f'max_redeliveries={self.max_redeliveries or "unbounded"}'
        )

        self.running = True
        try:
            async with anyio.create_task_group() as tg:
                await self._receive_loop(queue, handlers, tg)

                Logger.base.info(f'⏳ [{self.service_name}] Draining in-flight messages')
                tg.cancel_scope.deadline = anyio.current_time() + self.shutdown_timeout
        finally:
            self.running = False
            self._receive_scope = None

        Logger.base.info(f'🛑 [{self.service_name}] Stopped')

    async def _receive_loop(
        self,
        queue: AbstractQueue,
        handlers: Dict[str, tuple[type, EventHandler]],
        tg: TaskGroup,
    ) -> None:
        if self._stop_requested:
            return

        queue_iter = queue.iterator()
        try:
            with anyio.CancelScope() as scope:
                self._receive_scope = scope
                async for message in queue_iter:
                    # Not settled: redelivered by the broker once the subscription closes
                    if self._stop_requested:
                        break
                    tg.start_soon(self._process_message, message, handlers)
        finally:
            # Cancel the broker-side subscription even when the loop was cancelled
            with anyio.CancelScope(shield=True):
                try:
                    await queue_iter.close()
                except Exception as e:
                    Logger.base.warning(f'⚠️ [{self.service_name}] Iterator close error: {e}')

    def stop(self) -> None:
        """Stop pulling new messages; in-flight handlers drain before run() returns."""
        self._stop_requested = True
        if self._receive_scope is not None:
            Logger.base.info(f'🛑 [{self.service_name}] Stopping...')
            self._receive_scope.cancel()

    # ========== Message Processing ==========

    async def _process_message(
        self,
        message: AbstractIncomingMessage,
        handlers: Dict[str, tuple[type, EventHandler]],
    ) -> None:
        """
        Flow: headers triage -> deserialize -> dispatch -> ack / requeue / dead-letter

        Never raises (except cancellation): one bad message must not stop the loop.
        """
        start = time.monotonic()
        event_type = 'unknown'
        try:
            envelope = EventEnvelope.from_headers(
                message.headers, body=message.body, message_id=message.message_id
            )
            try:
                if envelope is None:
                    raise UnknownEventTypeError('Missing EventType header')
                entry = self._resolve_handler(envelope.event_type, handlers)
            except UnknownEventTypeError as e:
                Logger.base.warning(
                    f'⚠️ [{self.service_name}] {e.message}, dead-lettering '
                    f'message_id={message.message_id}'
                )
                await self._dead_letter(message, event_type='unknown', start=start)
                return

            event_type = envelope.event_type

            if not envelope.is_current_version:
                Logger.base.debug(
                    f'[{self.service_name}] {event_type} has schema version '
                    f'"{envelope.version}", processing anyway'
                )

            event_class, handler = entry
            try:
                event = deserialize_domain_event(event_class, message.body)
            except MalformedEventError as e:
                Logger.base.error(
                    f'❌ [{self.service_name}] Malformed {event_type} body, dead-lettering: {e}'
                )
                await self._dead_letter(message, event_type=event_type, start=start)
                return

            parent_context = extract_trace_context(headers=message.headers)
            with Logger.correlation(envelope.correlation_id), self.tracer.start_as_current_span(
                f'consumer.{event_type}',
                context=parent_context,
                kind=trace.SpanKind.CONSUMER,
                attributes={
                    'messaging.system': 'rabbitmq',
                    'messaging.destination': self.queue_name,
                    'messaging.message_id': message.message_id or '',
                    'messaging.conversation_id': envelope.correlation_id,
                    'event.type': event_type,
                },
            ):
                try:
                    await handler(event)
                except anyio.get_cancelled_exc_class():
                    raise
                except Exception as e:
                    await self._requeue_or_dead_letter(
                        message, event_type=event_type, error=e, start=start
                    )
                    return

            await message.ack()
            self._forget_failures(message)
            metrics.record_consumed(
                event_type=event_type,
                outcome=ConsumeOutcome.ACKED,
                duration=time.monotonic() - start,
            )
            Logger.base.info(
                f'✅ [{self.service_name}] Acked {event_type} '
                f'(correlation_id={envelope.correlation_id})'
            )

        except anyio.get_cancelled_exc_class():
            Logger.base.warning(
                f'🛑 [{self.service_name}] {event_type} cancelled before settle, '
                'broker will redeliver'
            )
            raise
        except Exception as e:
            # ack/nack on a closed channel: the broker redelivers on its own
            Logger.base.error(f'❌ [{self.service_name}] Settle failed for {event_type}: {e}')

    async def _dead_letter(
        self, message: AbstractIncomingMessage, *, event_type: str, start: float
    ) -> None:
        await message.reject(requeue=False)
        self._forget_failures(message)
        metrics.record_consumed(
            event_type=event_type,
            outcome=ConsumeOutcome.DEAD_LETTERED,
            duration=time.monotonic() - start,
        )

    async def _requeue_or_dead_letter(
        self,
        message: AbstractIncomingMessage,
        *,
        event_type: str,
        error: Exception,
        start: float,
    ) -> None:
        failures = self._record_failure(message)

        if self.max_redeliveries and failures > self.max_redeliveries:
            Logger.base.error(
                f'💀 [{self.service_name}] {event_type} failed {failures} times '
                f'(limit {self.max_redeliveries} redeliveries), dead-lettering: {error}'
            )
            await self._dead_letter(message, event_type=event_type, start=start)
            return

        Logger.base.error(
            f'🔁 [{self.service_name}] Handler failed for {event_type} '
            f'(failure {failures}), requeueing: {error}'
        )
        await message.nack(requeue=True)
        metrics.record_consumed(
            event_type=event_type,
            outcome=ConsumeOutcome.REQUEUED,
            duration=time.monotonic() - start,
        )

    # ========== Redelivery Ceiling ==========

    @staticmethod
    def _failure_key(message: AbstractIncomingMessage) -> str | None:
        return message.message_id or message.correlation_id or None

    @staticmethod
    def _broker_delivery_count(message: AbstractIncomingMessage) -> int | None:
        """Quorum queues report prior deliveries in x-delivery-count."""
        value = (message.headers or {}).get('x-delivery-count')
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def _record_failure(self, message: AbstractIncomingMessage) -> int:
        """Return the number of failed deliveries of this message, including this one."""
        failures = 1
        key = self._failure_key(message)
        if key is not None:
            failures = self._failure_counts.pop(key, 0) + 1
            self._failure_counts[key] = failures
            while len(self._failure_counts) > self.MAX_TRACKED_FAILURES:
                self._failure_counts.pop(next(iter(self._failure_counts)))

        delivery_count = self._broker_delivery_count(message)
        if delivery_count is not None:
            failures = max(failures, delivery_count + 1)
        return failures

    def _forget_failures(self, message: AbstractIncomingMessage) -> None:
        key = self._failure_key(message)
        if key is not None:
            self._failure_counts.pop(key, None)
