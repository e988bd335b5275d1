"""
Domain Event Publisher

Publishes domain events to the RabbitMQ topic exchange.

Features:
- Persistent messages on a confirm-mode channel (publish returns once the broker accepted it)
- Bounded retry with exponential backoff: delay = 2^attempt * PUBLISH_BACKOFF_BASE_MS
- PublishError surfaced to the caller once the retry budget is exhausted
- Trace context propagated through message headers
"""

import anyio
import aio_pika
from aio_pika.abc import AbstractExchange
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import PublishError
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_envelope import EventEnvelope
from src.platform.message_queue.json_event_serializer import serialize_domain_event
from src.platform.message_queue.rabbitmq_connection import RabbitMqConnection
from src.platform.message_queue.rabbitmq_constant_builder import RabbitMqTopologyBuilder
from src.platform.metrics.notification_metrics import metrics
from src.platform.observability.tracing import inject_trace_context
from src.service.shared_kernel.domain.domain_event import MqDomainEvent


class RabbitMqEventPublisher:
    def __init__(
        self,
        *,
        connection: RabbitMqConnection,
        exchange_name: str | None = None,
        max_retries: int | None = None,
        backoff_base_ms: int | None = None,
        publish_timeout: float | None = None,
    ) -> None:
        self.connection = connection
        self.exchange_name = exchange_name or RabbitMqTopologyBuilder.event_exchange()
        self.max_retries = settings.PUBLISH_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base_ms = (
            settings.PUBLISH_BACKOFF_BASE_MS if backoff_base_ms is None else backoff_base_ms
        )
        self.publish_timeout = (
            settings.PUBLISH_TIMEOUT_SECONDS if publish_timeout is None else publish_timeout
        )
        self.tracer = trace.get_tracer(__name__)
        self._exchange: AbstractExchange | None = None

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number `attempt` (1-based)."""
        return (2**attempt) * self.backoff_base_ms / 1000

    async def _get_exchange(self) -> AbstractExchange:
        # Topology is declared at startup; skip the passive declare round-trip here
        if self._exchange is None:
            self._exchange = await self.connection.channel.get_exchange(
                self.exchange_name, ensure=False
            )
        return self._exchange

    def _build_message(self, envelope: EventEnvelope) -> aio_pika.Message:
        return aio_pika.Message(
            body=envelope.body,
            headers=inject_trace_context(headers=envelope.headers),
            content_type=envelope.content_type,
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            message_id=envelope.message_id,
            correlation_id=envelope.correlation_id,
            timestamp=envelope.timestamp,
            type=envelope.event_type,
            app_id=envelope.source,
        )

    async def publish_domain_event(
        self,
        *,
        event: MqDomainEvent,
        event_type: str,
        routing_key: str,
    ) -> EventEnvelope:
        """
        Publish one domain event. Sequential retries; only this call waits on backoff.

        Returns:
            The envelope the broker accepted

        Raises:
            PublishError: all 1 + max_retries attempts failed
        """
        envelope = EventEnvelope(event_type=event_type, body=serialize_domain_event(event))
        max_attempts = self.max_retries + 1
        last_error: Exception | None = None

        with Logger.correlation(envelope.correlation_id), self.tracer.start_as_current_span(
            'rabbitmq.publish',
            kind=trace.SpanKind.PRODUCER,
            attributes={
                'messaging.system': 'rabbitmq',
                'messaging.destination': self.exchange_name,
                'messaging.rabbitmq.routing_key': routing_key,
                'messaging.message_id': envelope.message_id,
                'event.type': event_type,
            },
        ):
            message = self._build_message(envelope)
            attempt = 0

            try:
                while attempt < max_attempts:
                    attempt += 1
                    try:
                        exchange = await self._get_exchange()
                        await exchange.publish(
                            message, routing_key=routing_key, timeout=self.publish_timeout
                        )
                    except Exception as e:
                        last_error = e
                        self._exchange = None
                    else:
                        metrics.record_published(event_type=event_type)
                        Logger.base.info(
                            f'📤 [PUBLISH] {event_type} -> {self.exchange_name}/{routing_key} '
                            f'(correlation_id={envelope.correlation_id})'
                        )
                        return envelope

                    if attempt >= max_attempts:
                        break

                    delay = self.backoff_delay(attempt)
                    metrics.record_publish_retry(event_type=event_type)
                    Logger.base.warning(
                        f'🔁 [PUBLISH] {event_type} attempt {attempt}/{max_attempts} failed: '
                        f'{last_error} - retry in {int(delay * 1000)}ms'
                    )
                    await anyio.sleep(delay)
            except anyio.get_cancelled_exc_class():
                Logger.base.warning(
                    f'🛑 [PUBLISH] Cancelled {event_type} on attempt {attempt}/{max_attempts}'
                )
                raise

        metrics.record_publish_failure(event_type=event_type)
        Logger.base.error(
            f'❌ [PUBLISH] {event_type} dropped after {max_attempts} attempts: {last_error}'
        )
        raise PublishError(
            f'Failed to publish {event_type} to {routing_key} after {max_attempts} attempts: '
            f'{last_error}',
            event_type=event_type,
            routing_key=routing_key,
            attempts=max_attempts,
        ) from last_error
