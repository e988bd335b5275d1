"""
Unit tests for RabbitMqEventPublisher

Retry contract: 1 initial attempt + 3 retries, delay = 2^attempt * 100ms (attempt from 1),
PublishError once the budget is exhausted, cancellation honoured during backoff.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, call, patch
import uuid

import aio_pika
import anyio
import orjson
import pytest

from src.platform.exception.exceptions import PublishError
from src.platform.message_queue.event_publisher import RabbitMqEventPublisher
from src.service.todo.domain.domain_event.todo_domain_event import TodoCreatedEvent
from src.service.todo.domain.enum.priority import Priority


SLEEP = 'src.platform.message_queue.event_publisher.anyio.sleep'


@pytest.fixture
def event() -> TodoCreatedEvent:
    return TodoCreatedEvent(
        todo_id=uuid.uuid4(),
        title='Buy milk',
        description=None,
        priority=Priority.MEDIUM,
        created_at=datetime.now(timezone.utc),
    )


@pytest.fixture
def publisher(fake_connection) -> RabbitMqEventPublisher:
    return RabbitMqEventPublisher(connection=fake_connection)


async def _publish(publisher: RabbitMqEventPublisher, event: TodoCreatedEvent):
    return await publisher.publish_domain_event(
        event=event, event_type='TodoCreatedEvent', routing_key='todo.todocreatedevent'
    )


class TestPublishSuccess:
    @pytest.mark.asyncio
    async def test_publishes_persistent_json_message_with_headers(
        self, publisher, fake_exchange, event
    ):
        envelope = await _publish(publisher, event)

        fake_exchange.publish.assert_awaited_once()
        message = fake_exchange.publish.await_args.args[0]
        assert fake_exchange.publish.await_args.kwargs['routing_key'] == 'todo.todocreatedevent'
        assert message.delivery_mode == aio_pika.DeliveryMode.PERSISTENT
        assert message.content_type == 'application/json'
        assert message.message_id == envelope.message_id
        assert message.headers['EventType'] == 'TodoCreatedEvent'
        assert message.headers['Source'] == 'TodoApi'
        assert message.headers['Version'] == '1.0'
        assert message.headers['CorrelationId'] == envelope.correlation_id
        assert orjson.loads(message.body)['title'] == 'Buy milk'

    @pytest.mark.asyncio
    async def test_exchange_is_looked_up_once(self, publisher, fake_connection, event):
        await _publish(publisher, event)
        await _publish(publisher, event)

        fake_connection.channel.get_exchange.assert_awaited_once_with('todo.events', ensure=False)

    @pytest.mark.asyncio
    async def test_each_publish_gets_a_fresh_correlation_id(self, publisher, event):
        first = await _publish(publisher, event)
        second = await _publish(publisher, event)

        assert first.correlation_id != second.correlation_id


class TestPublishRetry:
    def test_backoff_schedule(self, publisher):
        assert [publisher.backoff_delay(attempt) for attempt in (1, 2, 3)] == [0.2, 0.4, 0.8]

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, publisher, fake_exchange, event):
        fake_exchange.publish.side_effect = [ConnectionError('down'), ConnectionError('down'), None]

        with patch(SLEEP, new=AsyncMock()) as sleep:
            await _publish(publisher, event)

        assert fake_exchange.publish.await_count == 3
        assert sleep.await_args_list == [call(0.2), call(0.4)]

    @pytest.mark.asyncio
    async def test_retries_exhausted_raises_publish_error(self, publisher, fake_exchange, event):
        fake_exchange.publish.side_effect = ConnectionError('broker unreachable')

        with patch(SLEEP, new=AsyncMock()) as sleep:
            with pytest.raises(PublishError) as exc_info:
                await _publish(publisher, event)

        # 1 initial + 3 retries
        assert fake_exchange.publish.await_count == 4
        assert sleep.await_args_list == [call(0.2), call(0.4), call(0.8)]
        assert exc_info.value.attempts == 4
        assert exc_info.value.event_type == 'TodoCreatedEvent'
        assert exc_info.value.routing_key == 'todo.todocreatedevent'
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_message_is_serialized_once_across_retries(self, publisher, fake_exchange, event):
        fake_exchange.publish.side_effect = [ConnectionError('down'), None]

        with patch(SLEEP, new=AsyncMock()):
            await _publish(publisher, event)

        first, second = (awaited.args[0] for awaited in fake_exchange.publish.await_args_list)
        assert first is second

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_aborts_without_publish_error(
        self, fake_connection, fake_exchange, event
    ):
        publisher = RabbitMqEventPublisher(connection=fake_connection, backoff_base_ms=60_000)
        fake_exchange.publish.side_effect = ConnectionError('down')

        with anyio.fail_after(5):
            with anyio.move_on_after(0.1) as scope:
                await _publish(publisher, event)

        assert scope.cancelled_caught
        assert fake_exchange.publish.await_count == 1
