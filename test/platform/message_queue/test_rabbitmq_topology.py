"""
Unit tests for RabbitMQ topology naming and declaration

Declaration runs against a mocked channel: no broker needed.
"""

from unittest.mock import AsyncMock, MagicMock, call

from aio_pika import ExchangeType
import pytest

from src.platform.exception.exceptions import BrokerConnectionError
from src.platform.message_queue.rabbitmq_constant_builder import RabbitMqTopologyBuilder
from src.platform.message_queue.rabbitmq_topology_initializer import (
    RabbitMqTopologyInitializer,
    declare_topology,
)
from src.service.todo.domain.enum.todo_event_type import TodoEventType


class TestRoutingKeys:
    @pytest.mark.parametrize(
        'event_type,expected',
        [
            (TodoEventType.CREATED, 'todo.todocreatedevent'),
            (TodoEventType.COMPLETED, 'todo.todocompletedevent'),
            (TodoEventType.UPDATED, 'todo.todoupdatedevent'),
            (TodoEventType.REOPENED, 'todo.todoreopenedevent'),
            (TodoEventType.PRIORITY_CHANGED, 'todo.todoprioritychangedevent'),
        ],
    )
    def test_routing_key_is_domain_dot_lowercased_event_name(self, event_type, expected):
        assert event_type.routing_key == expected

    def test_builder_names(self):
        assert RabbitMqTopologyBuilder.event_exchange() == 'todo.events'
        assert RabbitMqTopologyBuilder.dead_letter_exchange() == 'todo.events.deadletter'
        assert RabbitMqTopologyBuilder.notification_queue() == 'todo.notifications'
        assert (
            RabbitMqTopologyBuilder.dead_letter_queue(queue_name='todo.notifications')
            == 'todo.notifications.deadletter'
        )


@pytest.fixture
def queue() -> MagicMock:
    queue = MagicMock()
    queue.bind = AsyncMock()
    return queue


@pytest.fixture
def channel(queue: MagicMock) -> MagicMock:
    channel = MagicMock()
    channel.declare_exchange = AsyncMock()
    channel.declare_queue = AsyncMock(return_value=queue)
    return channel


class TestDeclareTopology:
    @pytest.mark.asyncio
    async def test_declares_durable_topic_and_dead_letter_exchanges(self, channel):
        await declare_topology(channel)

        channel.declare_exchange.assert_has_awaits(
            [
                call('todo.events', type=ExchangeType.TOPIC, durable=True, auto_delete=False),
                call(
                    'todo.events.deadletter',
                    type=ExchangeType.DIRECT,
                    durable=True,
                    auto_delete=False,
                ),
            ]
        )
        channel.declare_queue.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_queue_dead_letters_into_parking_queue(self, channel, queue):
        routing_keys = [event_type.routing_key for event_type in TodoEventType]

        result = await declare_topology(
            channel, routing_keys=routing_keys, queue_name='todo.notifications'
        )

        assert result is queue
        channel.declare_queue.assert_any_await(
            'todo.notifications',
            durable=True,
            exclusive=False,
            auto_delete=False,
            arguments={
                'x-dead-letter-exchange': 'todo.events.deadletter',
                'x-dead-letter-routing-key': 'todo.notifications.deadletter',
            },
        )
        channel.declare_queue.assert_any_await(
            'todo.notifications.deadletter', durable=True, exclusive=False, auto_delete=False
        )
        # 1 DLQ binding + one exact binding per event type
        assert queue.bind.await_count == 1 + len(routing_keys)
        queue.bind.assert_any_await(
            'todo.events.deadletter', routing_key='todo.notifications.deadletter'
        )
        for routing_key in routing_keys:
            queue.bind.assert_any_await('todo.events', routing_key=routing_key)

    @pytest.mark.asyncio
    async def test_repeated_declaration_is_safe(self, channel):
        initializer = RabbitMqTopologyInitializer(channel=channel)

        first = await initializer.ensure_topology(
            queue_name='todo.notifications', routing_keys=['todo.todocreatedevent']
        )
        second = await initializer.ensure_topology(
            queue_name='todo.notifications', routing_keys=['todo.todocreatedevent']
        )

        assert first is second
        assert channel.declare_exchange.await_count == 4

    @pytest.mark.asyncio
    async def test_declare_failure_is_fatal(self, channel):
        channel.declare_exchange.side_effect = ConnectionError('channel closed')

        with pytest.raises(BrokerConnectionError, match='topology'):
            await declare_topology(channel, queue_name='todo.notifications')
