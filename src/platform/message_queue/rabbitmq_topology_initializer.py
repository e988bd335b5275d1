"""
RabbitMQ Topology Initializer

Declares the exchange/queue/binding layout at process startup. Every declaration is
idempotent, so publisher and consumer processes both run it without coordinating.

Layout:
    todo.events (topic, durable)
        ├─ todo.todocreatedevent ─────────┐
        ├─ todo.todocompletedevent ───────┤
        ├─ ...                            ├──> todo.notifications (durable queue)
        │                                 │       x-dead-letter-exchange = todo.events.deadletter
    todo.events.deadletter (direct) <─────┘       (reject without requeue)
        └─ todo.notifications.deadletter ───> todo.notifications.deadletter (parking queue)
"""

from collections.abc import Iterable

from aio_pika import ExchangeType
from aio_pika.abc import AbstractChannel, AbstractQueue

from src.platform.exception.exceptions import BrokerConnectionError
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.rabbitmq_constant_builder import RabbitMqTopologyBuilder


class RabbitMqTopologyInitializer:
    def __init__(
        self,
        *,
        channel: AbstractChannel,
        exchange_name: str | None = None,
        dead_letter_exchange_name: str | None = None,
    ) -> None:
        self.channel = channel
        self.exchange_name = exchange_name or RabbitMqTopologyBuilder.event_exchange()
        self.dead_letter_exchange_name = (
            dead_letter_exchange_name or RabbitMqTopologyBuilder.dead_letter_exchange()
        )

    async def ensure_exchanges(self) -> None:
        """Declare the topic exchange and the dead-letter exchange."""
        await self.channel.declare_exchange(
            self.exchange_name,
            type=ExchangeType.TOPIC,
            durable=True,
            auto_delete=False,
        )
        await self.channel.declare_exchange(
            self.dead_letter_exchange_name,
            type=ExchangeType.DIRECT,
            durable=True,
            auto_delete=False,
        )

    async def ensure_queue(self, *, queue_name: str, routing_keys: Iterable[str]) -> AbstractQueue:
        """
        Declare a consumer-group queue bound with one exact binding per routing key,
        plus its dead-letter parking queue.
        """
        dead_letter_queue_name = RabbitMqTopologyBuilder.dead_letter_queue(queue_name=queue_name)

        dead_letter_queue = await self.channel.declare_queue(
            dead_letter_queue_name,
            durable=True,
            exclusive=False,
            auto_delete=False,
        )
        await dead_letter_queue.bind(
            self.dead_letter_exchange_name, routing_key=dead_letter_queue_name
        )

        queue = await self.channel.declare_queue(
            queue_name,
            durable=True,
            exclusive=False,
            auto_delete=False,
            arguments={
                'x-dead-letter-exchange': self.dead_letter_exchange_name,
                'x-dead-letter-routing-key': dead_letter_queue_name,
            },
        )

        bound = []
        for routing_key in routing_keys:
            await queue.bind(self.exchange_name, routing_key=routing_key)
            bound.append(routing_key)

        Logger.base.info(
            f'🔗 [TOPOLOGY] Queue {queue_name} bound to {self.exchange_name}: {bound}'
        )
        return queue

    async def ensure_topology(
        self, *, queue_name: str | None = None, routing_keys: Iterable[str] = ()
    ) -> AbstractQueue | None:
        """
        Declare exchanges and, when a queue name is given, the bound queue.

        Raises:
            BrokerConnectionError: topology could not be declared (fatal at startup)
        """
        try:
            await self.ensure_exchanges()
            queue = None
            if queue_name:
                queue = await self.ensure_queue(queue_name=queue_name, routing_keys=routing_keys)
        except Exception as e:
            raise BrokerConnectionError(f'Failed to declare RabbitMQ topology: {e}') from e

        Logger.base.info(
            f'✅ [TOPOLOGY] Ready: exchange={self.exchange_name} '
            f'dlx={self.dead_letter_exchange_name}'
        )
        return queue


async def declare_topology(
    channel: AbstractChannel,
    *,
    routing_keys: Iterable[str] = (),
    queue_name: str | None = None,
) -> AbstractQueue | None:
    """Shortcut used at startup by both the publisher and the consumer side."""
    return await RabbitMqTopologyInitializer(channel=channel).ensure_topology(
        queue_name=queue_name, routing_keys=routing_keys
    )
