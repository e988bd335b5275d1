"""
Todo Event Publisher Implementation

Concrete adapter that implements ITodoEventPublisher on top of the RabbitMQ publisher.
Resolves the EventType header and routing key from the closed TodoEventType set:
- TodoCreatedEvent -> todo.todocreatedevent
- TodoCompletedEvent -> todo.todocompletedevent
- ...
"""

from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.event_publisher import RabbitMqEventPublisher
from src.service.todo.app.interface.i_todo_event_publisher import ITodoEventPublisher
from src.service.todo.domain.domain_event.todo_domain_event import TodoDomainEvent
from src.service.todo.domain.enum.todo_event_type import TodoEventType


class TodoEventPublisherImpl(ITodoEventPublisher):
    def __init__(self, *, publisher: RabbitMqEventPublisher) -> None:
        self.publisher = publisher

    @Logger.io
    async def publish(self, *, event: TodoDomainEvent) -> None:
        event_type = TodoEventType.of(event)
        await self.publisher.publish_domain_event(
            event=event,
            event_type=event_type.value,
            routing_key=event_type.routing_key,
        )
