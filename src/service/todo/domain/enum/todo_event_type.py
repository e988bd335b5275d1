"""
Todo Event Type - closed set of event kinds carried over the broker

Each kind maps to its event class (deserialization) and its routing key (topology).
The wire name (EventType header) is the event class name.
"""

from enum import StrEnum
from typing import Optional

from src.platform.message_queue.rabbitmq_constant_builder import RabbitMqTopologyBuilder
from src.service.todo.domain.domain_event.todo_domain_event import (
    TodoCompletedEvent,
    TodoCreatedEvent,
    TodoPriorityChangedEvent,
    TodoReopenedEvent,
    TodoUpdatedEvent,
)


class TodoEventType(StrEnum):
    CREATED = 'TodoCreatedEvent'
    COMPLETED = 'TodoCompletedEvent'
    UPDATED = 'TodoUpdatedEvent'
    REOPENED = 'TodoReopenedEvent'
    PRIORITY_CHANGED = 'TodoPriorityChangedEvent'

    @property
    def event_class(self) -> type:
        return _EVENT_CLASSES[self]

    @property
    def routing_key(self) -> str:
        return RabbitMqTopologyBuilder.routing_key(event_type_name=self.value)

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional['TodoEventType']:
        """Lookup by wire name; None for missing or unknown names."""
        if not name:
            return None
        try:
            return cls(name)
        except ValueError:
            return None

    @classmethod
    def of(cls, event: object) -> 'TodoEventType':
        event_type = _EVENT_TYPES_BY_CLASS.get(type(event))
        if event_type is None:
            raise ValueError(f'Not a Todo domain event: {type(event).__name__}')
        return event_type


_EVENT_CLASSES: dict[TodoEventType, type] = {
    TodoEventType.CREATED: TodoCreatedEvent,
    TodoEventType.COMPLETED: TodoCompletedEvent,
    TodoEventType.UPDATED: TodoUpdatedEvent,
    TodoEventType.REOPENED: TodoReopenedEvent,
    TodoEventType.PRIORITY_CHANGED: TodoPriorityChangedEvent,
}

_EVENT_TYPES_BY_CLASS: dict[type, TodoEventType] = {
    event_class: event_type for event_type, event_class in _EVENT_CLASSES.items()
}
