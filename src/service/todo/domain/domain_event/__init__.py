"""Todo Domain Events"""

from src.service.todo.domain.domain_event.todo_domain_event import (
    TodoCompletedEvent,
    TodoCreatedEvent,
    TodoDomainEvent,
    TodoPriorityChangedEvent,
    TodoReopenedEvent,
    TodoUpdatedEvent,
)

__all__ = [
    'TodoCompletedEvent',
    'TodoCreatedEvent',
    'TodoDomainEvent',
    'TodoPriorityChangedEvent',
    'TodoReopenedEvent',
    'TodoUpdatedEvent',
]
