"""
Todo Event Publisher Interface

Application layer abstraction for publishing Todo domain events.
Use cases and the dispatcher depend on this port, not on the RabbitMQ adapter.
"""

from abc import ABC, abstractmethod

from src.service.todo.domain.domain_event.todo_domain_event import TodoDomainEvent


class ITodoEventPublisher(ABC):
    """
    Port (interface) for publishing Todo domain events.

    Implementation (Adapter) should handle:
    - Event type and routing key resolution
    - Serialization into the wire envelope
    - Retry with backoff
    """

    @abstractmethod
    async def publish(self, *, event: TodoDomainEvent) -> None:
        """
        Publish one domain event. Returns once the broker accepted it.

        Args:
            event: Any Todo domain event

        Raises:
            PublishError: If the retry budget is exhausted
        """
        pass
