"""
Todo Notification MQ Consumer

Subscribes the notification queue to all five Todo event kinds and turns each event into
one realtime broadcast through ITodoNotifier.

Dispatch is a closed table (TodoEventType -> handler); anything else is dead-lettered
by the base consumer before the body is parsed.
"""

from typing import Dict

from src.platform.exception.exceptions import UnknownEventTypeError
from src.platform.message_queue.base_rabbitmq_consumer import BaseRabbitMqConsumer, EventHandler
from src.platform.message_queue.rabbitmq_connection import RabbitMqConnection
from src.service.todo.app.interface.i_todo_notifier import ITodoNotifier
from src.service.todo.domain.domain_event.todo_domain_event import (
    TodoCompletedEvent,
    TodoCreatedEvent,
    TodoPriorityChangedEvent,
    TodoReopenedEvent,
    TodoUpdatedEvent,
)
from src.service.todo.domain.enum.todo_event_type import TodoEventType


class TodoNotificationMqConsumer(BaseRabbitMqConsumer):
    def __init__(
        self,
        *,
        connection: RabbitMqConnection,
        notifier: ITodoNotifier,
        **kwargs,
    ) -> None:
        super().__init__(service_name='TODO-NOTIFICATION', connection=connection, **kwargs)
        self.notifier = notifier

    def _get_event_handlers(self) -> Dict[str, tuple[type, EventHandler]]:
        handlers: Dict[TodoEventType, EventHandler] = {
            TodoEventType.CREATED: self._handle_created,
            TodoEventType.COMPLETED: self._handle_completed,
            TodoEventType.UPDATED: self._handle_updated,
            TodoEventType.REOPENED: self._handle_reopened,
            TodoEventType.PRIORITY_CHANGED: self._handle_priority_changed,
        }
        return {
            event_type.value: (event_type.event_class, handler)
            for event_type, handler in handlers.items()
        }

    def _resolve_handler(
        self, event_type: str, handlers: Dict[str, tuple[type, EventHandler]]
    ) -> tuple[type, EventHandler]:
        todo_event_type = TodoEventType.from_name(event_type)
        if todo_event_type is None:
            raise UnknownEventTypeError(f'"{event_type}" is not a Todo event type')
        return super()._resolve_handler(todo_event_type.value, handlers)

    # ========== Handlers ==========

    async def _handle_created(self, event: TodoCreatedEvent) -> None:
        await self.notifier.notify_created(
            todo_id=event.todo_id,
            title=event.title,
            description=event.description,
            priority=event.priority,
            created_at=event.created_at,
        )

    async def _handle_completed(self, event: TodoCompletedEvent) -> None:
        await self.notifier.notify_completed(
            todo_id=event.todo_id, title=event.title, completed_at=event.completed_at
        )

    async def _handle_updated(self, event: TodoUpdatedEvent) -> None:
        await self.notifier.notify_updated(
            todo_id=event.todo_id,
            title=event.title,
            change_description=event.change_description,
        )

    async def _handle_reopened(self, event: TodoReopenedEvent) -> None:
        await self.notifier.notify_reopened(todo_id=event.todo_id, title=event.title)

    async def _handle_priority_changed(self, event: TodoPriorityChangedEvent) -> None:
        await self.notifier.notify_priority_changed(
            todo_id=event.todo_id, title=event.title, new_priority=event.new_priority
        )
