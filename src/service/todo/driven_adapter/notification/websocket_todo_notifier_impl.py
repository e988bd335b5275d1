"""
WebSocket Todo Notifier Implementation

Builds a TodoNotification per event kind and fans it out to every connected client.
Frame sent to clients:
    {"target": "ReceiveNotification", "arguments": [<notification>]}

Per-connection failures are handled (logged, connection dropped) inside the connection
manager and never surface here, so they never turn into a consumer requeue.
"""

from datetime import datetime
from typing import Any, Dict, Optional
import uuid

from src.platform.logging.loguru_io import Logger
from src.platform.websocket.connection_manager import WebSocketConnectionManager
from src.service.todo.app.dto.todo_notification import TodoNotification, TodoNotificationType
from src.service.todo.app.interface.i_todo_notifier import ITodoNotifier
from src.service.todo.domain.enum.priority import Priority


RECEIVE_NOTIFICATION_METHOD = 'ReceiveNotification'


def build_frame(notification: TodoNotification) -> Dict[str, Any]:
    return {'target': RECEIVE_NOTIFICATION_METHOD, 'arguments': [notification.to_dict()]}


class WebSocketTodoNotifierImpl(ITodoNotifier):
    def __init__(self, *, connection_manager: WebSocketConnectionManager) -> None:
        self.connection_manager = connection_manager

    async def _send(self, notification: TodoNotification, *, todo_id: uuid.UUID) -> None:
        result = await self.connection_manager.broadcast(build_frame(notification))
        Logger.base.info(
            f'🔔 [NOTIFY] {notification.type} for {todo_id} '
            f'(delivered={result.delivered}, failed={result.failed})'
        )

    async def notify_created(
        self,
        *,
        todo_id: uuid.UUID,
        title: str,
        description: Optional[str],
        priority: Priority,
        created_at: datetime,
    ) -> None:
        notification = TodoNotification(
            type=TodoNotificationType.CREATED,
            message=f'New todo created: {title}',
            data={
                'id': todo_id,
                'title': title,
                'description': description,
                'priority': priority,
                'created_at': created_at,
            },
        )
        await self._send(notification, todo_id=todo_id)

    async def notify_completed(
        self, *, todo_id: uuid.UUID, title: str, completed_at: datetime
    ) -> None:
        notification = TodoNotification(
            type=TodoNotificationType.COMPLETED,
            message=f'Todo completed: {title}',
            data={'id': todo_id, 'title': title, 'completed_at': completed_at},
        )
        await self._send(notification, todo_id=todo_id)

    async def notify_updated(
        self, *, todo_id: uuid.UUID, title: str, change_description: str
    ) -> None:
        notification = TodoNotification(
            type=TodoNotificationType.UPDATED,
            message=f'Todo updated: {title}',
            data={'id': todo_id, 'title': title, 'change_description': change_description},
        )
        await self._send(notification, todo_id=todo_id)

    async def notify_reopened(self, *, todo_id: uuid.UUID, title: str) -> None:
        notification = TodoNotification(
            type=TodoNotificationType.REOPENED,
            message=f'Todo reopened: {title}',
            data={'id': todo_id, 'title': title},
        )
        await self._send(notification, todo_id=todo_id)

    async def notify_priority_changed(
        self, *, todo_id: uuid.UUID, title: str, new_priority: Priority
    ) -> None:
        notification = TodoNotification(
            type=TodoNotificationType.PRIORITY_CHANGED,
            message=f'Todo priority changed: {title} - {new_priority.label}',
            data={'id': todo_id, 'title': title, 'new_priority': new_priority},
        )
        await self._send(notification, todo_id=todo_id)
