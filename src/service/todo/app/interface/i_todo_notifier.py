"""
Todo Notifier Interface

One broadcast operation per event kind. Each takes kind-specific fields, not the raw envelope,
and pushes a notification to every connected realtime client.

Implementations must tolerate duplicate calls for the same event (at-least-once delivery).
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
import uuid

from src.service.todo.domain.enum.priority import Priority


class ITodoNotifier(ABC):
    @abstractmethod
    async def notify_created(
        self,
        *,
        todo_id: uuid.UUID,
        title: str,
        description: Optional[str],
        priority: Priority,
        created_at: datetime,
    ) -> None:
        pass

    @abstractmethod
    async def notify_completed(
        self, *, todo_id: uuid.UUID, title: str, completed_at: datetime
    ) -> None:
        pass

    @abstractmethod
    async def notify_updated(
        self, *, todo_id: uuid.UUID, title: str, change_description: str
    ) -> None:
        pass

    @abstractmethod
    async def notify_reopened(self, *, todo_id: uuid.UUID, title: str) -> None:
        pass

    @abstractmethod
    async def notify_priority_changed(
        self, *, todo_id: uuid.UUID, title: str, new_priority: Priority
    ) -> None:
        pass
