"""
Todo Aggregate - Aggregate Root

[Business Invariants]
- Title is never blank
- Every state transition appends exactly one domain event; no-op transitions append none
  (complete() on a completed Todo, reopen() on an open one)
- Pending events leave the aggregate only through pull_domain_events(), after the repository
  saved the new state
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence
import uuid

import attrs
from uuid_utils.compat import uuid7

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.todo.domain.domain_event.todo_domain_event import (
    TodoCompletedEvent,
    TodoCreatedEvent,
    TodoDomainEvent,
    TodoPriorityChangedEvent,
    TodoReopenedEvent,
    TodoUpdatedEvent,
)
from src.service.todo.domain.enum.priority import Priority


def _validate_title(title: Optional[str]) -> str:
    if title is None or not title.strip():
        raise DomainError('Title cannot be empty')
    return title


@attrs.define
class Todo:
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    priority: Priority = Priority.MEDIUM
    is_completed: bool = False
    created_at: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    _domain_events: List[TodoDomainEvent] = attrs.field(
        factory=list, init=False, repr=False, eq=False
    )

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        title: str,
        description: Optional[str] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> 'Todo':
        todo = cls(
            id=uuid7(),
            title=_validate_title(title),
            description=description,
            priority=Priority.parse(priority),
        )
        todo._domain_events.append(
            TodoCreatedEvent(
                todo_id=todo.id,
                title=todo.title,
                description=todo.description,
                priority=todo.priority,
                created_at=todo.created_at,
            )
        )
        return todo

    # ========== State Transitions ==========

    def update_title(self, title: str) -> None:
        new_title = _validate_title(title)
        old_title = self.title
        self.title = new_title
        self._domain_events.append(
            TodoUpdatedEvent(
                todo_id=self.id,
                title=self.title,
                field='title',
                old_value=old_title,
                new_value=new_title,
            )
        )

    def update_description(self, description: Optional[str]) -> None:
        old_description = self.description
        self.description = description
        self._domain_events.append(
            TodoUpdatedEvent(
                todo_id=self.id,
                title=self.title,
                field='description',
                old_value=old_description,
                new_value=description,
            )
        )

    def set_priority(self, priority: Priority) -> None:
        old_priority = self.priority
        self.priority = Priority.parse(priority)
        self._domain_events.append(
            TodoPriorityChangedEvent(
                todo_id=self.id,
                title=self.title,
                old_priority=old_priority,
                new_priority=self.priority,
            )
        )

    def complete(self) -> None:
        if self.is_completed:
            return

        self.is_completed = True
        self.completed_at = datetime.now(timezone.utc)
        self._domain_events.append(
            TodoCompletedEvent(todo_id=self.id, title=self.title, completed_at=self.completed_at)
        )

    def reopen(self) -> None:
        if not self.is_completed:
            return

        self.is_completed = False
        self.completed_at = None
        self._domain_events.append(TodoReopenedEvent(todo_id=self.id, title=self.title))

    # ========== Pending Events ==========

    @property
    def domain_events(self) -> Sequence[TodoDomainEvent]:
        return tuple(self._domain_events)

    def pull_domain_events(self) -> List[TodoDomainEvent]:
        """Drain the pending buffer. Call only after the aggregate was saved."""
        events = list(self._domain_events)
        self._domain_events.clear()
        return events

    def clear_domain_events(self) -> None:
        self._domain_events.clear()
