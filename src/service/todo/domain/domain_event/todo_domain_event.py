"""
Todo Domain Events

Immutable facts about Todo state transitions. Appended to the aggregate's pending buffer,
drained after the aggregate is saved, then published to the broker one by one.

Converters make each event constructible from its JSON wire form as well as from domain
values (UUID from str, datetime from ISO-8601, Priority from int or name).
"""

from datetime import datetime, timezone
from typing import Any, Optional
import uuid

import attrs

from src.service.todo.domain.enum.priority import Priority


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_uuid(value: Any) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _to_datetime(value: Any) -> datetime:
    if not isinstance(value, datetime):
        if not isinstance(value, str):
            raise ValueError(f'Invalid timestamp: {value!r}')
        value = datetime.fromisoformat(value)
    # Naive timestamps are UTC on the wire
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _to_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f'Expected a string, got {type(value).__name__}')
    return value


def _to_optional_str(value: Any) -> Optional[str]:
    return None if value is None else _to_str(value)


@attrs.define(frozen=True)
class TodoCreatedEvent:
    todo_id: uuid.UUID = attrs.field(converter=_to_uuid)
    title: str = attrs.field(converter=_to_str)
    description: Optional[str] = attrs.field(converter=_to_optional_str)
    priority: Priority = attrs.field(converter=Priority.parse)
    created_at: datetime = attrs.field(converter=_to_datetime)
    occurred_at: datetime = attrs.field(factory=_utc_now, converter=_to_datetime)

    @property
    def aggregate_id(self) -> uuid.UUID:
        return self.todo_id


@attrs.define(frozen=True)
class TodoCompletedEvent:
    todo_id: uuid.UUID = attrs.field(converter=_to_uuid)
    title: str = attrs.field(converter=_to_str)
    completed_at: datetime = attrs.field(converter=_to_datetime)
    occurred_at: datetime = attrs.field(factory=_utc_now, converter=_to_datetime)

    @property
    def aggregate_id(self) -> uuid.UUID:
        return self.todo_id


@attrs.define(frozen=True)
class TodoUpdatedEvent:
    """One event per changed field; `title` is the title after the change"""

    todo_id: uuid.UUID = attrs.field(converter=_to_uuid)
    title: str = attrs.field(converter=_to_str)
    field: str = attrs.field(converter=_to_str)
    old_value: Optional[str] = attrs.field(converter=_to_optional_str)
    new_value: Optional[str] = attrs.field(converter=_to_optional_str)
    occurred_at: datetime = attrs.field(factory=_utc_now, converter=_to_datetime)

    @property
    def aggregate_id(self) -> uuid.UUID:
        return self.todo_id

    @property
    def change_description(self) -> str:
        return f"{self.field} changed from '{self.old_value or ''}' to '{self.new_value or ''}'"


@attrs.define(frozen=True)
class TodoReopenedEvent:
    todo_id: uuid.UUID = attrs.field(converter=_to_uuid)
    title: str = attrs.field(converter=_to_str)
    occurred_at: datetime = attrs.field(factory=_utc_now, converter=_to_datetime)

    @property
    def aggregate_id(self) -> uuid.UUID:
        return self.todo_id


@attrs.define(frozen=True)
class TodoPriorityChangedEvent:
    todo_id: uuid.UUID = attrs.field(converter=_to_uuid)
    title: str = attrs.field(converter=_to_str)
    old_priority: Priority = attrs.field(converter=Priority.parse)
    new_priority: Priority = attrs.field(converter=Priority.parse)
    occurred_at: datetime = attrs.field(factory=_utc_now, converter=_to_datetime)

    @property
    def aggregate_id(self) -> uuid.UUID:
        return self.todo_id


TodoDomainEvent = (
    TodoCreatedEvent
    | TodoCompletedEvent
    | TodoUpdatedEvent
    | TodoReopenedEvent
    | TodoPriorityChangedEvent
)
