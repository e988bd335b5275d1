"""Todo notification DTO - transient, built per broadcast, never persisted."""

from datetime import datetime, timezone
from typing import Any, Dict

import attrs

from src.platform.message_queue.json_event_serializer import to_camel_case


class TodoNotificationType:
    CREATED = 'TodoCreated'
    COMPLETED = 'TodoCompleted'
    UPDATED = 'TodoUpdated'
    REOPENED = 'TodoReopened'
    PRIORITY_CHANGED = 'TodoPriorityChanged'


@attrs.define(frozen=True)
class TodoNotification:
    type: str
    message: str
    data: Dict[str, Any] = attrs.field(factory=dict)
    timestamp: datetime = attrs.field(factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """camelCase, JSON-ready (orjson handles UUID, datetime and IntEnum)"""
        return {
            'type': self.type,
            'message': self.message,
            'data': {to_camel_case(key): value for key, value in self.data.items()},
            'timestamp': self.timestamp,
        }
