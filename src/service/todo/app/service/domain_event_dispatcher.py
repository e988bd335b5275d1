"""
Domain Event Dispatcher

Publishes the pending events of a saved aggregate, in order.

Failure policy:
- PublishError is logged and recorded; the remaining events are still attempted
- The caller's operation still succeeds (state changed, notification lost)
- Cancellation propagates
"""

from typing import List

import attrs

from src.platform.exception.exceptions import PublishError
from src.platform.logging.loguru_io import Logger
from src.service.todo.app.interface.i_todo_event_publisher import ITodoEventPublisher
from src.service.todo.domain.aggregate.todo_aggregate import Todo
from src.service.todo.domain.domain_event.todo_domain_event import TodoDomainEvent


@attrs.define
class DispatchResult:
    published: List[TodoDomainEvent] = attrs.field(factory=list)
    failed: List[TodoDomainEvent] = attrs.field(factory=list)

    @property
    def all_published(self) -> bool:
        return not self.failed


class DomainEventDispatcher:
    def __init__(self, *, event_publisher: ITodoEventPublisher) -> None:
        self.event_publisher = event_publisher

    async def dispatch(self, *, todo: Todo) -> DispatchResult:
        """Call after the repository saved `todo`; drains its pending events."""
        result = DispatchResult()

        for event in todo.pull_domain_events():
            try:
                await self.event_publisher.publish(event=event)
            except PublishError as e:
                Logger.base.error(
                    f'📭 [DISPATCH] {type(event).__name__} for todo {todo.id} not published, '
                    f'notification lost: {e.message}'
                )
                result.failed.append(event)
            else:
                result.published.append(event)

        return result
