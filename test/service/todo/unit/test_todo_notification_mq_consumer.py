from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
import uuid

import orjson
import pytest

from src.platform.exception.exceptions import UnknownEventTypeError
from src.platform.message_queue.json_event_serializer import serialize_domain_event
from src.service.todo.app.interface.i_todo_notifier import ITodoNotifier
from src.service.todo.domain.domain_event.todo_domain_event import (
    TodoCompletedEvent,
    TodoCreatedEvent,
    TodoPriorityChangedEvent,
    TodoReopenedEvent,
    TodoUpdatedEvent,
)
from src.service.todo.domain.enum.priority import Priority
from src.service.todo.domain.enum.todo_event_type import TodoEventType
from src.service.todo.driving_adapter.mq_consumer.todo_notification_mq_consumer import (
    TodoNotificationMqConsumer,
)


TODO_ID = uuid.UUID('0190a6f0-0000-7000-8000-000000000002')


@pytest.fixture
def notifier() -> AsyncMock:
    return AsyncMock(spec=ITodoNotifier)


@pytest.fixture
def consumer(notifier) -> TodoNotificationMqConsumer:
    return TodoNotificationMqConsumer(
        connection=MagicMock(), notifier=notifier, max_redeliveries=2
    )


async def deliver(consumer, make_incoming_message, event) -> MagicMock:
    message = make_incoming_message(
        event_type=TodoEventType.of(event).value, body=serialize_domain_event(event)
    )
    await consumer._process_message(message, consumer._get_event_handlers())
    return message


class TestHandlerTable:
    def test_subscribes_all_five_kinds(self, consumer):
        assert set(consumer._get_event_handlers()) == {t.value for t in TodoEventType}
        assert sorted(consumer.routing_keys()) == sorted(t.routing_key for t in TodoEventType)


class TestDispatch:
    @pytest.mark.asyncio
    async def test_created_notifies_and_acks(self, consumer, notifier, make_incoming_message):
        created_at = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
        event = TodoCreatedEvent(
            todo_id=TODO_ID,
            title='Buy milk',
            description=None,
            priority=Priority.MEDIUM,
            created_at=created_at,
        )

        message = await deliver(consumer, make_incoming_message, event)

        notifier.notify_created.assert_awaited_once_with(
            todo_id=TODO_ID,
            title='Buy milk',
            description=None,
            priority=Priority.MEDIUM,
            created_at=created_at,
        )
        message.ack.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_completed(self, consumer, notifier, make_incoming_message):
        completed_at = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)
        event = TodoCompletedEvent(todo_id=TODO_ID, title='Buy milk', completed_at=completed_at)

        await deliver(consumer, make_incoming_message, event)

        notifier.notify_completed.assert_awaited_once_with(
            todo_id=TODO_ID, title='Buy milk', completed_at=completed_at
        )

    @pytest.mark.asyncio
    async def test_updated_passes_change_description(
        self, consumer, notifier, make_incoming_message
    ):
        event = TodoUpdatedEvent(
            todo_id=TODO_ID,
            title='Buy oat milk',
            field='title',
            old_value='Buy milk',
            new_value='Buy oat milk',
        )

        await deliver(consumer, make_incoming_message, event)

        notifier.notify_updated.assert_awaited_once_with(
            todo_id=TODO_ID,
            title='Buy oat milk',
            change_description="title changed from 'Buy milk' to 'Buy oat milk'",
        )

    @pytest.mark.asyncio
    async def test_reopened(self, consumer, notifier, make_incoming_message):
        await deliver(
            consumer, make_incoming_message, TodoReopenedEvent(todo_id=TODO_ID, title='Buy milk')
        )

        notifier.notify_reopened.assert_awaited_once_with(todo_id=TODO_ID, title='Buy milk')

    @pytest.mark.asyncio
    async def test_priority_changed(self, consumer, notifier, make_incoming_message):
        event = TodoPriorityChangedEvent(
            todo_id=TODO_ID,
            title='Buy milk',
            old_priority=Priority.MEDIUM,
            new_priority=Priority.HIGH,
        )

        await deliver(consumer, make_incoming_message, event)

        notifier.notify_priority_changed.assert_awaited_once_with(
            todo_id=TODO_ID, title='Buy milk', new_priority=Priority.HIGH
        )


class TestFailures:
    @pytest.mark.asyncio
    async def test_notifier_failure_requeues(self, consumer, notifier, make_incoming_message):
        notifier.notify_reopened.side_effect = RuntimeError('hub down')

        message = await deliver(
            consumer, make_incoming_message, TodoReopenedEvent(todo_id=TODO_ID, title='Buy milk')
        )

        message.nack.assert_awaited_once_with(requeue=True)
        message.ack.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_title_is_dead_lettered(
        self, consumer, notifier, make_incoming_message
    ):
        body = orjson.dumps({'todoId': str(TODO_ID), 'occurredAt': '2026-03-01T10:00:00Z'})
        message = make_incoming_message(event_type='TodoReopenedEvent', body=body)

        await consumer._process_message(message, consumer._get_event_handlers())

        message.reject.assert_awaited_once_with(requeue=False)
        notifier.notify_reopened.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize('title', [None, 123, {'text': 'Buy milk'}])
    async def test_non_string_title_is_dead_lettered(
        self, consumer, notifier, make_incoming_message, title
    ):
        body = orjson.dumps(
            {'todoId': str(TODO_ID), 'title': title, 'completedAt': '2026-03-01T10:00:00Z'}
        )
        message = make_incoming_message(event_type='TodoCompletedEvent', body=body)

        await consumer._process_message(message, consumer._get_event_handlers())

        message.reject.assert_awaited_once_with(requeue=False)
        message.ack.assert_not_awaited()
        notifier.notify_completed.assert_not_awaited()


class TestEventTypeResolution:
    @pytest.mark.parametrize('name', ['TodoDeletedEvent', 'todocreatedevent', '', None])
    def test_from_name_rejects_unknown_and_blank(self, name):
        assert TodoEventType.from_name(name) is None

    def test_from_name_resolves_wire_names(self):
        assert TodoEventType.from_name('TodoCreatedEvent') is TodoEventType.CREATED

    def test_resolve_handler_rejects_names_outside_the_closed_set(self, consumer):
        with pytest.raises(UnknownEventTypeError, match='TodoDeletedEvent'):
            consumer._resolve_handler('TodoDeletedEvent', consumer._get_event_handlers())

    @pytest.mark.asyncio
    @pytest.mark.parametrize('event_type', ['TodoDeletedEvent', None])
    async def test_unknown_or_missing_event_type_is_dead_lettered_unparsed(
        self, consumer, notifier, make_incoming_message, event_type
    ):
        message = make_incoming_message(event_type=event_type, body=b'not json')

        await consumer._process_message(message, consumer._get_event_handlers())

        message.reject.assert_awaited_once_with(requeue=False)
        message.nack.assert_not_awaited()
        assert notifier.mock_calls == []
