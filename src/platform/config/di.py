"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.message_queue.event_publisher import RabbitMqEventPublisher
from src.platform.message_queue.rabbitmq_connection import RabbitMqConnection
from src.platform.websocket.connection_manager import WebSocketConnectionManager
from src.service.todo.app.service.domain_event_dispatcher import DomainEventDispatcher
from src.service.todo.driven_adapter.message_queue.todo_event_publisher_impl import (
    TodoEventPublisherImpl,
)
from src.service.todo.driven_adapter.notification.websocket_todo_notifier_impl import (
    WebSocketTodoNotifierImpl,
)
from src.service.todo.driven_adapter.repo.in_memory_todo_repo_impl import InMemoryTodoRepoImpl
from src.service.todo.driving_adapter.mq_consumer.todo_notification_mq_consumer import (
    TodoNotificationMqConsumer,
)


def _connection_name(base: str, role: str) -> str:
    return f'{base}.{role}'


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # RabbitMQ connections: one per process role, opened/closed by main.py lifespan
    publisher_connection = providers.Singleton(
        RabbitMqConnection,
        url=config_service.provided.RABBITMQ_URL,
        connection_name=providers.Callable(
            _connection_name, config_service.provided.RABBITMQ_CONNECTION_NAME, 'publisher'
        ),
        publisher_confirms=True,
    )
    consumer_connection = providers.Singleton(
        RabbitMqConnection,
        url=config_service.provided.RABBITMQ_URL,
        connection_name=providers.Callable(
            _connection_name, config_service.provided.RABBITMQ_CONNECTION_NAME, 'consumer'
        ),
        publisher_confirms=False,
    )

    # Realtime fan-out
    connection_manager = providers.Singleton(WebSocketConnectionManager)
    todo_notifier = providers.Singleton(
        WebSocketTodoNotifierImpl, connection_manager=connection_manager
    )

    # Message Queue Publishers
    rabbitmq_event_publisher = providers.Singleton(
        RabbitMqEventPublisher, connection=publisher_connection
    )
    todo_event_publisher = providers.Singleton(
        TodoEventPublisherImpl, publisher=rabbitmq_event_publisher
    )
    domain_event_dispatcher = providers.Singleton(
        DomainEventDispatcher, event_publisher=todo_event_publisher
    )

    # Repositories
    todo_repo = providers.Singleton(InMemoryTodoRepoImpl)

    # Message Queue Consumers
    todo_notification_consumer = providers.Singleton(
        TodoNotificationMqConsumer,
        connection=consumer_connection,
        notifier=todo_notifier,
    )


container = Container()


def cleanup() -> None:
    container.reset_singletons()
