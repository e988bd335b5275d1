"""
Test Configuration and Fixtures

This module provides:
- Test log directory (set before any application module is imported)
- Fakes for aio-pika objects (incoming messages, channel, exchange) and websockets
- A FastAPI TestClient over the app factory with a broker-free lifespan

No live RabbitMQ is needed: the broker side is faked with AsyncMock/MagicMock.
"""

# =============================================================================
# CRITICAL: Environment setup MUST happen before any other imports
# Logging reads TEST_LOG_DIR at import time
# =============================================================================
import os
from pathlib import Path


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)
    os.environ.setdefault('RABBITMQ_CONNECTION_NAME', 'todo-service-test')


_early_setup_test_environment()

from collections.abc import AsyncIterator, Callable, Generator  # noqa: E402
from contextlib import asynccontextmanager  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
import uuid  # noqa: E402

from dependency_injector import providers  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
import pytest  # noqa: E402

from src.platform.app_factory import create_app  # noqa: E402
from src.platform.config.di import container  # noqa: E402
from src.platform.config.wire_modules import WIRE_MODULES  # noqa: E402
from src.platform.message_queue.event_envelope import (  # noqa: E402
    CORRELATION_ID_HEADER,
    EVENT_TYPE_HEADER,
    SOURCE_HEADER,
    VERSION_HEADER,
)


# =============================================================================
# aio-pika fakes
# =============================================================================


@pytest.fixture
def make_incoming_message() -> Callable[..., MagicMock]:
    """
    Factory for an AbstractIncomingMessage stand-in.

    Usage:
        message = make_incoming_message(event_type='TodoCreatedEvent', body=b'{...}')
        message.ack.assert_awaited_once()
    """

    def _make(
        *,
        event_type: str | None = 'TodoCreatedEvent',
        body: bytes = b'{}',
        headers: dict[str, Any] | None = None,
        message_id: str | None = None,
        correlation_id: str | None = None,
    ) -> MagicMock:
        if headers is None:
            headers = {
                SOURCE_HEADER: 'TodoApi',
                VERSION_HEADER: '1.0',
                CORRELATION_ID_HEADER: correlation_id or str(uuid.uuid4()),
            }
            if event_type is not None:
                headers[EVENT_TYPE_HEADER] = event_type

        message = MagicMock()
        message.headers = headers
        message.body = body
        message.message_id = message_id if message_id is not None else str(uuid.uuid4())
        message.correlation_id = correlation_id
        message.redelivered = False
        message.ack = AsyncMock()
        message.nack = AsyncMock()
        message.reject = AsyncMock()
        return message

    return _make


@pytest.fixture
def fake_exchange() -> MagicMock:
    exchange = MagicMock()
    exchange.publish = AsyncMock()
    return exchange


@pytest.fixture
def fake_connection(fake_exchange: MagicMock) -> MagicMock:
    """RabbitMqConnection stand-in whose channel hands out `fake_exchange`."""
    connection = MagicMock()
    connection.is_open = True
    connection.channel.get_exchange = AsyncMock(return_value=fake_exchange)
    return connection


# =============================================================================
# WebSocket fakes
# =============================================================================


@pytest.fixture
def make_websocket() -> Callable[..., MagicMock]:
    def _make(*, send_side_effect: Any = None) -> MagicMock:
        websocket = MagicMock()
        websocket.accept = AsyncMock()
        websocket.send_text = AsyncMock(side_effect=send_side_effect)
        websocket.close = AsyncMock()
        return websocket

    return _make


# =============================================================================
# HTTP client (broker-free lifespan)
# =============================================================================


@asynccontextmanager
async def _test_lifespan(app: FastAPI) -> AsyncIterator[None]:
    container.wire(modules=WIRE_MODULES)
    yield
    container.unwire()


@pytest.fixture
def todo_event_publisher_mock() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def client(todo_event_publisher_mock: AsyncMock) -> Generator[TestClient, None, None]:
    container.reset_singletons()
    container.todo_event_publisher.override(providers.Object(todo_event_publisher_mock))

    app = create_app(lifespan=_test_lifespan, title_suffix=' (Test)')
    with TestClient(app) as test_client:
        yield test_client

    container.todo_event_publisher.reset_override()
    container.reset_singletons()
