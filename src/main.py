"""
Production FastAPI Application

Realtime notification hub + RabbitMQ publisher + notification consumer in one process.
The consumer runs on its own connection inside the lifespan task group.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import os

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
import uvicorn

from src.platform.app_factory import create_app
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.logging.loguru_io import Logger
from src.platform.message_queue.rabbitmq_constant_builder import RabbitMqTopologyBuilder
from src.platform.message_queue.rabbitmq_topology_initializer import declare_topology
from src.platform.observability.tracing import TracingConfig
from src.service.todo.domain.enum.todo_event_type import TodoEventType


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Todo Service] Starting up...')

    # Setup OpenTelemetry tracing
    tracing = TracingConfig(service_name='todo-notification-service')
    tracing.setup()
    Logger.base.info('📊 [Todo Service] OpenTelemetry tracing configured')

    # Wire dependency injection for all modules
    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Todo Service] Dependency injection wired')

    publisher_connection = container.publisher_connection()
    consumer_connection = container.consumer_connection()
    consumer = container.todo_notification_consumer()

    try:
        # Broker connections + topology (fail-fast: do not serve without them)
        try:
            await publisher_connection.open()
            await declare_topology(
                publisher_connection.channel,
                routing_keys=[event_type.routing_key for event_type in TodoEventType],
                queue_name=RabbitMqTopologyBuilder.notification_queue(),
            )
            Logger.base.info('📝 [Todo Service] RabbitMQ topology declared')

            await consumer_connection.open()
        except Exception as e:
            Logger.base.critical(f'💥 [Todo Service] Broker initialization failed: {e}')
            raise

        Logger.base.info('✅ [Todo Service] All services initialized')

        async with anyio.create_task_group() as tg:
            tg.start_soon(consumer.run)
            Logger.base.info(
                '✅ [Todo Service] Ready to serve requests with realtime notifications'
            )

            yield

            Logger.base.info('🛑 [Todo Service] Shutting down...')
            # Stop pulling; the task group waits for in-flight handlers to drain
            consumer.stop()
    finally:
        # Release on every exit path
        with anyio.CancelScope(shield=True):
            await consumer_connection.close()
            await publisher_connection.close()
        Logger.base.info('🐇 [Todo Service] RabbitMQ connections closed')

        # Shutdown tracing (flush remaining spans)
        tracing.shutdown()
        Logger.base.info('📊 [Todo Service] Tracing shutdown complete')

        # Unwire DI
        container.unwire()

        Logger.base.info('👋 [Todo Service] Shutdown complete')


# Create FastAPI app using shared factory
app = create_app(
    lifespan=lifespan,
    description=(
        'Todo Notification Service - Publishes Todo domain events and pushes them to '
        'realtime clients'
    ),
)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')


def run() -> None:
    uvicorn.run(
        'src.main:app',
        host=os.getenv('HOST', '0.0.0.0'),
        port=int(os.getenv('PORT', '8000')),
    )
