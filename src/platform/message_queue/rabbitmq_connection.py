"""
RabbitMQ Connection Handle

One robust connection plus one channel per process role (publisher, consumer).
The handle is owned by the process (DI container) and passed by reference to the
publisher and consumer constructors; it is opened at startup and closed at shutdown.
"""

from types import TracebackType
from typing import Optional, Self

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractRobustConnection

from src.platform.exception.exceptions import BrokerConnectionError
from src.platform.logging.loguru_io import Logger


class RabbitMqConnection:
    """
    Usage:
        async with RabbitMqConnection(url=settings.RABBITMQ_URL, connection_name='pub') as conn:
            await conn.channel.declare_exchange(...)
    """

    def __init__(
        self,
        *,
        url: str,
        connection_name: str,
        publisher_confirms: bool = True,
    ) -> None:
        self.url = url
        self.connection_name = connection_name
        self.publisher_confirms = publisher_confirms
        self._connection: Optional[AbstractRobustConnection] = None
        self._channel: Optional[AbstractChannel] = None

    @property
    def is_open(self) -> bool:
        return (
            self._connection is not None
            and not self._connection.is_closed
            and self._channel is not None
            and not self._channel.is_closed
        )

    @property
    def channel(self) -> AbstractChannel:
        if self._channel is None:
            raise RuntimeError(
                f'RabbitMQ connection "{self.connection_name}" not opened. '
                'Call await connection.open() during startup.'
            )
        return self._channel

    async def open(self) -> Self:
        """Connect and open the channel (idempotent). Fails fast with BrokerConnectionError."""
        if self.is_open:
            return self

        try:
            self._connection = await aio_pika.connect_robust(
                self.url,
                client_properties={'connection_name': self.connection_name},
            )
        except Exception as e:
            self._connection = None
            raise BrokerConnectionError(
                f'Cannot connect to RabbitMQ ({self.connection_name}): {e}'
            ) from e

        try:
            self._channel = await self._connection.channel(
                publisher_confirms=self.publisher_confirms
            )
        except Exception as e:
            # Release the connection before surfacing the failure
            await self.close()
            raise BrokerConnectionError(
                f'Cannot open RabbitMQ channel ({self.connection_name}): {e}'
            ) from e

        Logger.base.info(f'🐇 [RABBITMQ] Connected: {self.connection_name}')
        return self

    async def close(self) -> None:
        """Close channel then connection (idempotent)."""
        channel, connection = self._channel, self._connection
        self._channel = None
        self._connection = None

        if channel is not None and not channel.is_closed:
            try:
                await channel.close()
            except Exception as e:
                Logger.base.warning(
                    f'⚠️ [RABBITMQ] Channel close error ({self.connection_name}): {e}'
                )

        if connection is not None and not connection.is_closed:
            try:
                await connection.close()
            except Exception as e:
                Logger.base.warning(
                    f'⚠️ [RABBITMQ] Connection close error ({self.connection_name}): {e}'
                )
            else:
                Logger.base.info(f'🔌 [RABBITMQ] Disconnected: {self.connection_name}')

    async def __aenter__(self) -> Self:
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
