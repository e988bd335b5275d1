"""
WebSocket Connection Manager

Registry of realtime clients plus a fan-out broadcast:
- Every open connection receives every payload (no per-user targeting)
- Sends run concurrently, each bounded by WEBSOCKET_SEND_TIMEOUT_SECONDS
- A failing or slow connection is logged, dropped from the registry, and never fails the broadcast
"""

from typing import Any, Set

import anyio
import attrs
from fastapi import WebSocket, status
import orjson

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.notification_metrics import metrics


@attrs.define(frozen=True)
class BroadcastResult:
    delivered: int = 0
    failed: int = 0


class WebSocketConnectionManager:
    def __init__(self, *, send_timeout: float | None = None) -> None:
        self.connections: Set[WebSocket] = set()
        self.send_timeout = (
            settings.WEBSOCKET_SEND_TIMEOUT_SECONDS if send_timeout is None else send_timeout
        )

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.add(websocket)
        metrics.websocket_connections.set(len(self.connections))
        Logger.base.info(f'🔌 [WS] Client connected (total: {len(self.connections)})')

    async def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.connections:
            self.connections.discard(websocket)
            metrics.websocket_connections.set(len(self.connections))
            Logger.base.info(f'🔌 [WS] Client disconnected (total: {len(self.connections)})')

    async def _drop(self, websocket: WebSocket) -> None:
        """Unregister and close, so the hub loop for this client ends instead of idling."""
        await self.disconnect(websocket)
        with anyio.move_on_after(self.send_timeout, shield=True):
            try:
                await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
            except Exception as e:
                Logger.base.warning(f'⚠️ [WS] Close after failed send errored: {e}')

    async def broadcast(self, payload: dict[str, Any]) -> BroadcastResult:
        if not self.connections:
            Logger.base.debug('📡 [WS] No connected clients, skipping broadcast')
            return BroadcastResult()

        text = orjson.dumps(payload).decode()
        failed: list[WebSocket] = []

        async def _send(websocket: WebSocket) -> None:
            try:
                with anyio.fail_after(self.send_timeout):
                    await websocket.send_text(text)
            except TimeoutError:
                Logger.base.warning(
                    f'⚠️ [WS] Send timed out after {self.send_timeout}s, dropping client'
                )
                failed.append(websocket)
            except Exception as e:
                Logger.base.warning(f'⚠️ [WS] Send failed, dropping client: {e}')
                failed.append(websocket)

        # Snapshot: connect/disconnect may run while sends are pending
        targets = list(self.connections)
        async with anyio.create_task_group() as tg:
            for websocket in targets:
                tg.start_soon(_send, websocket)

        if failed:
            async with anyio.create_task_group() as tg:
                for websocket in failed:
                    metrics.websocket_push_failures.inc()
                    tg.start_soon(self._drop, websocket)

        result = BroadcastResult(delivered=len(targets) - len(failed), failed=len(failed))
        Logger.base.debug(f'📡 [WS] Broadcast delivered={result.delivered} failed={result.failed}')
        return result
