"""
Realtime notification hub

Clients connect to /ws/todo and receive every Todo notification as a JSON text frame:
    {"target": "ReceiveNotification", "arguments": [{"type": ..., "message": ..., ...}]}

No authentication, no per-user targeting. Inbound frames are read only to detect disconnects.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger


router = APIRouter()


@router.websocket('/ws/todo')
async def todo_notification_hub(websocket: WebSocket) -> None:
    connection_manager = container.connection_manager()
    await connection_manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect as e:
        Logger.base.debug(f'🔌 [WS] Client closed connection (code={e.code})')
    finally:
        await connection_manager.disconnect(websocket)
