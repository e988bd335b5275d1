"""
Unit tests for WebSocketConnectionManager

Fan-out isolation: one failing or slow client never fails the broadcast for the others.
"""

import anyio
import orjson
import pytest

from src.platform.websocket.connection_manager import WebSocketConnectionManager


@pytest.fixture
def manager() -> WebSocketConnectionManager:
    return WebSocketConnectionManager(send_timeout=0.1)


class TestConnectionRegistry:
    @pytest.mark.asyncio
    async def test_connect_accepts_and_registers(self, manager, make_websocket):
        websocket = make_websocket()

        await manager.connect(websocket)

        websocket.accept.assert_awaited_once()
        assert manager.connection_count == 1

    @pytest.mark.asyncio
    async def test_disconnect_unknown_socket_is_noop(self, manager, make_websocket):
        await manager.disconnect(make_websocket())

        assert manager.connection_count == 0


class TestBroadcast:
    @pytest.mark.asyncio
    async def test_broadcast_without_clients(self, manager):
        result = await manager.broadcast({'target': 'ReceiveNotification', 'arguments': []})

        assert (result.delivered, result.failed) == (0, 0)

    @pytest.mark.asyncio
    async def test_every_client_receives_json_text(self, manager, make_websocket):
        websockets = [make_websocket() for _ in range(3)]
        for websocket in websockets:
            await manager.connect(websocket)

        result = await manager.broadcast({'target': 'ReceiveNotification', 'arguments': [1]})

        assert result.delivered == 3
        for websocket in websockets:
            sent = websocket.send_text.await_args.args[0]
            assert orjson.loads(sent) == {'target': 'ReceiveNotification', 'arguments': [1]}

    @pytest.mark.asyncio
    async def test_failing_client_is_isolated_and_dropped(self, manager, make_websocket):
        healthy = make_websocket()
        broken = make_websocket(send_side_effect=RuntimeError('connection reset'))
        await manager.connect(healthy)
        await manager.connect(broken)

        result = await manager.broadcast({'type': 'TodoCreated'})

        assert (result.delivered, result.failed) == (1, 1)
        healthy.send_text.assert_awaited_once()
        assert broken not in manager.connections
        assert manager.connection_count == 1
        broken.close.assert_awaited_once()
        healthy.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_slow_client_times_out_without_blocking_others(self, manager, make_websocket):
        async def hang(_: str) -> None:
            await anyio.sleep(10)

        healthy = make_websocket()
        slow = make_websocket(send_side_effect=hang)
        await manager.connect(healthy)
        await manager.connect(slow)

        with anyio.fail_after(2):
            result = await manager.broadcast({'type': 'TodoCreated'})

        assert (result.delivered, result.failed) == (1, 1)
        assert slow not in manager.connections
        slow.close.assert_awaited_once()
        healthy.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_close_error_on_dropped_client_does_not_fail_broadcast(
        self, manager, make_websocket
    ):
        broken = make_websocket(send_side_effect=RuntimeError('connection reset'))
        broken.close.side_effect = RuntimeError('already closed')
        await manager.connect(broken)

        result = await manager.broadcast({'type': 'TodoCreated'})

        assert (result.delivered, result.failed) == (0, 1)
        assert manager.connection_count == 0

    @pytest.mark.asyncio
    async def test_hanging_close_is_bounded(self, manager, make_websocket):
        async def hang(*_args, **_kwargs) -> None:
            await anyio.sleep(10)

        stuck = make_websocket(send_side_effect=hang)
        stuck.close.side_effect = hang
        await manager.connect(stuck)

        with anyio.fail_after(2):
            result = await manager.broadcast({'type': 'TodoCreated'})

        assert result.failed == 1
        stuck.close.assert_awaited_once()
