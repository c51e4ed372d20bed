"""Unit tests for WebSocketConnection wrapper class."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from starlette.websockets import WebSocketDisconnect

from minefield.messaging.encoder import WireFormat
from minefield.server.websocket import WebSocketConnection


class TestWebSocketConnection:
    """Test frame routing and error handling in WebSocketConnection wrapper."""

    async def test_text_frames_sent_as_text(self):
        mock_ws = MagicMock()
        mock_ws.send_text = AsyncMock()
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        await conn.send_message({"type": "cursor", "x": 1, "y": 2})

        mock_ws.send_text.assert_awaited_once_with('{"type":"cursor","x":1,"y":2}')

    async def test_msgpack_frames_sent_as_bytes(self):
        mock_ws = MagicMock()
        mock_ws.send_bytes = AsyncMock()
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")
        conn.wire_format = WireFormat.MSGPACK

        await conn.send_message({"type": "cursor", "x": 1, "y": 2})

        mock_ws.send_bytes.assert_awaited_once()

    async def test_send_converts_disconnect_to_connection_error(self):
        mock_ws = MagicMock()
        mock_ws.send_text = AsyncMock(side_effect=WebSocketDisconnect())
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        with pytest.raises(ConnectionError, match="WebSocket already disconnected"):
            await conn.send_frame("{}")

    async def test_receive_returns_text_or_bytes(self):
        mock_ws = MagicMock()
        mock_ws.receive = AsyncMock(
            side_effect=[
                {"type": "websocket.receive", "text": '{"type":"start"}'},
                {"type": "websocket.receive", "bytes": b"\x81\xa4type\xa5start"},
            ],
        )
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        assert await conn.receive_frame() == '{"type":"start"}'
        assert await conn.receive_frame() == b"\x81\xa4type\xa5start"

    async def test_receive_converts_disconnect_to_connection_error(self):
        mock_ws = MagicMock()
        mock_ws.receive = AsyncMock(return_value={"type": "websocket.disconnect", "code": 1000})
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        with pytest.raises(ConnectionError, match="WebSocket already disconnected"):
            await conn.receive_frame()

    async def test_receive_message_adopts_frame_format(self):
        mock_ws = MagicMock()
        mock_ws.receive = AsyncMock(return_value={"type": "websocket.receive", "bytes": b"\x81\xa4type\xa5start"})
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        assert await conn.receive_message() == {"type": "start"}
        assert conn.wire_format == WireFormat.MSGPACK

    async def test_close_suppresses_disconnect(self):
        """Closing an already-disconnected WebSocket completes without error."""
        mock_ws = MagicMock()
        mock_ws.close = AsyncMock(side_effect=WebSocketDisconnect())
        conn = WebSocketConnection(mock_ws, connection_id="test-conn")

        await conn.close()

    def test_generates_connection_id(self):
        conn = WebSocketConnection(MagicMock())
        assert conn.connection_id
