"""Shared WebSocket test helpers for relay integration tests."""

from minefield.messaging.encoder import WireFormat, decode, encode

PLAYER_COLORS = ("red", "blue", "green", "yellow")


def send_ws(ws, data: dict, wire_format: WireFormat = WireFormat.JSON) -> None:
    """Send a message over a test WebSocket as a text (JSON) or binary (MessagePack) frame."""
    frame = encode(data, wire_format)
    if isinstance(frame, str):
        ws.send_text(frame)
    else:
        ws.send_bytes(frame)


def recv_ws(ws) -> dict:
    return ws.receive_json()


def recv_ws_bytes(ws) -> dict:
    return decode(ws.receive_bytes())


def player(name: str, index: int = 0) -> dict:
    return {"name": name, "avatar": "", "color": PLAYER_COLORS[index]}


def create_game(ws, name: str = "Alice", settings: dict | None = None) -> dict:
    """Send create and return the created message."""
    send_ws(ws, {"type": "create", "settings": settings or {}, "player": player(name, 0)})
    created = recv_ws(ws)
    assert created["type"] == "created"
    return created


def join_game(ws, code: str, name: str = "Bob", index: int = 1) -> dict:
    send_ws(ws, {"type": "join", "code": code, "player": player(name, index)})
    joined = recv_ws(ws)
    assert joined["type"] == "joined"
    return joined
