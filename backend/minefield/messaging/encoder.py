"""
Frame encoder/decoder for the WebSocket wire format.

Text frames carry JSON, binary frames carry MessagePack. Both decode to the
same tagged dict shape, {"type": ..., **fields}.
"""

import json
from enum import StrEnum
from typing import Any

import msgpack


class WireFormat(StrEnum):
    JSON = "json"
    MSGPACK = "msgpack"


class DecodeError(Exception):
    """Error raised when an inbound frame cannot be decoded into a message dict."""


# Size limits to prevent resource exhaustion from malicious payloads.
MAX_BUFFER_LEN = 64 * 1024  # 64KB total payload
MAX_STR_LEN = 16 * 1024
MAX_BIN_LEN = 16 * 1024
MAX_ARRAY_LEN = 256
MAX_MAP_LEN = 64
MAX_EXT_LEN = 1024


def frame_format(data: str | bytes) -> WireFormat:
    return WireFormat.JSON if isinstance(data, str) else WireFormat.MSGPACK


def encode(data: dict[str, Any], wire_format: WireFormat = WireFormat.JSON) -> str | bytes:
    if wire_format == WireFormat.MSGPACK:
        return msgpack.packb(data)
    return json.dumps(data, separators=(",", ":"))


def _decode_json(data: str) -> object:
    try:
        return json.loads(data)
    except (json.JSONDecodeError, RecursionError) as e:
        raise DecodeError(f"failed to decode JSON data: {e}") from e


def _decode_msgpack(data: bytes) -> object:
    try:
        return msgpack.unpackb(
            data,
            raw=False,
            max_str_len=MAX_STR_LEN,
            max_bin_len=MAX_BIN_LEN,
            max_array_len=MAX_ARRAY_LEN,
            max_map_len=MAX_MAP_LEN,
            max_ext_len=MAX_EXT_LEN,
        )
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"failed to decode MessagePack data: {e}") from e


def decode(data: str | bytes) -> dict[str, Any]:
    """
    Decode a text (JSON) or binary (MessagePack) frame to a dict.

    Raises DecodeError if the frame is invalid, not a dict, or exceeds size limits.
    """
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"payload too large: {len(data)} bytes (max {MAX_BUFFER_LEN})")

    result = _decode_json(data) if isinstance(data, str) else _decode_msgpack(data)

    if not isinstance(result, dict):
        raise DecodeError(f"expected object, got {type(result).__name__}")

    return result
