"""
Tests for the JSON / MessagePack frame encoder.
"""

import json

import msgpack
import pytest

from minefield.messaging.encoder import MAX_BUFFER_LEN, DecodeError, WireFormat, decode, encode, frame_format


class TestEncode:
    def test_json_is_compact_text(self) -> None:
        frame = encode({"type": "reveal", "x": 1, "y": 2})

        assert isinstance(frame, str)
        assert frame == '{"type":"reveal","x":1,"y":2}'

    def test_msgpack_is_binary(self) -> None:
        frame = encode({"type": "reveal", "x": 1, "y": 2}, WireFormat.MSGPACK)

        assert isinstance(frame, bytes)
        assert msgpack.unpackb(frame) == {"type": "reveal", "x": 1, "y": 2}

    def test_mine_value_survives_both_formats(self) -> None:
        data = {"type": "revealed", "cells": [{"x": 0, "y": 0, "value": "mine"}], "by": "p1"}

        assert decode(encode(data)) == data
        assert decode(encode(data, WireFormat.MSGPACK)) == data


class TestFrameFormat:
    def test_text_frame_is_json(self) -> None:
        assert frame_format("{}") == WireFormat.JSON

    def test_binary_frame_is_msgpack(self) -> None:
        assert frame_format(b"\x80") == WireFormat.MSGPACK


class TestDecodeErrors:
    def test_invalid_json(self) -> None:
        with pytest.raises(DecodeError, match="failed to decode JSON"):
            decode("{not json")

    def test_invalid_msgpack(self) -> None:
        with pytest.raises(DecodeError, match="failed to decode MessagePack"):
            decode(b"\xc1")

    @pytest.mark.parametrize("payload", [json.dumps([1, 2]), json.dumps("hello"), "42"])
    def test_non_object_json(self, payload: str) -> None:
        with pytest.raises(DecodeError, match="expected object"):
            decode(payload)

    def test_non_object_msgpack(self) -> None:
        with pytest.raises(DecodeError, match="expected object, got list"):
            decode(msgpack.packb([1, 2, 3]))

    def test_oversized_payload(self) -> None:
        with pytest.raises(DecodeError, match="payload too large"):
            decode(" " * (MAX_BUFFER_LEN + 1))

    def test_msgpack_array_limit(self) -> None:
        with pytest.raises(DecodeError):
            decode(msgpack.packb({"cells": list(range(10_000))}))
