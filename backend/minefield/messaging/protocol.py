"""Abstract connection protocol for tagged-message communication."""

from abc import ABC, abstractmethod
from typing import Any

from minefield.messaging.encoder import WireFormat, decode, encode, frame_format


class ConnectionProtocol(ABC):
    """
    Abstract interface for a client connection.

    This abstraction allows message handling logic to be tested
    without real WebSocket connections. Outbound messages are encoded in the
    format of the most recent inbound frame, JSON until the client says otherwise.
    """

    wire_format: WireFormat = WireFormat.JSON

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @abstractmethod
    async def send_frame(self, data: str | bytes) -> None:
        """
        Send a raw text or binary frame to the client.
        """
        ...

    @abstractmethod
    async def receive_frame(self) -> str | bytes:
        """
        Receive a raw text or binary frame from the client.
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection.
        """
        ...

    async def send_message(self, data: dict[str, Any]) -> None:
        await self.send_frame(encode(data, self.wire_format))

    async def receive_message(self) -> dict[str, Any]:
        """
        Receive and decode one message, adopting the frame's wire format for replies.
        """
        raw = await self.receive_frame()
        message = decode(raw)
        self.wire_format = frame_format(raw)
        return message
