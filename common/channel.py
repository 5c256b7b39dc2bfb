"""Duplex envelope channel over an asyncio stream pair."""

import asyncio
from typing import Optional, Tuple

from pydantic import ValidationError

from common.constants import MAX_MESSAGE_BYTES
from common.exceptions import ChannelClosedError, MessageTooLargeError
from common.logging_config import get_logger
from common.protocol import Envelope

logger = get_logger(__name__)


class MessageChannel:
    """
    Newline-delimited JSON envelopes over one TCP connection.

    Reads must come from a single task. Writes are not serialized here;
    each side keeps exactly one writing task.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self._closed = False

    @classmethod
    async def connect(cls, host: str, port: int) -> 'MessageChannel':
        """
        Open a channel to a listening peer.

        Raises:
            OSError: If the address cannot be resolved or connected
        """
        reader, writer = await asyncio.open_connection(host, port, limit=MAX_MESSAGE_BYTES)
        return cls(reader, writer)

    @property
    def peer_address(self) -> str:
        peername: Optional[Tuple] = self.writer.get_extra_info('peername')
        if not peername:
            return "unknown"
        return f"{peername[0]}:{peername[1]}"

    async def receive(self) -> Envelope:
        """
        Block until the next envelope arrives.

        Raises:
            ChannelClosedError: On EOF, an oversized line, or anything that
                does not decode to a valid envelope
        """
        try:
            line = await self.reader.readline()
        except ValueError as e:
            raise ChannelClosedError(f"Message exceeds {MAX_MESSAGE_BYTES} bytes") from e
        except OSError as e:
            raise ChannelClosedError(f"Connection lost: {e}") from e

        if not line:
            raise ChannelClosedError("Peer closed the connection")
        if not line.endswith(b"\n"):
            raise ChannelClosedError("Connection closed mid-message")

        try:
            envelope = Envelope.from_line(line)
        except ValidationError as e:
            raise ChannelClosedError(f"Undecodable message: {e.error_count()} error(s)") from e

        logger.debug(f"Received {envelope.describe()} from {self.peer_address}")
        return envelope

    async def send(self, envelope: Envelope) -> None:
        """
        Write one envelope and wait for the transport to drain.

        Raises:
            MessageTooLargeError: If the encoded envelope is over the line
                limit; nothing is written and the channel stays usable
            ChannelClosedError: If the connection is gone
        """
        if self._closed:
            raise ChannelClosedError("Channel is closed")
        line = envelope.to_line()
        if len(line) > MAX_MESSAGE_BYTES:
            raise MessageTooLargeError(
                f"{envelope.describe()} encodes to {len(line)} bytes, "
                f"over the {MAX_MESSAGE_BYTES} byte line limit"
            )
        try:
            self.writer.write(line)
            await self.writer.drain()
        except OSError as e:
            raise ChannelClosedError(f"Connection lost: {e}") from e
        logger.debug(f"Sent {envelope.describe()} to {self.peer_address}")

    async def close(self) -> None:
        """Close the connection; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug(f"Error while closing channel to {self.peer_address}: {e}")
