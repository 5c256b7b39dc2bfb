"""Accept loop: one independent handling lifecycle per client connection."""

import asyncio
import socket
from typing import Optional, Set

from common.channel import MessageChannel
from common.constants import MAX_MESSAGE_BYTES
from common.exceptions import ChannelClosedError, MessageTooLargeError
from common.file_store import FileStore
from common.logging_config import get_logger, peer_logger
from server.access_tracker import AccessTracker
from server.session import ServerSession

logger = get_logger(__name__)


class SyncServer:
    """
    Listens on one TCP port and serves every client connection concurrently.

    There is no limit on the number of connections. A connection ends when
    its peer disconnects or sends something undecodable; nothing about it
    survives except the watermark kept by the access tracker.
    """

    def __init__(
        self,
        store: FileStore,
        host: str,
        port: int,
        tracker: Optional[AccessTracker] = None,
        identity: Optional[str] = None,
    ):
        self.store = store
        self.host = host
        self.port = port
        self.tracker = tracker or AccessTracker()
        self.identity = identity or socket.gethostname()
        self._server: Optional[asyncio.AbstractServer] = None
        self._channels: Set[MessageChannel] = set()

    @property
    def active_connections(self) -> int:
        return len(self._channels)

    async def start(self) -> None:
        """
        Bind and start accepting connections.

        Raises:
            OSError: If the address cannot be resolved or bound
        """
        self._server = await asyncio.start_server(
            self._handle_connection,
            self.host,
            self.port,
            limit=MAX_MESSAGE_BYTES,
        )
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info(f"Sync server listening on {self.host}:{self.port} [root={self.store.root}]")

    async def serve_forever(self) -> None:
        """Start if needed and serve until cancelled."""
        if self._server is None:
            await self.start()
        async with self._server:
            await self._server.serve_forever()

    async def stop(self) -> None:
        """Stop accepting and close every open connection."""
        if self._server is None:
            return
        self._server.close()
        for channel in list(self._channels):
            await channel.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Sync server stopped")

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """Lifecycle of one connection: decode, dispatch, reply, until the peer goes away."""
        channel = MessageChannel(reader, writer)
        session = ServerSession(self.store, self.tracker, channel.peer_address, self.identity)
        log = peer_logger(logger, channel.peer_address)
        self._channels.add(channel)
        log.info(f"Client connected ({self.active_connections} active)")

        try:
            while True:
                try:
                    envelope = await channel.receive()
                except ChannelClosedError as e:
                    log.info(f"Connection ended: {e}")
                    break

                try:
                    responses = await session.handle(envelope)
                except Exception as e:
                    log.error(f"Failed to handle {envelope.describe()}: {e}", exc_info=True)
                    continue

                try:
                    for response in responses:
                        try:
                            await channel.send(response)
                        except MessageTooLargeError as e:
                            log.error(f"Not sending {response.describe()}: {e}")
                except ChannelClosedError as e:
                    log.info(f"Connection ended while replying: {e}")
                    break
        finally:
            self._channels.discard(channel)
            await channel.close()
