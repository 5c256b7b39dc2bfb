"""Client session: command loop, receive loop and the single channel writer."""

import asyncio
from datetime import datetime
from typing import List, Optional

from common.channel import MessageChannel
from common.constants import MAX_CONTENT_BYTES, SYNC_INTERVAL_SECONDS
from common.exceptions import (
    ChannelClosedError,
    FileMissingError,
    FileTooLargeError,
    MessageTooLargeError,
    StoreError,
    StoreListError,
)
from common.file_store import FileStore
from common.logging_config import get_logger
from common.protocol import Envelope, FileDescriptor, MessageKind
from common.reconciliation import ActionKind, index_inventory, reconcile_counter_sync
from common.utils import utc_now
from client.models import (
    CommandRequest,
    DeleteCommand,
    GetCommand,
    ListCommand,
    StoreCommand,
    SyncCommand,
)
from client.parser import ParseError, parse_command
from client.ui import UserInterface

logger = get_logger(__name__)


class ClientSession:
    """
    State and loops of one client connected to the sync server.

    Holds the time of the last completed sync exchange. The command loop
    and the receive loop never write to the channel themselves: both
    enqueue onto one outbox drained by a single writer task, so envelopes
    are never interleaved on the wire.
    """

    def __init__(
        self,
        store: FileStore,
        ui: UserInterface,
        peer_id: str,
        sync_interval: float = SYNC_INTERVAL_SECONDS,
    ):
        """
        Initialize client session.

        Args:
            store: Local file store
            ui: Front-end receiving status lines and listings
            peer_id: Identity advertised to the server
            sync_interval: Seconds without a command before a SYNC is issued
        """
        self.store = store
        self.ui = ui
        self.peer_id = peer_id
        self.sync_interval = sync_interval
        self.last_sync: Optional[datetime] = None
        self._commands: asyncio.Queue = asyncio.Queue()
        self._outbox: asyncio.Queue = asyncio.Queue()

    def submit_command(self, raw: str) -> None:
        """Feed a typed command into the command loop."""
        self._commands.put_nowait(raw)

    def enqueue(self, envelope: Envelope) -> None:
        """Hand an envelope to the writer task."""
        self._outbox.put_nowait(envelope)

    def pending_outbound(self) -> List[Envelope]:
        """Drain and return queued envelopes without sending them."""
        drained = []
        while not self._outbox.empty():
            drained.append(self._outbox.get_nowait())
        return drained

    async def next_command(self) -> str:
        """
        Wait for whichever comes first: a submitted command or the sync timer.

        Returns:
            The submitted command, or "SYNC" when the timer fired
        """
        try:
            return await asyncio.wait_for(self._commands.get(), timeout=self.sync_interval)
        except asyncio.TimeoutError:
            logger.debug("Sync interval elapsed, issuing SYNC")
            return "SYNC"

    async def handle_command(self, raw: str) -> Optional[Envelope]:
        """
        Parse one command and queue the resulting envelope.

        Returns:
            The queued envelope, or None if the command failed
        """
        try:
            command = parse_command(raw)
        except ParseError as e:
            self.ui.notify(f"Error: {e}")
            return None

        envelope = await self.build_envelope(command)
        if envelope is not None:
            self.enqueue(envelope)
        return envelope

    async def build_envelope(self, command: CommandRequest) -> Optional[Envelope]:
        """
        Construct the outbound envelope for a parsed command.

        Returns:
            Envelope to send, or None if local state could not be read
        """
        if isinstance(command, SyncCommand):
            try:
                inventory = await asyncio.to_thread(self.store.list)
            except StoreListError as e:
                logger.error(f"Sync abandoned: {e}")
                self.ui.notify(f"Sync abandoned, cannot read local folder: {e}")
                return None
            return Envelope.sync(inventory, sender=self.peer_id)
        elif isinstance(command, ListCommand):
            return Envelope.listing(sender=self.peer_id)
        elif isinstance(command, DeleteCommand):
            return self._checked(Envelope.delete, command.filename)
        elif isinstance(command, GetCommand):
            return self._checked(Envelope.get_file, command.filename)
        elif isinstance(command, StoreCommand):
            try:
                descriptor = await asyncio.to_thread(self.store.read, command.filename, MAX_CONTENT_BYTES)
            except FileMissingError:
                self.ui.notify(f"No local file named {command.filename}")
                return None
            except FileTooLargeError as e:
                self.ui.notify(f"Cannot upload {command.filename}: {e}")
                return None
            except (StoreError, OSError) as e:
                self.ui.notify(f"Cannot read {command.filename}: {e}")
                return None
            return Envelope.store(descriptor, sender=self.peer_id)
        else:
            self.ui.notify(f"Unknown command type: {type(command)}")
            return None

    def _checked(self, factory, filename: str) -> Optional[Envelope]:
        """Build a single-file envelope, rejecting names the server cannot store."""
        try:
            self.store.validate_name(filename)
        except StoreError as e:
            self.ui.notify(f"Error: {e}")
            return None
        return factory(filename, sender=self.peer_id)

    async def handle(self, envelope: Envelope) -> List[Envelope]:
        """
        Dispatch one envelope from the server.

        Returns:
            Envelopes to send back, in order
        """
        if envelope.kind is MessageKind.SYNC:
            return await self._handle_counter_sync(envelope.inventory)
        if envelope.kind is MessageKind.LIST:
            self.ui.show_inventory(envelope.inventory)
            return []
        if envelope.kind is MessageKind.GETFILE:
            return await self._handle_get_file(envelope.target.name)
        if envelope.kind is MessageKind.STORE:
            await self._handle_store(envelope.target)
            return []
        if envelope.kind is MessageKind.DELETE:
            await self._handle_delete(envelope.target.name)
            return []

        logger.warning(f"Ignoring unsupported message kind {envelope.kind}")
        return []

    async def _handle_counter_sync(self, inventory: List[FileDescriptor]) -> List[Envelope]:
        """
        Reconcile the server's inventory against the local folder.

        Only files missing locally are acted upon. ``last_sync`` moves to
        now once the exchange is processed.
        """
        try:
            local = await asyncio.to_thread(self.store.list)
        except StoreListError as e:
            logger.error(f"Counter-sync abandoned: {e}")
            self.ui.notify(f"Sync abandoned, cannot read local folder: {e}")
            return []

        local_index = index_inventory(local)
        responses: List[Envelope] = []
        for remote in inventory:
            action = reconcile_counter_sync(local_index, remote, self.last_sync)
            if action.kind is ActionKind.FETCH:
                logger.debug(f"Fetching {action.name}: {action.reason}")
                responses.append(Envelope.get_file(action.name, sender=self.peer_id))
            elif action.kind is ActionKind.DELETE:
                logger.debug(f"Deleting {action.name} on server: {action.reason}")
                responses.append(Envelope.delete(action.name, sender=self.peer_id))

        self.last_sync = utc_now()
        fetches = sum(1 for r in responses if r.kind is MessageKind.GETFILE)
        self.ui.notify(
            f"Sync complete: {fetches} file(s) requested, "
            f"{len(responses) - fetches} deletion(s) sent to server"
        )
        return responses

    async def _handle_get_file(self, name: str) -> List[Envelope]:
        self.ui.notify(f"server has requested {name} from this client")
        try:
            descriptor = await asyncio.to_thread(self.store.read, name, MAX_CONTENT_BYTES)
        except FileMissingError:
            self.ui.notify(f"Cannot send {name}: no such local file")
            return []
        except (StoreError, OSError) as e:
            self.ui.notify(f"Cannot send {name}: {e}")
            return []
        return [Envelope.store(descriptor, sender=self.peer_id)]

    async def _handle_store(self, descriptor: FileDescriptor) -> None:
        self.ui.notify(f"storing {descriptor.name}")
        try:
            await asyncio.to_thread(self.store.write, descriptor)
        except (StoreError, OSError) as e:
            logger.error(f"Cannot store {descriptor.name}: {e}")
            self.ui.notify(f"Cannot store {descriptor.name}: {e}")

    async def _handle_delete(self, name: str) -> None:
        self.ui.notify(f"deleting {name}")
        try:
            await asyncio.to_thread(self.store.remove, name)
        except FileMissingError:
            self.ui.notify(f"Cannot delete {name}: no such local file")
        except (StoreError, OSError) as e:
            logger.error(f"Cannot delete {name}: {e}")
            self.ui.notify(f"Cannot delete {name}: {e}")

    async def command_loop(self) -> None:
        """Turn submitted commands and timer ticks into outbound envelopes, forever."""
        while True:
            raw = await self.next_command()
            await self.handle_command(raw)

    async def receive_loop(self, channel: MessageChannel) -> None:
        """
        Dispatch inbound envelopes in arrival order until the channel closes.

        Raises:
            ChannelClosedError: When the server disconnects or sends garbage
        """
        while True:
            envelope = await channel.receive()
            try:
                responses = await self.handle(envelope)
            except Exception as e:
                logger.error(f"Failed to handle {envelope.describe()}: {e}", exc_info=True)
                continue
            for response in responses:
                self.enqueue(response)

    async def writer_loop(self, channel: MessageChannel) -> None:
        """The only task that writes to the channel."""
        while True:
            envelope = await self._outbox.get()
            try:
                await channel.send(envelope)
            except MessageTooLargeError as e:
                logger.error(f"Not sending {envelope.describe()}: {e}")
                self.ui.notify(f"Not sent: {e}")

    async def run(self, channel: MessageChannel) -> None:
        """
        Run all three loops over one channel until the connection ends.

        A disconnect ends the session cleanly; the UI is told why.
        """
        tasks = [
            asyncio.create_task(self.command_loop(), name="command-loop"),
            asyncio.create_task(self.receive_loop(channel), name="receive-loop"),
            asyncio.create_task(self.writer_loop(channel), name="writer-loop"),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await channel.close()

        for task in done:
            error = task.exception()
            if isinstance(error, ChannelClosedError):
                logger.info(f"Session ended: {error}")
                self.ui.notify(f"Disconnected from server: {error}")
            elif error is not None:
                raise error
