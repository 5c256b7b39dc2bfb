"""Per-connection message handling for the sync server."""

import asyncio
from typing import List, Optional

from common.constants import MAX_CONTENT_BYTES
from common.exceptions import FileMissingError, StoreError, StoreListError
from common.file_store import FileStore
from common.logging_config import get_logger, peer_logger
from common.protocol import Envelope, MessageKind
from common.reconciliation import Action, ActionKind, index_inventory, reconcile
from server.access_tracker import AccessTracker

logger = get_logger(__name__)


class ServerSession:
    """
    Handles the envelopes arriving on one client connection.

    Each envelope is handled to completion before the next one is read,
    so a connection's messages are processed strictly in arrival order.
    File I/O failures are logged and the offending message is dropped;
    they never end the connection.
    """

    def __init__(
        self,
        store: FileStore,
        tracker: AccessTracker,
        peer_address: str,
        identity: str = "",
    ):
        """
        Initialize session for one connection.

        Args:
            store: Server file store shared by all connections
            tracker: Watermarks shared by all connections
            peer_address: Remote socket address, used when a peer sends no identity
            identity: Sender identity stamped on outgoing envelopes
        """
        self.store = store
        self.tracker = tracker
        self.peer_address = peer_address
        self.identity = identity
        self.log = peer_logger(logger, peer_address)

    def peer_of(self, envelope: Envelope) -> str:
        """Identity used to key the watermark for this envelope's sender."""
        return envelope.sender or self.peer_address

    async def handle(self, envelope: Envelope) -> List[Envelope]:
        """
        Dispatch one envelope by kind.

        Args:
            envelope: Decoded message from the client

        Returns:
            Envelopes to send back, in order
        """
        self.log.info(f"Handling {envelope.describe()}")

        if envelope.kind is MessageKind.SYNC:
            return await self._handle_sync(envelope)
        if envelope.kind is MessageKind.LIST:
            return await self._handle_list()
        if envelope.kind is MessageKind.GETFILE:
            return await self._handle_get_file(envelope.target.name)
        if envelope.kind is MessageKind.STORE:
            await self._handle_store(envelope)
            return []
        if envelope.kind is MessageKind.DELETE:
            await self._handle_delete(envelope.target.name)
            return []

        self.log.warning(f"Ignoring unsupported message kind {envelope.kind}")
        return []

    async def _handle_sync(self, envelope: Envelope) -> List[Envelope]:
        """
        Reconcile every advertised file, then answer with a counter-sync.

        The peer's watermark moves to the time its request was sent. The
        watermark read, the reconciliation and the watermark update run
        under the peer's lock, so two connections syncing as the same peer
        take turns.
        """
        peer = self.peer_of(envelope)
        async with self.tracker.peer_lock(peer):
            return await self._reconcile_peer(peer, envelope)

    async def _reconcile_peer(self, peer: str, envelope: Envelope) -> List[Envelope]:
        try:
            local = await asyncio.to_thread(self.store.list)
        except StoreListError as e:
            self.log.error(f"Sync abandoned, cannot enumerate store: {e}")
            return []

        local_index = index_inventory(local)
        watermark = await self.tracker.watermark_for(peer)

        responses: List[Envelope] = []
        counts = {kind: 0 for kind in ActionKind}
        for remote in envelope.inventory:
            action = reconcile(local_index, remote, watermark)
            counts[action.kind] += 1
            self.log.debug(f"{action.kind.value} {action.name}: {action.reason}")
            response = await self._envelope_for(action)
            if response is not None:
                responses.append(response)

        await self.tracker.record_sync(peer, envelope.sent_at)
        responses.append(Envelope.sync(local, sender=self.identity))

        self.log.info(
            f"Sync with {peer}: {len(envelope.inventory)} advertised, "
            + ", ".join(f"{kind.value}={count}" for kind, count in counts.items())
        )
        return responses

    async def _envelope_for(self, action: Action) -> Optional[Envelope]:
        """Turn a reconciliation decision into the message for the peer."""
        if action.kind is ActionKind.FETCH:
            return Envelope.get_file(action.name, sender=self.identity)
        if action.kind is ActionKind.DELETE:
            return Envelope.delete(action.name, sender=self.identity)
        if action.kind is ActionKind.PUSH:
            try:
                descriptor = await asyncio.to_thread(self.store.read, action.name, MAX_CONTENT_BYTES)
            except (StoreError, OSError) as e:
                self.log.warning(f"Cannot push {action.name}: {e}")
                return None
            return Envelope.store(descriptor, sender=self.identity)
        return None

    async def _handle_list(self) -> List[Envelope]:
        try:
            files = await asyncio.to_thread(self.store.list)
        except StoreListError as e:
            self.log.error(f"Listing incomplete: {e}")
            files = e.partial
        return [Envelope.listing(files, sender=self.identity)]

    async def _handle_get_file(self, name: str) -> List[Envelope]:
        try:
            descriptor = await asyncio.to_thread(self.store.read, name, MAX_CONTENT_BYTES)
        except FileMissingError:
            self.log.warning(f"Requested file {name} does not exist")
            return []
        except (StoreError, OSError) as e:
            self.log.error(f"Cannot read {name}: {e}")
            return []
        return [Envelope.store(descriptor, sender=self.identity)]

    async def _handle_store(self, envelope: Envelope) -> None:
        target = envelope.target
        try:
            await asyncio.to_thread(self.store.write, target)
        except (StoreError, OSError) as e:
            self.log.error(f"Cannot store {target.name}: {e}")
            return
        self.log.info(f"Stored {target.name} ({len(target.content)} bytes)")

    async def _handle_delete(self, name: str) -> None:
        try:
            await asyncio.to_thread(self.store.remove, name)
        except FileMissingError:
            self.log.warning(f"Cannot delete {name}: file does not exist")
            return
        except (StoreError, OSError) as e:
            self.log.error(f"Cannot delete {name}: {e}")
            return
        self.log.info(f"Deleted {name}")
