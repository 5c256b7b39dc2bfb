"""Per-peer watermark of the last completed reconciliation."""

import asyncio
from datetime import datetime
from typing import Dict, Optional

from common.logging_config import get_logger
from common.utils import to_utc

logger = get_logger(__name__)


class AccessTracker:
    """
    Remembers when each peer was last reconciled.

    Entries are created on a peer's first sync and live for the process
    lifetime; nothing is persisted, so after a restart every peer looks
    like it never synced.
    """

    def __init__(self):
        self._watermarks: Dict[str, datetime] = {}
        self._peer_locks: Dict[str, asyncio.Lock] = {}
        self.lock = asyncio.Lock()

    def peer_lock(self, peer: str) -> asyncio.Lock:
        """
        Get the lock serializing whole sync exchanges for one peer.

        Args:
            peer: Peer identity

        Returns:
            The same asyncio.Lock for every call with this identity
        """
        return self._peer_locks.setdefault(peer, asyncio.Lock())

    async def watermark_for(self, peer: str) -> Optional[datetime]:
        """
        Get the last reconciliation time for a peer.

        Args:
            peer: Peer identity

        Returns:
            Timestamp, or None if the peer never synced
        """
        async with self.lock:
            return self._watermarks.get(peer)

    async def record_sync(self, peer: str, when: datetime) -> bool:
        """
        Record that a peer's sync request sent at ``when`` was reconciled.

        A watermark only moves forward; an earlier request finishing late
        does not overwrite a later one.

        Args:
            peer: Peer identity
            when: The sync request's send time

        Returns:
            True if the watermark was updated
        """
        when = to_utc(when)
        async with self.lock:
            previous = self._watermarks.get(peer)
            if previous is not None and when <= previous:
                advanced = False
            else:
                self._watermarks[peer] = when
                advanced = True

        if previous is None:
            logger.info(f"First sync recorded for peer {peer}")
        elif advanced:
            logger.debug(f"Watermark for {peer}: {previous.isoformat()} -> {when.isoformat()}")
        else:
            logger.debug(f"Kept watermark for {peer} at {previous.isoformat()}, ignoring {when.isoformat()}")
        return advanced
