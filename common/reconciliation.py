"""Timestamp reconciliation: decide per advertised file whether to fetch, push or delete."""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Mapping, Optional

from common.file_store import Comparison, compare_timestamps
from common.protocol import FileDescriptor
from common.utils import EPOCH, to_utc


class ActionKind(enum.Enum):
    """What to ask of the peer that advertised a file."""
    FETCH = "fetch"    # peer sends us its copy (GETFILE)
    PUSH = "push"      # we send the peer our copy (STORE)
    DELETE = "delete"  # peer removes its copy (DELETE)
    NOOP = "noop"


@dataclass(frozen=True)
class Action:
    """
    Outcome of reconciling one advertised file.

    ``modified_at`` is the local timestamp carried by a PUSH.
    """
    kind: ActionKind
    name: str
    reason: str = ""
    modified_at: Optional[datetime] = None

    @classmethod
    def fetch(cls, name: str, reason: str = "") -> 'Action':
        return cls(ActionKind.FETCH, name, reason)

    @classmethod
    def push(cls, name: str, modified_at: datetime, reason: str = "") -> 'Action':
        return cls(ActionKind.PUSH, name, reason, modified_at)

    @classmethod
    def delete(cls, name: str, reason: str = "") -> 'Action':
        return cls(ActionKind.DELETE, name, reason)

    @classmethod
    def noop(cls, name: str, reason: str = "") -> 'Action':
        return cls(ActionKind.NOOP, name, reason)


def index_inventory(inventory: Iterable[FileDescriptor]) -> Dict[str, FileDescriptor]:
    """Key an inventory by file name."""
    return {descriptor.name: descriptor for descriptor in inventory}


def _advertised_time(remote: FileDescriptor) -> datetime:
    return remote.modified_at if remote.modified_at is not None else EPOCH


def reconcile(
    local_inventory: Mapping[str, FileDescriptor],
    remote: FileDescriptor,
    watermark: Optional[datetime],
) -> Action:
    """
    Decide what to do about one file the peer advertised in its SYNC.

    Equal timestamps are always treated as synchronized; content is never
    compared.

    Args:
        local_inventory: Our files keyed by name
        remote: One entry of the peer's inventory
        watermark: When this peer was last reconciled, None if never

    Returns:
        PUSH if our copy is newer, FETCH if theirs is newer or the file is
        new to this peer relationship, DELETE if we already knew the file
        and have since removed it, NOOP if both copies carry the same time
    """
    advertised = _advertised_time(remote)
    local = local_inventory.get(remote.name)

    if local is not None:
        relation = compare_timestamps(_advertised_time(local), advertised)
        if relation is Comparison.NEWER:
            return Action.push(remote.name, local.modified_at, "local copy is newer")
        if relation is Comparison.OLDER:
            return Action.fetch(remote.name, "peer copy is newer")
        return Action.noop(remote.name, "timestamps are equal")

    if watermark is None:
        return Action.fetch(remote.name, "peer never synced before")
    if to_utc(watermark) < advertised:
        return Action.fetch(remote.name, "file changed since last sync")
    return Action.delete(remote.name, "file was removed locally after last sync")


def reconcile_counter_sync(
    local_inventory: Mapping[str, FileDescriptor],
    remote: FileDescriptor,
    last_sync: Optional[datetime],
) -> Action:
    """
    Decide what to do about one file from the server's counter-sync.

    Only files missing locally are acted upon; files present on both sides
    were already settled when the server reconciled our SYNC. Files that
    exist only locally are not looked at here, so a file created and
    deleted between two syncs never reaches the server.

    Args:
        local_inventory: Our files keyed by name
        remote: One entry of the server's inventory
        last_sync: End of our previous sync exchange, None if never

    Returns:
        FETCH if the server's file appeared after our last sync, DELETE if
        we must have removed it since, NOOP if we have a copy
    """
    if remote.name in local_inventory:
        return Action.noop(remote.name, "present locally")

    if last_sync is None or to_utc(last_sync) < _advertised_time(remote):
        return Action.fetch(remote.name, "new on server since last sync")
    return Action.delete(remote.name, "removed locally since last sync")
