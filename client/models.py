"""Command request data types for the client."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class SyncCommand:
    """Advertise the local inventory and reconcile with the server."""

    command: Literal["SYNC"] = "SYNC"


@dataclass(frozen=True)
class ListCommand:
    """Ask the server for its inventory."""

    command: Literal["LIST"] = "LIST"


@dataclass(frozen=True)
class DeleteCommand:
    """Delete a file on the server."""

    filename: str
    command: Literal["DELETE"] = "DELETE"


@dataclass(frozen=True)
class StoreCommand:
    """Upload a local file to the server."""

    filename: str
    command: Literal["STORE"] = "STORE"


@dataclass(frozen=True)
class GetCommand:
    """Download a file from the server."""

    filename: str
    command: Literal["GET"] = "GET"


CommandRequest = (
    SyncCommand
    | ListCommand
    | DeleteCommand
    | StoreCommand
    | GetCommand
)
