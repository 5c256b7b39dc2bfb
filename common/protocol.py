"""Wire model: file descriptors and envelopes, one JSON object per line."""

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from common.utils import to_utc, utc_now


class MessageKind(str, Enum):
    """Envelope kinds exchanged between client and server."""
    SYNC = "SYNC"
    LIST = "LIST"
    GETFILE = "GETFILE"
    STORE = "STORE"
    DELETE = "DELETE"


INVENTORY_KINDS = frozenset({MessageKind.SYNC, MessageKind.LIST})
TARGET_KINDS = frozenset({MessageKind.GETFILE, MessageKind.STORE, MessageKind.DELETE})


class FileDescriptor(BaseModel):
    """
    Name, size and modification time of one file.

    ``content`` is only set when the descriptor is the payload of a STORE
    envelope; inventory entries never carry it. Bytes travel as base64.
    """
    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes='base64',
        val_json_bytes='base64',
    )

    name: str
    size: int = 0
    modified_at: Optional[datetime] = None
    content: Optional[bytes] = None

    @field_validator('modified_at')
    @classmethod
    def _normalize_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value) if value is not None else None

    def without_content(self) -> 'FileDescriptor':
        """Return the inventory form of this descriptor."""
        return self.model_copy(update={'content': None})


class Envelope(BaseModel):
    """
    One protocol message.

    SYNC and LIST carry an inventory and no target; GETFILE, STORE and
    DELETE carry a target and an empty inventory.
    """
    kind: MessageKind
    inventory: List[FileDescriptor] = Field(default_factory=list)
    target: Optional[FileDescriptor] = None
    sender: str = ""
    sent_at: datetime = Field(default_factory=utc_now)

    @field_validator('sent_at')
    @classmethod
    def _normalize_sent_at(cls, value: datetime) -> datetime:
        return to_utc(value)

    @model_validator(mode='after')
    def _check_payload(self) -> 'Envelope':
        if self.kind in INVENTORY_KINDS:
            if self.target is not None:
                raise ValueError(f"{self.kind.value} envelope must not carry a target")
        else:
            if self.target is None:
                raise ValueError(f"{self.kind.value} envelope requires a target")
            if self.inventory:
                raise ValueError(f"{self.kind.value} envelope must not carry an inventory")
            if self.kind is MessageKind.STORE and self.target.content is None:
                raise ValueError("STORE envelope requires file content")
        return self

    @classmethod
    def sync(cls, inventory: Iterable[FileDescriptor], sender: str = "") -> 'Envelope':
        return cls(
            kind=MessageKind.SYNC,
            inventory=[d.without_content() for d in inventory],
            sender=sender,
        )

    @classmethod
    def listing(cls, inventory: Iterable[FileDescriptor] = (), sender: str = "") -> 'Envelope':
        return cls(
            kind=MessageKind.LIST,
            inventory=[d.without_content() for d in inventory],
            sender=sender,
        )

    @classmethod
    def get_file(cls, name: str, sender: str = "") -> 'Envelope':
        return cls(kind=MessageKind.GETFILE, target=FileDescriptor(name=name), sender=sender)

    @classmethod
    def store(cls, descriptor: FileDescriptor, sender: str = "") -> 'Envelope':
        return cls(kind=MessageKind.STORE, target=descriptor, sender=sender)

    @classmethod
    def delete(cls, name: str, sender: str = "") -> 'Envelope':
        return cls(kind=MessageKind.DELETE, target=FileDescriptor(name=name), sender=sender)

    def to_line(self) -> bytes:
        """Serialize to one newline-terminated JSON line."""
        return self.model_dump_json(exclude_none=True).encode('utf-8') + b"\n"

    @classmethod
    def from_line(cls, line: bytes) -> 'Envelope':
        """
        Deserialize one JSON line.

        Raises:
            pydantic.ValidationError: If the line is not a valid envelope
        """
        return cls.model_validate_json(line)

    def describe(self) -> str:
        """Short human-readable summary for log lines."""
        if self.target is not None:
            return f"{self.kind.value} {self.target.name}"
        return f"{self.kind.value} ({len(self.inventory)} file(s))"
