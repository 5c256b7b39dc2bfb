"""Tests for the envelope wire model."""

import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from common.protocol import Envelope, FileDescriptor, MessageKind


def test_store_envelope_carries_binary_content_as_base64(base_time):
    payload = b"\x00\xff\n binary \r\n"
    envelope = Envelope.store(
        FileDescriptor(name="a.bin", size=len(payload), modified_at=base_time, content=payload),
        sender="laptop",
    )

    line = envelope.to_line()
    decoded = Envelope.from_line(line)

    assert line.endswith(b"\n")
    assert line.count(b"\n") == 1
    assert decoded.kind is MessageKind.STORE
    assert decoded.target.content == payload
    assert decoded.target.modified_at == base_time
    assert decoded.sender == "laptop"


def test_inventory_entries_never_carry_content(base_time):
    with_content = FileDescriptor(name="a.txt", size=3, modified_at=base_time, content=b"abc")

    envelope = Envelope.sync([with_content], sender="laptop")
    wire = json.loads(envelope.to_line())

    assert envelope.inventory[0].content is None
    assert "content" not in wire["inventory"][0]
    assert "target" not in wire


def test_list_request_has_empty_inventory():
    envelope = Envelope.listing(sender="laptop")

    decoded = Envelope.from_line(envelope.to_line())

    assert decoded.kind is MessageKind.LIST
    assert decoded.inventory == []
    assert decoded.target is None


def test_naive_timestamps_are_treated_as_utc():
    naive = datetime(2024, 1, 1, 8, 30)

    descriptor = FileDescriptor(name="a.txt", modified_at=naive)

    assert descriptor.modified_at == datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc)


def test_sent_at_defaults_to_now():
    before = datetime.now(timezone.utc)
    envelope = Envelope.listing()
    assert envelope.sent_at >= before


@pytest.mark.parametrize("payload", [
    {"kind": "SYNC", "target": {"name": "a.txt"}},
    {"kind": "GETFILE"},
    {"kind": "DELETE", "target": {"name": "a.txt"}, "inventory": [{"name": "b.txt"}]},
    {"kind": "STORE", "target": {"name": "a.txt"}},
    {"kind": "CONNECT"},
])
def test_payload_that_does_not_match_kind_is_rejected(payload):
    with pytest.raises(ValidationError):
        Envelope.from_line(json.dumps(payload).encode())


def test_garbage_is_rejected():
    with pytest.raises(ValidationError):
        Envelope.from_line(b"this is not json\n")


def test_describe():
    assert Envelope.delete("a.txt").describe() == "DELETE a.txt"
    assert Envelope.listing().describe() == "LIST (0 file(s))"
