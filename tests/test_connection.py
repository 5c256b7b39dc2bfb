"""End-to-end tests over real sockets: server accept loop, channel and client session."""

import asyncio

import pytest
import pytest_asyncio

from common.channel import MessageChannel
from common.exceptions import ChannelClosedError, MessageTooLargeError
from common.protocol import Envelope, FileDescriptor, MessageKind
from client.session import ClientSession
from server.sync_server import SyncServer


@pytest_asyncio.fixture
async def server(store):
    """Sync server bound to an ephemeral local port."""
    sync_server = SyncServer(store, "127.0.0.1", 0, identity="server")
    await sync_server.start()
    yield sync_server
    await sync_server.stop()


async def wait_until(predicate, timeout=5.0):
    """Poll until predicate() is true or fail."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio
async def test_sync_round_trip(server, base_time):
    channel = await MessageChannel.connect("127.0.0.1", server.port)
    try:
        await channel.send(Envelope.sync(
            [FileDescriptor(name="a.txt", size=1, modified_at=base_time)], sender="laptop"
        ))

        first = await channel.receive()
        second = await channel.receive()
    finally:
        await channel.close()

    assert first.kind is MessageKind.GETFILE
    assert first.target.name == "a.txt"
    assert second.kind is MessageKind.SYNC
    assert second.sender == "server"


@pytest.mark.asyncio
async def test_uploaded_file_keeps_timestamp(server, store, base_time):
    channel = await MessageChannel.connect("127.0.0.1", server.port)
    try:
        await channel.send(Envelope.store(
            FileDescriptor(name="a.bin", size=3, modified_at=base_time, content=b"\x00\x01\x02"),
            sender="laptop",
        ))
        await channel.send(Envelope.listing(sender="laptop"))
        listing = await channel.receive()
    finally:
        await channel.close()

    assert listing.kind is MessageKind.LIST
    assert listing.inventory == [FileDescriptor(name="a.bin", size=3, modified_at=base_time)]
    assert store.read("a.bin").content == b"\x00\x01\x02"


@pytest.mark.asyncio
async def test_undecodable_message_closes_connection(server):
    reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
    try:
        writer.write(b"this is not an envelope\n")
        await writer.drain()

        assert await asyncio.wait_for(reader.read(), timeout=5) == b""
    finally:
        writer.close()
        await writer.wait_closed()

    await wait_until(lambda: server.active_connections == 0)


@pytest.mark.asyncio
async def test_failed_operation_does_not_end_connection(server):
    channel = await MessageChannel.connect("127.0.0.1", server.port)
    try:
        await channel.send(Envelope.delete("ghost.txt", sender="laptop"))
        await channel.send(Envelope.get_file("ghost.txt", sender="laptop"))
        await channel.send(Envelope.listing(sender="laptop"))

        reply = await channel.receive()
    finally:
        await channel.close()

    assert reply.kind is MessageKind.LIST
    assert reply.inventory == []


@pytest.mark.asyncio
async def test_connections_are_served_concurrently(server):
    first = await MessageChannel.connect("127.0.0.1", server.port)
    second = await MessageChannel.connect("127.0.0.1", server.port)
    try:
        await wait_until(lambda: server.active_connections == 2)

        await second.send(Envelope.listing(sender="desktop"))
        assert (await second.receive()).kind is MessageKind.LIST
    finally:
        await first.close()
        await second.close()


@pytest.mark.asyncio
async def test_client_disconnect_is_seen_on_receive(server):
    channel = await MessageChannel.connect("127.0.0.1", server.port)
    await wait_until(lambda: server.active_connections == 1)

    await server.stop()

    with pytest.raises(ChannelClosedError):
        await asyncio.wait_for(channel.receive(), timeout=5)
    await channel.close()


@pytest.mark.asyncio
async def test_client_session_uploads_new_file_on_sync(server, store, client_store, put_file, ui, base_time):
    put_file(client_store, "report.txt", b"quarterly", base_time)
    session = ClientSession(client_store, ui, peer_id="laptop", sync_interval=60)
    channel = await MessageChannel.connect("127.0.0.1", server.port)

    runner = asyncio.create_task(session.run(channel))
    session.submit_command("sync")

    await wait_until(lambda: store.exists("report.txt"))
    await wait_until(lambda: session.last_sync is not None)
    await server.stop()
    await asyncio.wait_for(runner, timeout=5)

    assert store.read("report.txt").modified_at == base_time
    assert "server has requested report.txt from this client" in ui.messages
    assert ui.messages[-1].startswith("Disconnected from server")


@pytest.mark.asyncio
async def test_client_session_downloads_server_file(server, store, client_store, put_file, ui, base_time):
    put_file(store, "shared.txt", b"from server", base_time)
    session = ClientSession(client_store, ui, peer_id="laptop", sync_interval=60)
    channel = await MessageChannel.connect("127.0.0.1", server.port)

    runner = asyncio.create_task(session.run(channel))
    session.submit_command("sync")

    await wait_until(lambda: client_store.exists("shared.txt"))
    await server.stop()
    await asyncio.wait_for(runner, timeout=5)

    downloaded = client_store.read("shared.txt")
    assert downloaded.content == b"from server"
    assert downloaded.modified_at == base_time


@pytest.mark.asyncio
async def test_oversized_store_is_refused_and_connection_keeps_answering(server, store, monkeypatch, base_time):
    monkeypatch.setattr("common.channel.MAX_MESSAGE_BYTES", 4096)
    channel = await MessageChannel.connect("127.0.0.1", server.port)
    try:
        big = FileDescriptor(name="big.bin", size=8192, modified_at=base_time, content=b"\xab" * 8192)
        with pytest.raises(MessageTooLargeError):
            await channel.send(Envelope.store(big, sender="laptop"))

        await channel.send(Envelope.listing(sender="laptop"))
        reply = await asyncio.wait_for(channel.receive(), timeout=5)
    finally:
        await channel.close()

    assert reply.kind is MessageKind.LIST
    assert reply.inventory == []
    assert not store.exists("big.bin")


@pytest.mark.asyncio
async def test_server_skips_reply_over_line_limit(server, store, put_file, monkeypatch, base_time):
    monkeypatch.setattr("common.channel.MAX_MESSAGE_BYTES", 4096)
    put_file(store, "big.bin", b"\xab" * 8192, base_time)
    channel = await MessageChannel.connect("127.0.0.1", server.port)
    try:
        await channel.send(Envelope.get_file("big.bin", sender="laptop"))
        await channel.send(Envelope.listing(sender="laptop"))
        reply = await asyncio.wait_for(channel.receive(), timeout=5)
    finally:
        await channel.close()

    assert reply.kind is MessageKind.LIST
    assert [d.name for d in reply.inventory] == ["big.bin"]
