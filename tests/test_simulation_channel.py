from __future__ import annotations

import asyncio

import pytest

from gamerelay.channels.simulation import SimulationChannel
from gamerelay.errors import ChannelError


async def _start_peer(script: bytes, replies: list[bytes], expect: int) -> asyncio.Server:
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        # Send the script in two chunks to split a frame across reads.
        writer.write(script[:5])
        await writer.drain()
        await asyncio.sleep(0.02)
        writer.write(script[5:])
        await writer.drain()
        for _ in range(expect):
            replies.append(await reader.readline())
        writer.close()
        await writer.wait_closed()

    return await asyncio.start_server(handle, "127.0.0.1", 0)


def _port(server: asyncio.Server) -> int:
    return server.sockets[0].getsockname()[1]


@pytest.mark.asyncio
async def test_channel_dispatches_frames_and_replies() -> None:
    replies: list[bytes] = []
    server = await _start_peer(b'1#START\n2#{"phase": "ACT", "note": "a#b"}\n', replies, expect=2)
    received: list[tuple[str, str]] = []
    closed: list[BaseException | None] = []

    def on_message(correlation_id: str, payload: str) -> None:
        received.append((correlation_id, payload))
        channel.send(correlation_id, f"ACK{len(received)}")

    channel = SimulationChannel(on_message, closed.append)
    async with server:
        await channel.connect("127.0.0.1", _port(server))
        assert channel.is_open
        await asyncio.wait_for(channel.wait_closed(), timeout=2.0)

    assert received == [("1", "START"), ("2", '{"phase": "ACT", "note": "a#b"}')]
    assert replies == [b"1#ACK1\n", b"2#ACK2\n"]
    assert channel.last_correlation_id == "2"
    assert closed == [None]
    assert channel.is_open is False


@pytest.mark.asyncio
async def test_handler_errors_do_not_break_the_channel() -> None:
    replies: list[bytes] = []
    server = await _start_peer(b"1#boom\n2#fine\n", replies, expect=1)

    def on_message(correlation_id: str, payload: str) -> None:
        if payload == "boom":
            raise RuntimeError("handler failed")
        channel.send(correlation_id, "OK")

    channel = SimulationChannel(on_message, lambda _exc: None)
    async with server:
        await channel.connect("127.0.0.1", _port(server))
        await asyncio.wait_for(channel.wait_closed(), timeout=2.0)

    assert replies == [b"2#OK\n"]


@pytest.mark.asyncio
async def test_close_tears_down_once() -> None:
    closed: list[BaseException | None] = []
    peer_done = asyncio.Event()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.read()
        writer.close()
        peer_done.set()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    channel = SimulationChannel(lambda _cid, _payload: None, closed.append)
    async with server:
        await channel.connect("127.0.0.1", _port(server))
        channel.close()
        channel.close()
        await asyncio.wait_for(channel.wait_closed(), timeout=2.0)
        await asyncio.wait_for(peer_done.wait(), timeout=2.0)

    assert closed == [None]
    assert channel.send("1", "late") is False


@pytest.mark.asyncio
async def test_connect_failure_raises_and_tears_down() -> None:
    server = await asyncio.start_server(lambda _r, _w: None, "127.0.0.1", 0)
    port = _port(server)
    server.close()
    await server.wait_closed()
    closed: list[BaseException | None] = []
    channel = SimulationChannel(lambda _cid, _payload: None, closed.append)

    with pytest.raises(ChannelError):
        await channel.connect("127.0.0.1", port)

    assert len(closed) == 1
    assert isinstance(closed[0], OSError)
