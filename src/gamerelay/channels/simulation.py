"""Persistent framed connection to the simulation peer."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from loguru import logger

from gamerelay.channels.framing import FrameDecoder, encode_frame
from gamerelay.errors import ChannelError

MessageHandler = Callable[[str, str], None]
CloseHandler = Callable[[BaseException | None], None]


class SimulationChannel(asyncio.Protocol):
    """Duplex newline-framed channel to the game peer.

    Handlers are bound at construction, before ``connect`` opens the socket, so the
    first bytes the peer sends are never dropped. Every complete frame is dispatched
    synchronously from ``data_received`` in arrival order.
    """

    name = "simulation"

    def __init__(self, on_message: MessageHandler, on_close: CloseHandler) -> None:
        self._on_message = on_message
        self._on_close = on_close
        self._decoder = FrameDecoder()
        self._transport: asyncio.Transport | None = None
        self._closed: asyncio.Event | None = None
        self._torn_down = False
        self.last_correlation_id: str | None = None

    @property
    def is_open(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    async def connect(self, host: str, port: int) -> None:
        loop = asyncio.get_running_loop()
        self._closed = asyncio.Event()
        try:
            await loop.create_connection(lambda: self, host, port)
        except OSError as exc:
            logger.error("channel.connect.error host={} port={} error={}", host, port, exc)
            self._teardown(exc)
            raise ChannelError(f"cannot connect to simulation at {host}:{port}: {exc}") from exc
        logger.info("channel.connected host={} port={}", host, port)

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]

    def data_received(self, data: bytes) -> None:
        for frame in self._decoder.feed(data):
            self.last_correlation_id = frame.correlation_id
            try:
                self._on_message(frame.correlation_id, frame.payload)
            except Exception:
                logger.exception("channel.dispatch.error id={}", frame.correlation_id)

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            logger.error("channel.error error={}", exc)
        else:
            logger.info("channel.closed")
        self._transport = None
        self._teardown(exc)

    def send(self, correlation_id: str, text: str) -> bool:
        transport = self._transport
        if transport is None or transport.is_closing():
            logger.warning("channel.send.not_open id={} text={}", correlation_id, text)
            return False
        transport.write(encode_frame(correlation_id, text))
        logger.debug("channel.send id={} text={}", correlation_id, text)
        return True

    def close(self) -> None:
        if self._transport is not None and not self._transport.is_closing():
            self._transport.close()

    async def wait_closed(self) -> None:
        if self._closed is not None:
            await self._closed.wait()

    def _teardown(self, exc: BaseException | None) -> None:
        if self._closed is not None:
            self._closed.set()
        if self._torn_down:
            return
        self._torn_down = True
        try:
            self._on_close(exc)
        except Exception:
            logger.exception("channel.teardown.error")
