"""Newline-delimited ``<id>#<payload>`` framing."""

from __future__ import annotations

import codecs
from dataclasses import dataclass

from loguru import logger

FRAME_SEPARATOR = "#"
FRAME_TERMINATOR = "\n"


@dataclass(frozen=True)
class Frame:
    correlation_id: str
    payload: str


def split_frame(line: str) -> Frame | None:
    """Split one line at its first separator; the payload keeps any later ``#``."""

    correlation_id, separator, payload = line.partition(FRAME_SEPARATOR)
    if not separator or not correlation_id or not payload:
        return None
    return Frame(correlation_id=correlation_id, payload=payload)


def encode_frame(correlation_id: str, text: str) -> bytes:
    return f"{correlation_id}{FRAME_SEPARATOR}{text}{FRAME_TERMINATOR}".encode()


class FrameDecoder:
    """Accumulate stream chunks and yield complete frames only."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        return self._buffer

    def feed(self, data: bytes) -> list[Frame]:
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split(FRAME_TERMINATOR)
        frames: list[Frame] = []
        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            frame = split_frame(stripped)
            if frame is None:
                logger.warning("channel.frame.invalid line={!r}", stripped[:120])
                continue
            frames.append(frame)
        return frames
