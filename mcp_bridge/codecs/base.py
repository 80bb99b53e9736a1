"""
Frame codec interface

A codec turns one logical JSON message into the bytes of one frame and,
in the other direction, recovers messages from a byte stream that may arrive
in arbitrarily sized chunks.
"""

import abc
import json
from typing import Any

from mcp_bridge.errors import FrameDecodeError

# Returned by next_message when more bytes are needed. A decoded JSON null is
# a real message and comes back as None.
INCOMPLETE = object()


def dumps(message: Any) -> bytes:
    """Compact UTF-8 JSON serialization of a message."""
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def loads(data: bytes) -> Any:
    """Parse UTF-8 JSON bytes, raising FrameDecodeError on any failure."""
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FrameDecodeError(f"Malformed frame: {e}") from e


class FrameCodec(abc.ABC):
    """Incremental frame codec.

    Decoding is push based: ``feed`` appends raw bytes, ``next_message``
    pulls complete messages out of the buffer one at a time.
    """

    name = "abstract"

    def __init__(self):
        self._buffer = bytearray()

    @abc.abstractmethod
    def encode(self, message: Any) -> bytes:
        """Encode one message as one frame."""

    @abc.abstractmethod
    def next_message(self) -> Any:
        """Return the next complete message, or INCOMPLETE if more bytes are needed.

        Raises:
            FrameDecodeError: a complete frame was consumed but did not parse
            FrameProtocolError: the stream is unrecoverable
        """

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    @property
    def pending_bytes(self) -> int:
        """Number of buffered bytes not yet forming a complete frame."""
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()
