"""
Length-prefixed JSON codec

Browser native-messaging framing:

  [ length : uint32 LE ] [ JSON payload : length bytes ]

The length must be in (0, max_frame_bytes]; anything else means the stream
is out of sync and cannot be recovered.
"""

import struct
from typing import Any, Optional

from mcp_bridge.codecs.base import INCOMPLETE, FrameCodec, dumps, loads
from mcp_bridge.errors import FrameProtocolError, FrameTooLargeError

_HDR = struct.Struct("<I")   # little-endian uint32
HDR_SIZE = _HDR.size         # 4 bytes

MAX_FRAME_BYTES = 1024 * 1024


class LengthPrefixedCodec(FrameCodec):
    """Codec for 4-byte little-endian length-prefixed JSON frames"""

    name = "length_prefixed"

    def __init__(self, max_frame_bytes: int = MAX_FRAME_BYTES):
        super().__init__()
        if max_frame_bytes <= 0:
            raise ValueError("max_frame_bytes must be positive")
        self.max_frame_bytes = max_frame_bytes
        self._expected: Optional[int] = None

    def encode(self, message: Any) -> bytes:
        raw = dumps(message)
        if len(raw) > self.max_frame_bytes:
            raise FrameTooLargeError(
                f"Frame too large: {len(raw)} bytes (max {self.max_frame_bytes})"
            )
        return _HDR.pack(len(raw)) + raw

    def next_message(self) -> Any:
        if self._expected is None:
            if len(self._buffer) < HDR_SIZE:
                return INCOMPLETE
            length, = _HDR.unpack_from(self._buffer)
            if length == 0 or length > self.max_frame_bytes:
                raise FrameProtocolError(
                    f"Invalid frame length: {length} bytes (max {self.max_frame_bytes})"
                )
            del self._buffer[:HDR_SIZE]
            self._expected = length

        if len(self._buffer) < self._expected:
            return INCOMPLETE

        payload = bytes(self._buffer[:self._expected])
        del self._buffer[:self._expected]
        self._expected = None
        return loads(payload)

    @property
    def pending_bytes(self) -> int:
        # A consumed header still counts as an incomplete frame
        if self._expected is not None:
            return len(self._buffer) + HDR_SIZE
        return len(self._buffer)

    def reset(self) -> None:
        super().reset()
        self._expected = None
