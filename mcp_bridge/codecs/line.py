"""
Newline-delimited JSON codec

Wire format used by stdio MCP clients: one JSON document per line,
terminated by a single line-feed byte.
"""

from typing import Any

from mcp_bridge.codecs.base import INCOMPLETE, FrameCodec, dumps, loads

_LF = b"\n"


class LineCodec(FrameCodec):
    """Codec for newline-delimited JSON frames"""

    name = "line"

    def encode(self, message: Any) -> bytes:
        return dumps(message) + _LF

    def next_message(self) -> Any:
        while True:
            index = self._buffer.find(_LF)
            if index == -1:
                return INCOMPLETE

            line = bytes(self._buffer[:index])
            del self._buffer[:index + 1]

            # Blank lines (and bare CR from CRLF senders) are keep-alives
            line = line.strip()
            if not line:
                continue

            return loads(line)
