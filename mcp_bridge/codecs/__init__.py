"""
Frame Codecs

- line: newline-delimited JSON (stdio MCP)
- length_prefixed: 4-byte little-endian length + JSON (browser native messaging)
"""

from .base import INCOMPLETE, FrameCodec, dumps, loads
from .line import LineCodec
from .length_prefixed import LengthPrefixedCodec, MAX_FRAME_BYTES

__all__ = [
    "FrameCodec",
    "INCOMPLETE",
    "LineCodec",
    "LengthPrefixedCodec",
    "MAX_FRAME_BYTES",
    "dumps",
    "loads",
]
