"""
MCP Bridge

Bridges MCP tool calls spoken as newline-delimited JSON-RPC 2.0 on stdio to
a browser-side agent reached over a framing-incompatible transport:

1. Native: 4-byte little-endian length-prefixed JSON over TCP
2. ZeroMQ: one JSON-RPC object per message on a PAIR socket

Many calls may be in flight at once over the single far-side channel; replies
are correlated by identifier and every call carries its own timeout.
"""

__version__ = "0.1.0"
