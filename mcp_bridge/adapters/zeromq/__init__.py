"""
ZeroMQ Adapter Package

Message-socket far side: one JSON-RPC 2.0 object per ZeroMQ message on a
PAIR socket connected to the browser-side agent.
"""

from mcp_bridge.adapters.zeromq.transport import ZeroMQTransport
from mcp_bridge.adapters.zeromq.connector import ZeroMQConnector

__all__ = ["ZeroMQTransport", "ZeroMQConnector"]
