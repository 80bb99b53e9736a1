"""
Transport Adapters Module

- stream: framed messages over asyncio streams (stdio, TCP)
- native: TCP listener speaking length-prefixed native-messaging frames
- zeromq: message-socket far side over a ZeroMQ PAIR socket

All adapters carry JSON-RPC 2.0 messages and know nothing about call
identifiers.
"""

from .adapter_factory import AdapterFactory, AdapterType
from .adapter_interface import END_OF_STREAM, FarEndpointInterface, TransportAdapterInterface
from .stream import StreamTransport, open_stdio_transport

__all__ = [
    "AdapterFactory",
    "AdapterType",
    "END_OF_STREAM",
    "FarEndpointInterface",
    "TransportAdapterInterface",
    "StreamTransport",
    "open_stdio_transport"
]
