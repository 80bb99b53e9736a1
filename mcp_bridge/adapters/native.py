"""
Native-messaging listener

Accepts TCP connections from the browser-side agent and speaks the
length-prefixed framing of browser native messaging on each of them.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from mcp_bridge.adapters.adapter_interface import FarEndpointInterface, TransportAdapterInterface
from mcp_bridge.adapters.stream import StreamTransport
from mcp_bridge.codecs.length_prefixed import LengthPrefixedCodec, MAX_FRAME_BYTES
from mcp_bridge.telemetry.metrics import increment_counter

logger = logging.getLogger(__name__)


class NativeMessagingListener(FarEndpointInterface):
    """
    TCP listener for length-prefixed far-side connections
    """

    def __init__(self,
                 host: str = "127.0.0.1",
                 port: int = 9876,
                 max_frame_bytes: int = MAX_FRAME_BYTES):
        """Create the listener

        Args:
            host: interface to bind
            port: TCP port to bind; 0 picks a free port
            max_frame_bytes: frame size cap for every connection
        """
        self.host = host
        self.port = port
        self.max_frame_bytes = max_frame_bytes
        self._server: Optional[asyncio.AbstractServer] = None
        self._on_connection: Optional[Callable[[TransportAdapterInterface], Awaitable[None]]] = None
        self._transports: Set[StreamTransport] = set()

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    async def start(self, on_connection: Callable[[TransportAdapterInterface], Awaitable[None]]) -> None:
        self._on_connection = on_connection
        self._server = await asyncio.start_server(self._handle_client, self.host, self.port)

        # Report the real port when 0 was requested
        sockets = self._server.sockets or []
        if sockets:
            self.port = sockets[0].getsockname()[1]

        logger.info(f"Native messaging listener bound to {self.address}")

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        transport = StreamTransport(reader, writer, LengthPrefixedCodec(self.max_frame_bytes))
        self._transports.add(transport)
        increment_counter("bridge.far.connections", 1, {"transport": "native"})
        logger.info(f"Browser extension connected from {transport.peer}")

        try:
            await self._on_connection(transport)
        finally:
            self._transports.discard(transport)
            await transport.close()
            logger.info(f"Browser extension disconnected from {transport.peer}")

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            for transport in list(self._transports):
                await transport.close()
            await self._server.wait_closed()
            self._server = None
            logger.info("Native messaging listener stopped")
